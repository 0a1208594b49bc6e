from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from ecpfleet.core import EcpTransport, JobRunner, Scheduler
from ecpfleet.models import ScheduleKind, job_key
from ecpfleet.storage import JobStore, StateStore

NOW = datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)


@pytest.fixture
def jobs(tmp_path) -> JobStore:
    return JobStore(tmp_path / "jobs.json")


@pytest.fixture
def state(tmp_path) -> StateStore:
    return StateStore(tmp_path / "state.json")


def _scheduler(jobs, state, transport=None) -> Scheduler:
    return Scheduler(jobs, state, transport, clock=lambda: NOW)


def _run_due(fake, jobs, state, now=NOW + timedelta(days=2)) -> Scheduler:
    async def _run():
        async with EcpTransport(transport=fake.mock) as ecp:
            scheduler = _scheduler(jobs, state, ecp)
            await JobRunner(jobs, scheduler).run_pending(now)
            return scheduler

    return asyncio.run(_run())


def test_enable_relaunch_schedules_one_job_per_device(jobs, state):
    created = _scheduler(jobs, state).enable_relaunch(
        30, ["10.0.0.5", " 10.0.0.6 ", "10.0.0.5", "bogus"], "37835"
    )

    assert [job.address for job in created] == ["10.0.0.5", "10.0.0.6"]
    pending = jobs.pending()
    assert {job.key for job in pending} == {"relaunch_10.0.0.5", "relaunch_10.0.0.6"}
    assert all(job.run_at == NOW + timedelta(seconds=30) for job in pending)


def test_enable_relaunch_replaces_existing_chain(jobs, state):
    scheduler = _scheduler(jobs, state)
    scheduler.enable_relaunch(30, ["10.0.0.5"], "37835")
    scheduler.enable_relaunch(90, ["10.0.0.5"], "133480")

    pending = jobs.pending()
    assert len(pending) == 1
    assert pending[0].interval_seconds == 90
    assert pending[0].app_id == "133480"


def test_enable_relaunch_rejects_empty_app(jobs, state):
    with pytest.raises(ValueError):
        _scheduler(jobs, state).enable_relaunch(30, ["10.0.0.5"], " ")


def test_disable_relaunch_cancels_every_device(jobs, state):
    scheduler = _scheduler(jobs, state)
    scheduler.enable_relaunch(30, ["10.0.0.5", "10.0.0.6", "10.0.0.7"], "37835")
    scheduler.enable_daily(ScheduleKind.DAILY_ON, 9, 0, ["10.0.0.5"])

    assert scheduler.disable_relaunch() == 3
    assert [job.kind for job in jobs.pending()] == [ScheduleKind.DAILY_ON]


def test_enable_daily_runs_tomorrow_when_time_has_passed(jobs, state):
    (job,) = _scheduler(jobs, state).enable_daily(ScheduleKind.DAILY_ON, 9, 0, ["10.0.0.5"])
    assert job.run_at == datetime(2024, 5, 2, 9, 0, tzinfo=timezone.utc)


def test_enable_daily_runs_today_when_time_is_ahead(jobs, state):
    (job,) = _scheduler(jobs, state).enable_daily(ScheduleKind.DAILY_OFF, 22, 30, ["10.0.0.5"])
    assert job.run_at == datetime(2024, 5, 1, 22, 30, tzinfo=timezone.utc)


def test_daily_rejects_relaunch_kind(jobs, state):
    scheduler = _scheduler(jobs, state)
    with pytest.raises(ValueError):
        scheduler.enable_daily(ScheduleKind.RELAUNCH, 9, 0, ["10.0.0.5"])
    with pytest.raises(ValueError):
        scheduler.disable_daily(ScheduleKind.RELAUNCH)


def test_disable_daily_only_touches_its_kind(jobs, state):
    scheduler = _scheduler(jobs, state)
    scheduler.enable_daily(ScheduleKind.DAILY_ON, 9, 0, ["10.0.0.5", "10.0.0.6"])
    scheduler.enable_daily(ScheduleKind.DAILY_OFF, 23, 0, ["10.0.0.5"])

    assert scheduler.disable_daily(ScheduleKind.DAILY_ON) == 2
    assert [job.key for job in jobs.pending()] == [job_key(ScheduleKind.DAILY_OFF, "10.0.0.5")]


def test_relaunch_launches_when_not_suppressed(fake, jobs, state):
    fake.power["10.0.0.5"] = "PowerOn"
    _scheduler(jobs, state).enable_relaunch(30, ["10.0.0.5"], "37835")

    _run_due(fake, jobs, state)

    assert fake.paths("10.0.0.5") == ["launch/37835"]
    assert jobs.get("relaunch_10.0.0.5").run_at == NOW + timedelta(seconds=30)
    assert state.recent_log(1)[0].endswith("Auto Relaunch: Auto relaunch on 10.0.0.5")


def test_relaunch_skips_suppressed_device_that_is_off(fake, jobs, state):
    fake.power["10.0.0.5"] = "PowerOff"
    state.suppress("10.0.0.5")
    _scheduler(jobs, state).enable_relaunch(45, ["10.0.0.5"], "37835")

    _run_due(fake, jobs, state)

    assert fake.paths("10.0.0.5") == ["query/device-info"]
    assert state.is_suppressed("10.0.0.5")
    follow_up = jobs.get("relaunch_10.0.0.5")
    assert follow_up.run_at == NOW + timedelta(seconds=45)
    assert follow_up.attempt == 0
    assert "Skipped relaunch on 10.0.0.5 (TV is OFF)" in state.recent_log(1)[0]


def test_relaunch_skips_when_status_query_fails(fake, jobs, state):
    state.suppress("10.0.0.5")
    _scheduler(jobs, state).enable_relaunch(30, ["10.0.0.5"], "37835")

    _run_due(fake, jobs, state)

    assert fake.paths("10.0.0.5") == ["query/device-info"]
    assert state.is_suppressed("10.0.0.5")


def test_relaunch_resumes_once_device_is_seen_on(fake, jobs, state):
    fake.power["10.0.0.5"] = "PowerOn"
    state.suppress("10.0.0.5")
    _scheduler(jobs, state).enable_relaunch(30, ["10.0.0.5"], "37835")

    _run_due(fake, jobs, state)

    assert fake.paths("10.0.0.5") == ["query/device-info", "launch/37835"]
    assert not state.is_suppressed("10.0.0.5")


def test_daily_off_suppresses_and_daily_on_clears(fake, jobs, state):
    fake.power["10.0.0.5"] = "PowerOn"
    scheduler = _scheduler(jobs, state)

    scheduler.enable_daily(ScheduleKind.DAILY_OFF, 23, 0, ["10.0.0.5"])
    _run_due(fake, jobs, state)
    assert fake.paths("10.0.0.5") == ["keypress/PowerOff"]
    assert state.is_suppressed("10.0.0.5")
    assert jobs.get("daily_off_10.0.0.5").run_at == datetime(
        2024, 5, 1, 23, 0, tzinfo=timezone.utc
    )

    scheduler.disable_daily(ScheduleKind.DAILY_OFF)
    scheduler.enable_daily(ScheduleKind.DAILY_ON, 9, 0, ["10.0.0.5"])
    _run_due(fake, jobs, state)
    assert not state.is_suppressed("10.0.0.5")


def test_failed_daily_leaves_suppression_and_retries(fake, jobs, state):
    _scheduler(jobs, state).enable_daily(ScheduleKind.DAILY_OFF, 23, 0, ["10.0.0.5"])

    _run_due(fake, jobs, state)

    assert not state.is_suppressed("10.0.0.5")
    assert jobs.get("daily_off_10.0.0.5").attempt == 1


def test_scheduler_without_transport_cannot_execute(jobs, state):
    scheduler = _scheduler(jobs, state)
    (job,) = scheduler.enable_daily(ScheduleKind.DAILY_ON, 9, 0, ["10.0.0.5"])

    with pytest.raises(RuntimeError):
        asyncio.run(scheduler.execute(job))
