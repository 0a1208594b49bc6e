from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from ecpfleet.models import Job, ScheduleKind
from ecpfleet.storage import JobStore, StateStore

from .automation import (
    RelaunchAction,
    coerce_interval,
    decide_relaunch,
    format_time,
    next_daily_run,
    validate_time,
)
from .commands import POWER_OFF, POWER_ON, label_for, launch_command
from .dispatcher import apply_power_side_effect, sanitize_address
from .notify import Notifier
from .transport import EcpTransport

logger = logging.getLogger(__name__)

RELAUNCH_TITLE = "Auto Relaunch"


def _to_utc(moment: datetime) -> datetime:
    return moment.astimezone(timezone.utc)


def _targets(addresses: list[str]) -> list[str]:
    targets: list[str] = []
    for raw in addresses:
        address = sanitize_address(raw)
        if address is None:
            logger.warning("Not scheduling malformed address %r", raw)
        elif address not in targets:
            targets.append(address)
    return targets


class Scheduler:
    """Relaunch-interval and daily power automation, one job chain per device.

    Enabling enqueues a job per device, replacing any pending job with the
    same ``(kind, address)`` key; disabling cancels the kind across every
    device. Executions re-derive their next occurrence in ``reschedule``.
    """

    def __init__(
        self,
        jobs: JobStore,
        state: StateStore,
        transport: EcpTransport | None = None,
        notifier: Notifier | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._jobs = jobs
        self._state = state
        self._transport = transport
        self._notifier = notifier or Notifier(state)
        self._clock = clock

    # Enqueueing

    def relaunch_job(self, address: str, interval_seconds: int, app_id: str) -> Job:
        interval = coerce_interval(interval_seconds)
        run_at = self._clock() + timedelta(seconds=interval)
        return Job(
            kind=ScheduleKind.RELAUNCH,
            address=address,
            run_at=_to_utc(run_at),
            interval_seconds=interval,
            app_id=app_id,
        )

    def daily_job(self, kind: ScheduleKind, address: str, hour: int, minute: int) -> Job:
        run_at = next_daily_run(self._clock(), hour, minute)
        return Job(
            kind=kind,
            address=address,
            run_at=_to_utc(run_at),
            hour=hour,
            minute=minute,
        )

    def enable_relaunch(
        self, interval_seconds: int, addresses: list[str], app_id: str
    ) -> list[Job]:
        if not app_id.strip():
            raise ValueError("App id must not be empty")

        jobs = [
            self.relaunch_job(address, interval_seconds, app_id.strip())
            for address in _targets(addresses)
        ]
        for job in jobs:
            self._jobs.enqueue(job)
            logger.debug(
                "Scheduled relaunch for %s every %d sec", job.address, job.interval_seconds
            )
        logger.info("Relaunch enabled for %d device(s)", len(jobs))
        return jobs

    def disable_relaunch(self) -> int:
        cancelled = self._jobs.cancel_by_tag(ScheduleKind.RELAUNCH.value)
        logger.info("Cancelled %d relaunch job(s)", cancelled)
        return cancelled

    def enable_daily(
        self, kind: ScheduleKind, hour: int, minute: int, addresses: list[str]
    ) -> list[Job]:
        if not kind.is_daily:
            raise ValueError(f"{kind.value} is not a daily schedule")
        validate_time(hour, minute)

        jobs = [
            self.daily_job(kind, address, hour, minute) for address in _targets(addresses)
        ]
        for job in jobs:
            self._jobs.enqueue(job)
            logger.debug(
                "Scheduled %s for %s at %s (run at %s)",
                kind.value,
                job.address,
                format_time(hour, minute),
                job.run_at.isoformat(),
            )
        logger.info(
            "%s at %s enabled for %d device(s)",
            kind.value,
            format_time(hour, minute),
            len(jobs),
        )
        return jobs

    def disable_daily(self, kind: ScheduleKind) -> int:
        if not kind.is_daily:
            raise ValueError(f"{kind.value} is not a daily schedule")
        cancelled = self._jobs.cancel_by_tag(kind.value)
        logger.info("Cancelled %d %s job(s)", cancelled, kind.value)
        return cancelled

    # Execution (JobHandler)

    @property
    def transport(self) -> EcpTransport:
        if self._transport is None:
            raise RuntimeError("Scheduler has no transport; it can only enqueue jobs")
        return self._transport

    async def execute(self, job: Job) -> bool:
        if job.kind is ScheduleKind.RELAUNCH:
            return await self._execute_relaunch(job)
        return await self._execute_daily(job)

    async def _execute_relaunch(self, job: Job) -> bool:
        if job.app_id is None:
            raise ValueError(f"Relaunch job {job.key} has no app id")

        suppressed = self._state.is_suppressed(job.address)
        live_state = None
        if suppressed:
            live_state = await self.transport.query_status(job.address)

        action = decide_relaunch(suppressed, live_state)
        if action is RelaunchAction.SKIP:
            self._notifier.notify(
                RELAUNCH_TITLE, f"Skipped relaunch on {job.address} (TV is OFF)"
            )
            return True
        if action is RelaunchAction.RESUME:
            logger.info("%s is back on, resuming relaunch", job.address)
            self._state.clear_suppression(job.address)

        ok = await self.transport.send(job.address, launch_command(job.app_id))
        if ok:
            self._notifier.notify(RELAUNCH_TITLE, f"Auto relaunch on {job.address}")
        else:
            self._notifier.notify(
                RELAUNCH_TITLE,
                f"Auto relaunch failed on {job.address}",
                level=logging.WARNING,
            )
        return ok

    async def _execute_daily(self, job: Job) -> bool:
        command = POWER_ON if job.kind is ScheduleKind.DAILY_ON else POWER_OFF
        ok = await self.transport.send(job.address, command)
        if ok:
            apply_power_side_effect(self._state, job.address, command)
            logger.info("%s → %s", label_for(command), job.address)
        else:
            logger.warning("%s failed → %s", label_for(command), job.address)
        return ok

    def reschedule(self, job: Job) -> Job | None:
        if job.kind is ScheduleKind.RELAUNCH:
            if job.interval_seconds is None or job.app_id is None:
                return None
            return self.relaunch_job(job.address, job.interval_seconds, job.app_id)
        if job.hour is None or job.minute is None:
            return None
        return self.daily_job(job.kind, job.address, job.hour, job.minute)

    def on_exhausted(self, job: Job) -> None:
        self._notifier.notify(
            "Automation",
            f"{job.kind.value} on {job.address} failed after retries",
            level=logging.ERROR,
        )
