from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from ecpfleet.core import RelaunchAction, decide_relaunch, next_daily_run, parse_time, retry_delay
from ecpfleet.core.automation import coerce_interval, daily_delay, format_time
from ecpfleet.models import PowerState


@pytest.mark.parametrize(
    ("suppressed", "live", "expected"),
    [
        (False, None, RelaunchAction.LAUNCH),
        (False, PowerState.OFF, RelaunchAction.LAUNCH),
        (True, PowerState.ON, RelaunchAction.RESUME),
        (True, PowerState.OFF, RelaunchAction.SKIP),
        (True, PowerState.DISPLAY_OFF, RelaunchAction.SKIP),
        (True, PowerState.UNKNOWN, RelaunchAction.SKIP),
        (True, None, RelaunchAction.SKIP),
    ],
)
def test_decide_relaunch(suppressed, live, expected):
    assert decide_relaunch(suppressed, live) is expected


def test_next_daily_run_later_today():
    now = datetime(2024, 5, 1, 8, 0)
    assert next_daily_run(now, 9, 0) == datetime(2024, 5, 1, 9, 0)
    assert daily_delay(now, 9, 0) == timedelta(hours=1)


def test_next_daily_run_tomorrow():
    now = datetime(2024, 5, 1, 10, 0)
    assert next_daily_run(now, 9, 0) == datetime(2024, 5, 2, 9, 0)
    assert daily_delay(now, 9, 0) == timedelta(hours=23)


def test_next_daily_run_at_exact_time_rolls_over():
    now = datetime(2024, 5, 1, 9, 0)
    assert next_daily_run(now, 9, 0) == datetime(2024, 5, 2, 9, 0)


def test_next_daily_run_rejects_bad_time():
    with pytest.raises(ValueError):
        next_daily_run(datetime(2024, 5, 1), 24, 0)


def test_parse_time():
    assert parse_time("09:05") == (9, 5)
    assert parse_time(" 7:30 ") == (7, 30)
    assert format_time(7, 30) == "07:30"


@pytest.mark.parametrize("value", ["", "9", "9:", "ab:cd", "24:00", "12:60", "-1:00"])
def test_parse_time_rejects(value):
    with pytest.raises(ValueError):
        parse_time(value)


def test_retry_delay_is_exponential_and_capped():
    assert retry_delay(0, 10, 300) == timedelta(seconds=10)
    assert retry_delay(1, 10, 300) == timedelta(seconds=20)
    assert retry_delay(2, 10, 300) == timedelta(seconds=40)
    assert retry_delay(10, 10, 300) == timedelta(seconds=300)


def test_coerce_interval():
    assert coerce_interval(0) == 1
    assert coerce_interval(45) == 45
