"""Decision logic for the automation chains, kept free of I/O."""

from __future__ import annotations

from datetime import datetime, timedelta
from enum import Enum

from ecpfleet.models import PowerState


class RelaunchAction(str, Enum):
    LAUNCH = "launch"
    RESUME = "resume"
    SKIP = "skip"


def decide_relaunch(suppressed: bool, live_state: PowerState | None) -> RelaunchAction:
    """What a relaunch cycle does for one device.

    A suppressed device is only launched again once it is observed on;
    ``Unknown`` and no answer at all both count as off.
    """
    if not suppressed:
        return RelaunchAction.LAUNCH
    if live_state is not None and live_state.is_on:
        return RelaunchAction.RESUME
    return RelaunchAction.SKIP


def validate_time(hour: int, minute: int) -> None:
    if not 0 <= hour <= 23:
        raise ValueError(f"Hour must be between 0 and 23, got {hour}")
    if not 0 <= minute <= 59:
        raise ValueError(f"Minute must be between 0 and 59, got {minute}")


def parse_time(value: str) -> tuple[int, int]:
    hour_text, sep, minute_text = value.strip().partition(":")
    if not sep or not hour_text.isdigit() or not minute_text.isdigit():
        raise ValueError(f"Expected time as HH:MM, got {value!r}")
    hour, minute = int(hour_text), int(minute_text)
    validate_time(hour, minute)
    return hour, minute


def format_time(hour: int, minute: int) -> str:
    return f"{hour:02d}:{minute:02d}"


def next_daily_run(now: datetime, hour: int, minute: int) -> datetime:
    """Today at hour:minute if that is still ahead of ``now``, else tomorrow."""
    validate_time(hour, minute)
    candidate = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if candidate <= now:
        candidate += timedelta(days=1)
    return candidate


def daily_delay(now: datetime, hour: int, minute: int) -> timedelta:
    return next_daily_run(now, hour, minute) - now


def coerce_interval(seconds: int) -> int:
    return max(1, int(seconds))


def retry_delay(attempt: int, base: float, cap: float) -> timedelta:
    return timedelta(seconds=min(cap, base * (2**attempt)))
