from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class ScheduleKind(str, Enum):
    RELAUNCH = "relaunch"
    DAILY_ON = "daily_on"
    DAILY_OFF = "daily_off"

    @property
    def is_daily(self) -> bool:
        return self is not ScheduleKind.RELAUNCH


def job_key(kind: ScheduleKind, address: str) -> str:
    return f"{kind.value}_{address}"


class Job(BaseModel):
    """One pending execution of an automation for a single device.

    ``key`` is unique among pending jobs; ``id`` changes every time the
    chain is re-enqueued, so a stale execution can tell it was superseded.
    """

    model_config = {"frozen": True, "extra": "forbid"}

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    kind: ScheduleKind
    address: str
    run_at: datetime
    attempt: int = Field(default=0, ge=0)
    interval_seconds: int | None = Field(default=None, ge=1)
    app_id: str | None = None
    hour: int | None = Field(default=None, ge=0, le=23)
    minute: int | None = Field(default=None, ge=0, le=59)

    @property
    def key(self) -> str:
        return job_key(self.kind, self.address)

    @property
    def tags(self) -> tuple[str, str]:
        return (self.kind.value, self.key)
