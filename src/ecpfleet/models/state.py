from __future__ import annotations

from pydantic import BaseModel, Field

from .apps import DEFAULT_APP_ID


class AppState(BaseModel):
    model_config = {"extra": "forbid"}

    selected_app: str = DEFAULT_APP_ID
    interval_seconds: int = Field(default=30, ge=1)
    relaunch_enabled: bool = False
    schedule_on_enabled: bool = False
    schedule_off_enabled: bool = False
    on_time_label: str | None = None
    off_time_label: str | None = None
    suppressed: set[str] = Field(default_factory=set)
    log: list[str] = Field(default_factory=list)
