"""Data models for ecpfleet."""

from ecpfleet.models.apps import DEFAULT_APP_ID, KNOWN_APPS, app_label
from ecpfleet.models.devices import (
    PLACEHOLDER_NAME,
    Device,
    DeviceInfo,
    DeviceRegistry,
    PowerState,
)
from ecpfleet.models.dispatch import DispatchResult
from ecpfleet.models.jobs import Job, ScheduleKind, job_key
from ecpfleet.models.state import AppState

__all__ = [
    "DEFAULT_APP_ID",
    "KNOWN_APPS",
    "PLACEHOLDER_NAME",
    "AppState",
    "Device",
    "DeviceInfo",
    "DeviceRegistry",
    "DispatchResult",
    "Job",
    "PowerState",
    "ScheduleKind",
    "app_label",
    "job_key",
]
