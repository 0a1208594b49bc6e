"""ecpfleet - discover, power and keep an app running on a fleet of Roku ECP devices."""

from __future__ import annotations

from importlib.metadata import version

from .config import Settings, get_settings
from .core import EcpTransport, JobRunner, Scheduler, discover, send_to_all
from .models import Device, DeviceRegistry, Job, PowerState, ScheduleKind
from .storage import Database, JobStore, StateStore

__all__ = [
    "Database",
    "Device",
    "DeviceRegistry",
    "EcpTransport",
    "Job",
    "JobRunner",
    "JobStore",
    "PowerState",
    "ScheduleKind",
    "Scheduler",
    "Settings",
    "StateStore",
    "__version__",
    "discover",
    "get_settings",
    "send_to_all",
]

__version__ = version("ecpfleet")
