from __future__ import annotations

from .automation import (
    RelaunchAction,
    decide_relaunch,
    next_daily_run,
    parse_time,
    retry_delay,
)
from .commands import POWER_OFF, POWER_ON, label_for, launch_command
from .discovery import detect_local_address, discover, merge_devices, sweep_subnet
from .dispatcher import send_to_all
from .jobs import JobRunner
from .mock_device import run_mock_device
from .notify import Notifier
from .scheduler import Scheduler
from .transport import EcpTransport

__all__ = [
    "POWER_OFF",
    "POWER_ON",
    "EcpTransport",
    "JobRunner",
    "Notifier",
    "RelaunchAction",
    "Scheduler",
    "decide_relaunch",
    "detect_local_address",
    "discover",
    "label_for",
    "launch_command",
    "merge_devices",
    "next_daily_run",
    "parse_time",
    "retry_delay",
    "run_mock_device",
    "send_to_all",
    "sweep_subnet",
]
