from __future__ import annotations

POWER_ON = "keypress/PowerOn"
POWER_OFF = "keypress/PowerOff"
LAUNCH_PREFIX = "launch/"


def launch_command(app_id: str) -> str:
    return f"{LAUNCH_PREFIX}{app_id}"


def _has_prefix(command: str, prefix: str) -> bool:
    return command.lower().startswith(prefix.lower())


def is_power_on(command: str) -> bool:
    return _has_prefix(command, POWER_ON)


def is_power_off(command: str) -> bool:
    return _has_prefix(command, POWER_OFF)


def is_launch(command: str) -> bool:
    return _has_prefix(command, LAUNCH_PREFIX)


def label_for(command: str) -> str:
    if is_power_on(command):
        return "Power On"
    if is_power_off(command):
        return "Power Off"
    if is_launch(command):
        return "Launch"
    return command
