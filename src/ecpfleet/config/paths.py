"""Where ecpfleet keeps its config file and data (XDG base directories)."""

from __future__ import annotations

import os
from pathlib import Path

APP_NAME = "ecpfleet"
CONFIG_FILENAME = "config.toml"


def _xdg_home(env_var: str, fallback: Path) -> Path:
    value = os.environ.get(env_var, "")
    # relative XDG values are ignored
    if value and os.path.isabs(value):
        return Path(value)
    return fallback


def xdg_config_home() -> Path:
    return _xdg_home("XDG_CONFIG_HOME", Path.home() / ".config")


def xdg_data_home() -> Path:
    return _xdg_home("XDG_DATA_HOME", Path.home() / ".local" / "share")


def default_config_path() -> Path:
    return xdg_config_home() / APP_NAME / CONFIG_FILENAME


def default_data_dir() -> Path:
    return xdg_data_home() / APP_NAME


def expand_path(value: str | os.PathLike[str]) -> Path:
    """Expand ``~`` and environment variables in a user-supplied path."""
    return Path(os.path.expandvars(os.path.expanduser(os.fspath(value))))
