from __future__ import annotations

import json
import os
import tomllib
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from .paths import default_config_path, default_data_dir, expand_path

CONFIG_ENV_VAR = "ECPFLEET_CONFIG"


class DatabaseConfig(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    path: str = Field(default_factory=lambda: str(default_data_dir()))
    max_log_lines: int = Field(default=200, ge=1)


class TransportConfig(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    port: int = Field(default=8060, ge=1, le=65535)
    timeout: float = Field(default=3.0, gt=0)
    sweep_timeout: float = Field(default=0.8, gt=0)


class DiscoveryConfig(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    timeout: float = Field(default=3.0, gt=0)
    search_target: str = "roku:ecp"
    copies: int = Field(default=2, ge=1, le=5)
    jitter: float = Field(default=0.2, ge=0)
    sweep_workers: int = Field(default=64, ge=1, le=254)


class SchedulerConfig(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    max_attempts: int = Field(default=3, ge=1)
    backoff_base: float = Field(default=10.0, gt=0)
    backoff_cap: float = Field(default=300.0, gt=0)
    poll_interval: float = Field(default=1.0, gt=0)


class Settings(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    transport: TransportConfig = Field(default_factory=TransportConfig)
    discovery: DiscoveryConfig = Field(default_factory=DiscoveryConfig)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)


def resolve_config_path(allow_missing: bool = False) -> tuple[Path, bool]:
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        path = expand_path(env_path)
        if not allow_missing and not path.exists():
            raise FileNotFoundError(f"{CONFIG_ENV_VAR} points to missing file: {path}")
        return path, path.exists()

    path = default_config_path()
    return path, path.exists()


def load_settings(path: Path) -> Settings:
    try:
        with path.open("rb") as handle:
            data = tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ValueError(f"Invalid TOML in config file: {path}\n{exc}") from exc

    try:
        return Settings.model_validate(data or {})
    except ValidationError as exc:
        raise ValueError(f"Invalid config file: {path}\n{exc}") from exc


@lru_cache
def get_settings() -> Settings:
    path, exists = resolve_config_path(allow_missing=False)
    if exists:
        return load_settings(path)
    return Settings()


def data_dir_from_settings(settings: Settings) -> Path:
    return expand_path(settings.database.path)


def _toml_string(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)


def render_settings_toml(settings: Settings) -> str:
    database = settings.database
    transport = settings.transport
    discovery = settings.discovery
    scheduler = settings.scheduler
    lines = [
        "# ecpfleet configuration",
        "",
        "[database]",
        f"path = {_toml_string(database.path)}",
        f"max_log_lines = {database.max_log_lines}",
        "",
        "[transport]",
        f"port = {transport.port}",
        f"timeout = {transport.timeout}",
        f"sweep_timeout = {transport.sweep_timeout}",
        "",
        "[discovery]",
        f"timeout = {discovery.timeout}",
        f"search_target = {_toml_string(discovery.search_target)}",
        f"copies = {discovery.copies}",
        f"jitter = {discovery.jitter}",
        f"sweep_workers = {discovery.sweep_workers}",
        "",
        "[scheduler]",
        f"max_attempts = {scheduler.max_attempts}",
        f"backoff_base = {scheduler.backoff_base}",
        f"backoff_cap = {scheduler.backoff_cap}",
        f"poll_interval = {scheduler.poll_interval}",
        "",
    ]
    return "\n".join(lines)


def write_settings(settings: Settings, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_settings_toml(settings), encoding="utf-8")
