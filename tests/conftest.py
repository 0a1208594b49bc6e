from __future__ import annotations

from pathlib import Path

import httpx
import pytest

from ecpfleet.config import DatabaseConfig, Settings, get_settings, write_settings


@pytest.fixture(autouse=True)
def _isolate_settings_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("ECPFLEET_CONFIG", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def data_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A config file pointing at a fresh data directory, selected via env var."""
    data = tmp_path / "data"
    config_path = tmp_path / "config.toml"
    write_settings(Settings(database=DatabaseConfig(path=str(data))), config_path)
    monkeypatch.setenv("ECPFLEET_CONFIG", str(config_path))
    get_settings.cache_clear()
    return data


class FakeDevices:
    """Answers ECP requests for a set of addresses; everything else times out."""

    def __init__(self, power: dict[str, str] | None = None) -> None:
        self.power = dict(power or {})
        self.requests: list[tuple[str, str, str]] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        host = request.url.host
        path = request.url.path.lstrip("/")
        self.requests.append((request.method, host, path))
        if host not in self.power:
            raise httpx.ConnectTimeout("timed out", request=request)
        if request.method == "GET" and path == "query/device-info":
            body = (
                "<device-info>"
                f"<user-device-name>TV {host}</user-device-name>"
                f"<power-mode>{self.power[host]}</power-mode>"
                "</device-info>"
            )
            return httpx.Response(200, text=body)
        return httpx.Response(200)

    def paths(self, host: str) -> list[str]:
        return [path for _, h, path in self.requests if h == host]

    @property
    def mock(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def fake() -> FakeDevices:
    return FakeDevices()
