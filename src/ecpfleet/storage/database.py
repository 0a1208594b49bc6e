from __future__ import annotations

import json
import tomllib
from pathlib import Path

from pydantic import ValidationError

from ecpfleet.models import PLACEHOLDER_NAME, Device, DeviceRegistry

from .files import atomic_write_text

DEVICES_FILE = "devices.toml"
STATE_FILE = "state.json"
JOBS_FILE = "jobs.json"


def _toml_string(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)


def _render_devices_toml(registry: DeviceRegistry) -> str:
    lines = [
        "# ecpfleet device registry",
        "# ECP devices under control, keyed by address",
        "",
    ]
    if registry.selected:
        lines.append(f"selected = {_toml_string(registry.selected)}")
        lines.append("")

    for device in registry.devices:
        lines.append("[[devices]]")
        lines.append(f"address = {_toml_string(device.address)}")
        lines.append(f"name = {_toml_string(device.name)}")
        lines.append("")

    return "\n".join(lines)


class Database:
    def __init__(self, data_dir: Path) -> None:
        self._data_dir = data_dir
        self._devices_path = data_dir / DEVICES_FILE

    @property
    def path(self) -> Path:
        return self._data_dir

    @property
    def devices_path(self) -> Path:
        return self._devices_path

    @property
    def state_path(self) -> Path:
        return self._data_dir / STATE_FILE

    @property
    def jobs_path(self) -> Path:
        return self._data_dir / JOBS_FILE

    def ensure_dirs(self) -> None:
        self._data_dir.mkdir(parents=True, exist_ok=True)

    def load_devices(self) -> DeviceRegistry:
        if not self._devices_path.exists():
            return DeviceRegistry()

        try:
            with self._devices_path.open("rb") as handle:
                data = tomllib.load(handle) or {}
        except tomllib.TOMLDecodeError as exc:
            raise ValueError(
                f"Invalid TOML in devices file: {self._devices_path}\n{exc}"
            ) from exc

        try:
            return DeviceRegistry.model_validate(data)
        except ValidationError as exc:
            raise ValueError(
                f"Invalid devices file: {self._devices_path}\n{exc}"
            ) from exc

    def save_devices(self, registry: DeviceRegistry) -> None:
        self.ensure_dirs()
        if registry.selected is None and registry.devices:
            registry.selected = registry.devices[0].address
        atomic_write_text(self._devices_path, _render_devices_toml(registry))

    def add_device(self, address: str, name: str | None = None) -> Device:
        clean = address.strip()
        if not clean:
            raise ValueError("Device address must not be empty")

        registry = self.load_devices()
        if registry.find(clean) is not None:
            raise ValueError(f"Device '{clean}' is already registered")

        device = Device(address=clean, name=(name or "").strip() or PLACEHOLDER_NAME)
        registry.devices.append(device)
        self.save_devices(registry)
        return device

    def remove_device(self, address: str) -> bool:
        registry = self.load_devices()
        device = registry.find(address.strip())
        if device is None:
            return False

        registry.devices.remove(device)
        if registry.selected == device.address:
            registry.selected = registry.devices[0].address if registry.devices else None
        self.save_devices(registry)
        return True

    def rename_device(self, address: str, name: str) -> bool:
        clean_name = name.strip()
        if not clean_name:
            raise ValueError("Device name must not be empty")

        registry = self.load_devices()
        device = registry.find(address.strip())
        if device is None:
            return False

        device.name = clean_name
        self.save_devices(registry)
        return True

    def select_device(self, address: str) -> None:
        registry = self.load_devices()
        device = registry.find(address.strip())
        if device is None:
            raise ValueError(f"Device '{address}' is not registered")

        registry.selected = device.address
        self.save_devices(registry)

    def init(self, force: bool = False) -> bool:
        existed = self._devices_path.exists()
        self.ensure_dirs()
        created = force or not existed
        if created:
            self.save_devices(DeviceRegistry())
        return created
