from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

PLACEHOLDER_NAME = "Roku Device"


class PowerState(str, Enum):
    ON = "poweron"
    OFF = "poweroff"
    DISPLAY_OFF = "displayoff"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, token: str | None) -> PowerState:
        if token is None:
            return cls.UNKNOWN
        try:
            return cls(token.strip().lower())
        except ValueError:
            return cls.UNKNOWN

    @property
    def is_on(self) -> bool:
        return self is PowerState.ON


class Device(BaseModel):
    model_config = {"extra": "forbid"}

    address: str
    name: str = PLACEHOLDER_NAME


class DeviceInfo(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    name: str = PLACEHOLDER_NAME
    power_state: PowerState = PowerState.UNKNOWN


class DeviceRegistry(BaseModel):
    model_config = {"extra": "forbid"}

    devices: list[Device] = Field(default_factory=list)
    selected: str | None = None

    def addresses(self) -> list[str]:
        return [device.address for device in self.devices]

    def find(self, address: str) -> Device | None:
        for device in self.devices:
            if device.address == address:
                return device
        return None
