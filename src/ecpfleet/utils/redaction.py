from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class Redactor:
    enabled: bool = True
    _name_map: dict[str, int] = field(default_factory=dict)

    def redact_ip(self, ip: str) -> str:
        if not self.enabled:
            return ip
        parts = ip.split(".")
        if len(parts) == 4 and all(part.isdigit() for part in parts):
            return f"x.x.x.{parts[3]}"
        return ip

    def redact_name(self, name: str) -> str:
        if not self.enabled or not name:
            return name
        counter = self._name_map.get(name)
        if counter is None:
            counter = len(self._name_map) + 1
            self._name_map[name] = counter
        return f"device-{counter:02d}"
