from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class DispatchResult:
    command: str
    outcomes: list[tuple[str, bool]] = field(default_factory=list)

    @property
    def ok(self) -> int:
        return sum(1 for _, success in self.outcomes if success)

    @property
    def total(self) -> int:
        return len(self.outcomes)

    def succeeded(self) -> list[str]:
        return [address for address, success in self.outcomes if success]

    def failed(self) -> list[str]:
        return [address for address, success in self.outcomes if not success]
