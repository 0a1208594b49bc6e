from __future__ import annotations

import asyncio
from enum import Enum

import typer
from rich.console import Console

from ecpfleet.core import run_mock_device
from ecpfleet.models import PowerState


class PowerMode(str, Enum):
    ON = "on"
    OFF = "off"
    DISPLAY_OFF = "display-off"

    @property
    def state(self) -> PowerState:
        return {
            PowerMode.ON: PowerState.ON,
            PowerMode.OFF: PowerState.OFF,
            PowerMode.DISPLAY_OFF: PowerState.DISPLAY_OFF,
        }[self]


def register(app: typer.Typer) -> None:
    @app.command()
    def mock(
        name: str = typer.Option("Mock Roku", "--name", "-n", help="Device name"),
        port: int = typer.Option(8060, "--port", "-p", help="Port to listen on"),
        power_mode: PowerMode = typer.Option(
            PowerMode.ON, "--power-mode", help="Initial power mode"
        ),
    ) -> None:
        """Run a mock ECP device for development."""
        console = Console()
        console.print(f"Starting mock device '{name}' on port {port}...")
        console.print("Press Ctrl+C to stop.\n")

        try:
            asyncio.run(run_mock_device(name=name, port=port, power_state=power_mode.state))
        except KeyboardInterrupt:
            console.print("\n[green]Mock device stopped.[/green]")
