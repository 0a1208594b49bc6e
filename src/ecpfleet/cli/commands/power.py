from __future__ import annotations

import asyncio

import typer
from rich.console import Console

from ecpfleet.cli.helpers import (
    build_database,
    build_state,
    build_transport,
    load_settings_or_exit,
    resolve_targets,
)
from ecpfleet.config import Settings
from ecpfleet.core import POWER_OFF, POWER_ON, Notifier, launch_command, send_to_all
from ecpfleet.models import DispatchResult, app_label
from ecpfleet.storage import StateStore

app = typer.Typer(no_args_is_help=True, help="Power devices on or off")

DeviceOption = typer.Option(
    None, "--device", "-d", help="Target address (repeatable, default: all devices)"
)


async def _send(
    settings: Settings, state: StateStore, addresses: list[str], command: str
) -> DispatchResult:
    async with build_transport(settings) as transport:
        return await send_to_all(transport, state, addresses, command, Notifier(state))


def dispatch(command: str, label: str, devices: list[str] | None) -> None:
    settings = load_settings_or_exit()
    db = build_database(settings)
    targets = resolve_targets(db, devices)

    console = Console()
    if not targets:
        console.print("No devices available")
        return

    state = build_state(settings, db)
    result = asyncio.run(_send(settings, state, targets, command))

    colour = "green" if result.ok == result.total else "yellow"
    console.print(f"[{colour}]{label} → {result.ok}/{result.total} succeeded[/{colour}]")
    for address in result.failed():
        console.print(f"  [red]•[/red] {address}")


@app.command("on")
def power_on(devices: list[str] | None = DeviceOption) -> None:
    """Send PowerOn to devices."""
    dispatch(POWER_ON, "Power On", devices)


@app.command("off")
def power_off(devices: list[str] | None = DeviceOption) -> None:
    """Send PowerOff to devices; relaunch is suppressed until they are seen on."""
    dispatch(POWER_OFF, "Power Off", devices)


def launch(
    app_id: str | None = typer.Argument(None, help="App id (default: selected app)"),
    devices: list[str] | None = DeviceOption,
) -> None:
    """Launch an app on devices."""
    settings = load_settings_or_exit()
    db = build_database(settings)
    selected = app_id or build_state(settings, db).load().selected_app
    dispatch(launch_command(selected), f"Launch {app_label(selected)}", devices)


def register(parent: typer.Typer) -> None:
    parent.command()(launch)
