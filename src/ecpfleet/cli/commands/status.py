from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from ecpfleet.cli.helpers import (
    build_database,
    build_state,
    build_transport,
    load_settings_or_exit,
    resolve_targets,
)
from ecpfleet.config import Settings
from ecpfleet.models import DeviceInfo, PowerState

_POWER_STYLES = {
    PowerState.ON: "[green]on[/green]",
    PowerState.OFF: "[red]off[/red]",
    PowerState.DISPLAY_OFF: "[yellow]display off[/yellow]",
    PowerState.UNKNOWN: "[dim]unknown[/dim]",
}


async def _query(settings: Settings, addresses: list[str]) -> list[DeviceInfo | None]:
    async with build_transport(settings) as transport:
        return list(
            await asyncio.gather(
                *(transport.query_device_info(address) for address in addresses)
            )
        )


def status(
    addresses: list[str] | None = typer.Argument(
        None, help="Addresses to query (default: all registered devices)"
    ),
) -> None:
    """Show the live power state of devices."""
    settings = load_settings_or_exit()
    db = build_database(settings)
    targets = resolve_targets(db, addresses)

    console = Console()
    if not targets:
        console.print("No devices available")
        return

    infos = asyncio.run(_query(settings, targets))
    suppressed = build_state(settings, db).suppressed()

    table = Table()
    table.add_column("Address", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Power")
    table.add_column("Relaunch")

    for address, info in zip(targets, infos):
        if info is None:
            name, power = "", "[red]unreachable[/red]"
        else:
            name, power = info.name, _POWER_STYLES[info.power_state]
        relaunch = "[yellow]suppressed[/yellow]" if address in suppressed else ""
        table.add_row(address, name, power, relaunch)

    console.print(table)


def register(app: typer.Typer) -> None:
    app.command()(status)
