from __future__ import annotations

import asyncio
import logging

import typer
from rich.console import Console
from rich.table import Table

from ecpfleet.cli.helpers import build_database, build_transport, load_settings_or_exit
from ecpfleet.config import Settings
from ecpfleet.core import discover, merge_devices
from ecpfleet.models import Device
from ecpfleet.utils.redaction import Redactor

logger = logging.getLogger(__name__)


async def _discover(settings: Settings, timeout: float) -> list[Device]:
    async with build_transport(settings) as transport:
        return await discover(transport, settings.discovery, timeout)


def discover_devices(
    timeout: float | None = typer.Option(
        None, "--timeout", "-t", min=0.1, help="SSDP listen window in seconds"
    ),
    save: bool = typer.Option(True, help="Add new devices to the registry"),
    redact: bool = typer.Option(
        False,
        "--redact",
        help="Redact addresses and names in output",
    ),
) -> None:
    """Discover ECP devices via SSDP, falling back to a subnet sweep."""
    console = Console()

    settings = load_settings_or_exit()
    db = build_database(settings)
    window = timeout if timeout is not None else settings.discovery.timeout

    console.print("Scanning for ECP devices...")
    logger.info(
        "Discovery settings: timeout=%.2fs, sweep_workers=%d",
        window,
        settings.discovery.sweep_workers,
    )
    found = asyncio.run(_discover(settings, window))

    if not found:
        console.print("No devices found.")
        return

    registry = db.load_devices()
    known = {device.address: device.name for device in registry.devices}

    redactor = Redactor(enabled=redact)
    table = Table()
    table.add_column("Address", style="cyan")
    table.add_column("Reported Name", style="green")
    table.add_column("Registered As", style="yellow")

    for device in found:
        table.add_row(
            redactor.redact_ip(device.address),
            redactor.redact_name(device.name),
            redactor.redact_name(known.get(device.address, "")),
        )

    console.print(table)
    console.print(f"\n[green]Found {len(found)} device(s)[/green]")

    if save:
        merged, added = merge_devices(registry.devices, found)
        registry.devices = merged
        db.save_devices(registry)
        console.print(f"[green]✓[/green] Added {len(added)} new device(s) to {db.path}")


def register(app: typer.Typer) -> None:
    app.command("discover")(discover_devices)
