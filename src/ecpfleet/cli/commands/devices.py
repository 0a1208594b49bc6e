from __future__ import annotations

import typer
from rich.console import Console
from rich.table import Table

from ecpfleet.cli.helpers import build_database, build_state, load_settings_or_exit

app = typer.Typer(no_args_is_help=True, help="Manage the registered devices")


@app.command("list")
def list_devices() -> None:
    """List registered devices."""
    settings = load_settings_or_exit()
    db = build_database(settings)
    registry = db.load_devices()
    suppressed = build_state(settings, db).suppressed()

    console = Console()

    if not registry.devices:
        console.print("No devices registered.")
        console.print("Use 'ecpfleet discover' or 'ecpfleet devices add <address>'.")
        return

    table = Table()
    table.add_column("", width=1)
    table.add_column("Address", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Relaunch")

    for device in registry.devices:
        marker = "✓" if device.address == registry.selected else ""
        relaunch = "[yellow]suppressed[/yellow]" if device.address in suppressed else ""
        table.add_row(marker, device.address, device.name, relaunch)

    console.print(table)


@app.command("add")
def add_device(
    address: str = typer.Argument(..., help="Device IP address"),
    name: str | None = typer.Option(None, "--name", "-n", help="Display name"),
) -> None:
    """Register a device by address."""
    settings = load_settings_or_exit()
    db = build_database(settings)

    console = Console()
    try:
        device = db.add_device(address, name)
    except ValueError as exc:
        console.print(f"[red]✗[/red] {exc}")
        raise typer.Exit(1) from None

    console.print(f"[green]✓[/green] Added {device.address} ({device.name})")


@app.command("remove")
def remove_device(address: str = typer.Argument(..., help="Device IP address")) -> None:
    """Remove a registered device."""
    settings = load_settings_or_exit()
    db = build_database(settings)

    console = Console()
    if db.remove_device(address):
        console.print(f"[green]✓[/green] Removed device '{address}'")
    else:
        console.print(f"[yellow]![/yellow] Device '{address}' not found")
        raise typer.Exit(1)


@app.command("rename")
def rename_device(
    address: str = typer.Argument(..., help="Device IP address"),
    name: str = typer.Argument(..., help="New display name"),
) -> None:
    """Change a device's display name."""
    settings = load_settings_or_exit()
    db = build_database(settings)

    console = Console()
    try:
        renamed = db.rename_device(address, name)
    except ValueError as exc:
        console.print(f"[red]✗[/red] {exc}")
        raise typer.Exit(1) from None

    if not renamed:
        console.print(f"[yellow]![/yellow] Device '{address}' not found")
        raise typer.Exit(1)
    console.print(f"[green]✓[/green] Renamed {address} → '{name.strip()}'")


@app.command("select")
def select_device(address: str = typer.Argument(..., help="Device IP address")) -> None:
    """Mark a device as the selected one."""
    settings = load_settings_or_exit()
    db = build_database(settings)

    console = Console()
    try:
        db.select_device(address)
    except ValueError as exc:
        console.print(f"[red]✗[/red] {exc}")
        raise typer.Exit(1) from None
    console.print(f"[green]✓[/green] Selected {address.strip()}")
