from __future__ import annotations

import typer
from rich.console import Console
from rich.table import Table

from ecpfleet.cli.helpers import build_database, build_state, load_settings_or_exit
from ecpfleet.models import KNOWN_APPS, app_label

app = typer.Typer(no_args_is_help=True, help="Choose the app used by launch and relaunch")


def resolve_app_id(value: str) -> str:
    cleaned = value.strip()
    for app_id, name in KNOWN_APPS.items():
        if cleaned.lower() == name.lower():
            return app_id
    return cleaned


@app.command("list")
def list_apps() -> None:
    """List known apps."""
    settings = load_settings_or_exit()
    db = build_database(settings)
    selected = build_state(settings, db).load().selected_app

    table = Table()
    table.add_column("", width=1)
    table.add_column("App ID", style="cyan")
    table.add_column("Name", style="green")

    for app_id, name in KNOWN_APPS.items():
        table.add_row("✓" if app_id == selected else "", app_id, name)
    if selected not in KNOWN_APPS:
        table.add_row("✓", selected, "")

    Console().print(table)


@app.command("select")
def select_app(
    app_id: str = typer.Argument(..., help="App id or known app name"),
) -> None:
    """Set the app used by launch and relaunch."""
    settings = load_settings_or_exit()
    db = build_database(settings)

    resolved = resolve_app_id(app_id)
    console = Console()
    if not resolved:
        console.print("[red]✗[/red] App id must not be empty")
        raise typer.Exit(1)

    build_state(settings, db).update(selected_app=resolved)
    console.print(f"[green]✓[/green] Selected app {app_label(resolved)} ({resolved})")
