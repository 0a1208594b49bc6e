from __future__ import annotations

import typer
from rich.console import Console

from ecpfleet.cli.helpers import (
    build_database,
    build_jobs,
    build_state,
    load_settings_or_exit,
    resolve_config_path_or_exit,
)
from ecpfleet.models import app_label


def _flag(enabled: bool) -> str:
    return "[green]enabled[/green]" if enabled else "[dim]disabled[/dim]"


def register(app: typer.Typer) -> None:
    @app.command()
    def info() -> None:
        """Show ecpfleet data directory info and stats."""
        settings = load_settings_or_exit()
        db = build_database(settings)
        registry = db.load_devices()
        state = build_state(settings, db).load()
        pending = build_jobs(db).pending()

        config_path, config_exists = resolve_config_path_or_exit(allow_missing=True)

        console = Console()

        console.print("[bold]ecpfleet Info[/bold]\n")
        console.print(f"Data directory: {db.path}")
        console.print(f"Device registry: {db.devices_path}")
        console.print(f"Config file: {config_path if config_exists else 'defaults'}")

        console.print("\n[bold]Configuration[/bold]")
        console.print(f"ECP port: {settings.transport.port}")
        console.print(f"Timeout: {settings.transport.timeout}s")
        console.print(f"Discovery window: {settings.discovery.timeout}s")

        console.print("\n[bold]Automation[/bold]")
        console.print(f"Selected app: {app_label(state.selected_app)}")
        console.print(
            f"Auto relaunch: {_flag(state.relaunch_enabled)} "
            f"(every {state.interval_seconds} sec)"
        )
        on_at = f" at {state.on_time_label}" if state.on_time_label else ""
        off_at = f" at {state.off_time_label}" if state.off_time_label else ""
        console.print(f"Daily power on: {_flag(state.schedule_on_enabled)}{on_at}")
        console.print(f"Daily power off: {_flag(state.schedule_off_enabled)}{off_at}")

        console.print("\n[bold]Statistics[/bold]")
        console.print(f"Devices: {len(registry.devices)}")
        console.print(f"Selected device: {registry.selected or 'none'}")
        console.print(f"Suppressed devices: {len(state.suppressed)}")
        console.print(f"Pending jobs: {len(pending)}")
