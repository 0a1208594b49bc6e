from __future__ import annotations

from enum import Enum

import typer
from rich.console import Console

from ecpfleet.cli.helpers import (
    build_database,
    build_jobs,
    build_state,
    load_settings_or_exit,
    resolve_targets,
)
from ecpfleet.core import Scheduler, parse_time
from ecpfleet.core.automation import format_time
from ecpfleet.models import ScheduleKind, app_label

relaunch_app = typer.Typer(no_args_is_help=True, help="Periodically relaunch the app")
schedule_app = typer.Typer(no_args_is_help=True, help="Daily power on/off schedules")


class PowerSchedule(str, Enum):
    ON = "on"
    OFF = "off"

    @property
    def kind(self) -> ScheduleKind:
        return ScheduleKind.DAILY_ON if self is PowerSchedule.ON else ScheduleKind.DAILY_OFF


@relaunch_app.command("enable")
def enable_relaunch(
    interval: int | None = typer.Option(
        None, "--interval", "-i", min=1, help="Seconds between relaunches"
    ),
    app_id: str | None = typer.Option(None, "--app", "-a", help="App id to relaunch"),
    devices: list[str] | None = typer.Option(
        None, "--device", "-d", help="Target address (repeatable, default: all devices)"
    ),
) -> None:
    """Relaunch the app on every device at a fixed interval."""
    settings = load_settings_or_exit()
    db = build_database(settings)
    targets = resolve_targets(db, devices)
    state = build_state(settings, db)

    console = Console()
    if not targets:
        console.print("No devices available")
        return

    current = state.load()
    seconds = interval or current.interval_seconds
    selected = app_id or current.selected_app

    scheduler = Scheduler(build_jobs(db), state)
    try:
        jobs = scheduler.enable_relaunch(seconds, targets, selected)
    except ValueError as exc:
        console.print(f"[red]✗[/red] {exc}")
        raise typer.Exit(1) from None

    state.update(relaunch_enabled=True, interval_seconds=seconds, selected_app=selected)
    console.print(
        f"[green]✓[/green] Auto relaunch of {app_label(selected)} enabled "
        f"(every {seconds} sec, {len(jobs)} device(s))"
    )


@relaunch_app.command("disable")
def disable_relaunch() -> None:
    """Stop relaunching on all devices."""
    settings = load_settings_or_exit()
    db = build_database(settings)
    state = build_state(settings, db)

    cancelled = Scheduler(build_jobs(db), state).disable_relaunch()
    state.update(relaunch_enabled=False)
    Console().print(f"[green]✓[/green] Auto relaunch disabled ({cancelled} job(s) cancelled)")


@schedule_app.command("enable")
def enable_schedule(
    which: PowerSchedule = typer.Argument(..., help="Which schedule: on or off"),
    at: str = typer.Argument(..., help="Time of day as HH:MM"),
    devices: list[str] | None = typer.Option(
        None, "--device", "-d", help="Target address (repeatable, default: all devices)"
    ),
) -> None:
    """Power devices on or off every day at a fixed time."""
    settings = load_settings_or_exit()
    db = build_database(settings)
    targets = resolve_targets(db, devices)
    state = build_state(settings, db)

    console = Console()
    try:
        hour, minute = parse_time(at)
    except ValueError as exc:
        console.print(f"[red]✗[/red] {exc}")
        raise typer.Exit(1) from None

    if not targets:
        console.print("No devices available")
        return

    Scheduler(build_jobs(db), state).enable_daily(which.kind, hour, minute, targets)

    label = format_time(hour, minute)
    if which is PowerSchedule.ON:
        state.update(schedule_on_enabled=True, on_time_label=label)
    else:
        state.update(schedule_off_enabled=True, off_time_label=label)
    console.print(f"[green]✓[/green] Power {which.value} scheduled at {label}")


@schedule_app.command("disable")
def disable_schedule(
    which: PowerSchedule = typer.Argument(..., help="Which schedule: on or off"),
) -> None:
    """Cancel a daily schedule on all devices."""
    settings = load_settings_or_exit()
    db = build_database(settings)
    state = build_state(settings, db)

    cancelled = Scheduler(build_jobs(db), state).disable_daily(which.kind)
    if which is PowerSchedule.ON:
        state.update(schedule_on_enabled=False)
    else:
        state.update(schedule_off_enabled=False)
    Console().print(
        f"[green]✓[/green] Power {which.value} schedule disabled "
        f"({cancelled} job(s) cancelled)"
    )
