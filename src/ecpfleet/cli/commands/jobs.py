from __future__ import annotations

import typer
from rich.console import Console
from rich.table import Table

from ecpfleet.cli.helpers import build_database, build_jobs, build_state, load_settings_or_exit
from ecpfleet.core.automation import format_time
from ecpfleet.models import Job, ScheduleKind, app_label


def _detail(job: Job) -> str:
    if job.kind is ScheduleKind.RELAUNCH:
        return f"{app_label(job.app_id or '')} every {job.interval_seconds}s"
    if job.hour is not None and job.minute is not None:
        return f"daily at {format_time(job.hour, job.minute)}"
    return ""


def register(app: typer.Typer) -> None:
    @app.command()
    def jobs() -> None:
        """List pending automation jobs."""
        settings = load_settings_or_exit()
        db = build_database(settings)
        pending = build_jobs(db).pending()

        console = Console()
        if not pending:
            console.print("No pending jobs.")
            return

        table = Table()
        table.add_column("Key", style="cyan")
        table.add_column("Device", style="green")
        table.add_column("Next Run")
        table.add_column("Attempt", justify="right")
        table.add_column("Detail")

        for job in pending:
            table.add_row(
                job.key,
                job.address,
                job.run_at.astimezone().strftime("%Y-%m-%d %H:%M:%S"),
                str(job.attempt),
                _detail(job),
            )

        console.print(table)

    @app.command()
    def log(
        lines: int = typer.Option(20, "--lines", "-n", min=1, help="Number of lines"),
    ) -> None:
        """Show the most recent notices."""
        settings = load_settings_or_exit()
        db = build_database(settings)
        entries = build_state(settings, db).recent_log(lines)

        console = Console()
        if not entries:
            console.print("Log is empty.")
            return
        for entry in entries:
            console.print(entry, markup=False, highlight=False)
