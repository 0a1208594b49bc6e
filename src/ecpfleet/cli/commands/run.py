from __future__ import annotations

import asyncio
import logging

import typer
from rich.console import Console

from ecpfleet.cli.helpers import (
    build_database,
    build_jobs,
    build_state,
    build_transport,
    load_settings_or_exit,
)
from ecpfleet.config import Settings
from ecpfleet.core import JobRunner, Notifier, Scheduler

logger = logging.getLogger(__name__)


async def _serve(settings: Settings, poll_interval: float | None) -> None:
    db = build_database(settings)
    state = build_state(settings, db)
    store = build_jobs(db)

    async with build_transport(settings) as transport:
        scheduler = Scheduler(store, state, transport, Notifier(state))
        runner = JobRunner(store, scheduler, settings.scheduler)
        await runner.run_forever(poll_interval)


def register(app: typer.Typer) -> None:
    @app.command()
    def run(
        poll_interval: float | None = typer.Option(
            None, "--poll-interval", min=0.1, help="Seconds between job store polls"
        ),
    ) -> None:
        """Run scheduled relaunch and power jobs until interrupted."""
        settings = load_settings_or_exit()
        console = Console()

        pending = len(build_jobs(build_database(settings)).pending())
        console.print(f"Running automation ({pending} pending job(s))...")
        console.print("Press Ctrl+C to stop.\n")

        try:
            asyncio.run(_serve(settings, poll_interval))
        except KeyboardInterrupt:
            logger.debug("Runner interrupted")
            console.print("\n[green]Runner stopped.[/green]")
