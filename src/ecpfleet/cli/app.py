from __future__ import annotations

from typing import Annotated

import typer

from ecpfleet.utils.logging import setup_logging

from .commands import apps as apps_cmd
from .commands import config as config_cmd
from .commands import devices as devices_cmd
from .commands import power as power_cmd
from .commands.automation import relaunch_app, schedule_app
from .commands.discover import register as register_discover
from .commands.info import register as register_info
from .commands.init import register as register_init
from .commands.jobs import register as register_jobs
from .commands.mock import register as register_mock
from .commands.run import register as register_run
from .commands.status import register as register_status

app = typer.Typer(help="ecpfleet - Roku ECP fleet control", no_args_is_help=True)

app.add_typer(config_cmd.app, name="config")
app.add_typer(devices_cmd.app, name="devices")
app.add_typer(apps_cmd.app, name="apps")
app.add_typer(power_cmd.app, name="power")
app.add_typer(relaunch_app, name="relaunch")
app.add_typer(schedule_app, name="schedule")

register_init(app)
register_info(app)
register_discover(app)
register_status(app)
power_cmd.register(app)
register_jobs(app)
register_run(app)
register_mock(app)


@app.callback(invoke_without_command=True)
def main(
    version: Annotated[
        bool,
        typer.Option("--version", "-v", help="Show version and exit"),
    ] = False,
) -> None:
    """ecpfleet CLI."""
    setup_logging()

    if version:
        from importlib.metadata import version as get_version

        typer.echo(f"ecpfleet version {get_version('ecpfleet')}")
        raise typer.Exit()
