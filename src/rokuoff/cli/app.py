from __future__ import annotations

from typing import Annotated

import typer

from rokuoff.utils.logging import setup_logging

from .commands import config as config_cmd
from .commands import devices as devices_cmd
from .commands import logs as logs_cmd
from .commands import schedules as schedules_cmd
from .commands import settings as settings_cmd
from .commands.info import register as register_info
from .commands.init import register as register_init
from .commands.run import register as register_run

app = typer.Typer(
    help="rokuoff - scheduled power-off for Roku devices", no_args_is_help=True
)

app.add_typer(config_cmd.app, name="config")
app.add_typer(devices_cmd.app, name="devices")
app.add_typer(schedules_cmd.app, name="schedules")
app.add_typer(logs_cmd.app, name="logs")
app.add_typer(settings_cmd.app, name="settings")

register_init(app)
register_info(app)
register_run(app)


@app.callback(invoke_without_command=True)
def main(
    version: Annotated[
        bool,
        typer.Option("--version", "-v", help="Show version and exit"),
    ] = False,
) -> None:
    """rokuoff CLI."""
    setup_logging()

    if version:
        from importlib.metadata import version as get_version

        typer.echo(f"rokuoff version {get_version('rokuoff')}")
        raise typer.Exit()
