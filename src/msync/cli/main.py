"""Command-line interface for the msync application.

This is the main entry point that delegates to command modules.
"""

from pathlib import Path
from typing import Any, Optional

import click

from ..utils.logging_config import configure_third_party_loggers, setup_logging
from .commands import (
    MsyncApp,
    delete_command,
    devices_command,
    edit_command,
    play_command,
    scan_command,
    sync_command,
    tree_command,
)


@click.group()
@click.option(
    "--log-level",
    default="WARNING",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    help="Set logging level",
)
@click.option("--log-file", type=click.Path(), help="Log to file")
@click.option("--device", "-d", "serial", help="Serial of the device to use")
@click.pass_context
def cli(
    ctx: Any, log_level: str, log_file: Optional[str], serial: Optional[str]
) -> None:
    """Music library metadata sync.

    Keeps tags and ratings in step between a local music folder and an
    Android device.
    """
    setup_logging(log_level=log_level, log_file=Path(log_file) if log_file else None)
    configure_third_party_loggers()

    # A prepared app may already be set as the context object
    if ctx.obj is None:
        ctx.obj = MsyncApp()
    ctx.obj.device_serial = serial


# Register commands
cli.add_command(devices_command)
cli.add_command(scan_command)
cli.add_command(tree_command)
cli.add_command(sync_command)
cli.add_command(edit_command)
cli.add_command(delete_command)
cli.add_command(play_command)


if __name__ == "__main__":
    cli()
