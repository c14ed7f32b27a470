"""Device listing command."""

import logging
from typing import Any

import click

from ...exceptions import MsyncError
from ..display import console, display_devices

logger = logging.getLogger(__name__)


@click.command("devices")
@click.pass_obj
def devices_command(app: Any) -> None:
    """List devices attached over adb."""
    try:
        app.device_manager.start_server()
        devices = app.device_manager.list_devices()
    except MsyncError as e:
        logger.debug("Listing devices failed", exc_info=True)
        console.print(f"[bold red]❌ {e}[/bold red]")
        raise click.Abort()

    display_devices(devices)
