"""Playback command."""

import logging
from typing import Any

import click

from ...exceptions import MsyncError
from ...models import Side
from ...services import LibraryService
from ..display import console
from .common import SIDE_CHOICE

logger = logging.getLogger(__name__)


@click.command("play")
@click.argument("side", type=SIDE_CHOICE)
@click.argument("path")
@click.pass_obj
def play_command(app: Any, side: str, path: str) -> None:
    """Open an audio file in the system's default player.

    Device files are pulled to a temporary copy first.
    """
    play_side = Side(side.lower())
    service = LibraryService(app.codec, app.staging)
    try:
        session = app.session_for(play_side)
        local_path = service.playable_path(play_side, path, session=session)
    except (MsyncError, OSError) as e:
        logger.debug("Preparing playback failed", exc_info=True)
        console.print(f"[bold red]❌ Cannot play {path}: {e}[/bold red]")
        raise click.Abort()

    console.print(f"[green]▶ Playing {local_path.name}[/green]")
    if click.launch(str(local_path)) != 0:
        console.print("[bold red]❌ No player could open the file[/bold red]")
        raise SystemExit(1)
