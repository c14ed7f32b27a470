"""Bulk edit and delete commands."""

import logging
from typing import Any, Optional, Tuple

import click

from ...exceptions import MsyncError
from ...models import Side, TagUpdate
from ...services import LibraryService
from ..display import console, display_bulk_result
from .common import SIDE_CHOICE

logger = logging.getLogger(__name__)


@click.command("edit")
@click.argument("side", type=SIDE_CHOICE)
@click.argument("paths", nargs=-1, required=True)
@click.option("--title", help="New title")
@click.option("--artist", help="New artist")
@click.option("--album", help="New album")
@click.option("--rating", type=click.IntRange(0, 5), help="New rating (0-5)")
@click.pass_obj
def edit_command(
    app: Any,
    side: str,
    paths: Tuple[str, ...],
    title: Optional[str],
    artist: Optional[str],
    album: Optional[str],
    rating: Optional[int],
) -> None:
    """Set the same tags on one or more files.

    Only the given fields are changed; an empty value clears the field.
    """
    update = TagUpdate(title=title, artist=artist, album=album, rating=rating)
    if update.is_empty:
        raise click.UsageError("Nothing to change; pass at least one field option")

    edit_side = Side(side.lower())
    service = LibraryService(app.codec, app.staging)
    try:
        session = app.session_for(edit_side)
    except MsyncError as e:
        console.print(f"[bold red]❌ {e}[/bold red]")
        raise click.Abort()

    result = service.bulk_update(edit_side, paths, update, session=session)
    display_bulk_result(result)
    if not result.success:
        raise SystemExit(1)


@click.command("delete")
@click.argument("side", type=SIDE_CHOICE)
@click.argument("paths", nargs=-1, required=True)
@click.option("--yes", "-y", is_flag=True, help="Delete without asking")
@click.pass_obj
def delete_command(app: Any, side: str, paths: Tuple[str, ...], yes: bool) -> None:
    """Delete one or more audio files."""
    if not yes and not click.confirm(
        f"Delete {len(paths)} file(s)? This cannot be undone", default=False
    ):
        console.print("[dim]Nothing deleted[/dim]")
        return

    delete_side = Side(side.lower())
    service = LibraryService(app.codec, app.staging)
    try:
        session = app.session_for(delete_side)
        deleted = service.delete_files(delete_side, paths, session=session)
    except (MsyncError, OSError) as e:
        logger.debug("Delete failed", exc_info=True)
        console.print(f"[bold red]❌ Delete failed: {e}[/bold red]")
        raise click.Abort()

    console.print(f"[green]✓ Deleted {len(deleted)} file(s)[/green]")
