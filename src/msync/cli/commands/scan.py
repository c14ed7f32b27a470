"""Scan and folder browsing commands."""

import logging
from typing import Any, Optional

import click

from ...exceptions import MsyncError
from ...models import Side
from ..display import console, display_records, display_tree
from .common import SIDE_CHOICE

logger = logging.getLogger(__name__)


@click.command("scan")
@click.argument("side", type=SIDE_CHOICE)
@click.argument("path", required=False)
@click.pass_obj
def scan_command(app: Any, side: str, path: Optional[str]) -> None:
    """Scan a library folder and list its audio files.

    SIDE is "local" or "remote"; PATH defaults to the last-used folder.
    """
    scan_side = Side(side.lower())
    root = app.root_for(scan_side, path)

    try:
        session = app.session_for(scan_side)
        with console.status(f"Scanning {root}..."):
            records = app.scanner.scan(root, scan_side, session=session)
    except MsyncError as e:
        logger.debug("Scan failed", exc_info=True)
        console.print(f"[bold red]❌ Scan failed: {e}[/bold red]")
        raise click.Abort()

    display_records(records, app.scanner.last_statistics)


@click.command("tree")
@click.argument("side", type=SIDE_CHOICE)
@click.argument("path", required=False)
@click.pass_obj
def tree_command(app: Any, side: str, path: Optional[str]) -> None:
    """List the subfolders of one folder.

    SIDE is "local" or "remote"; PATH defaults to the library root.
    """
    tree_side = Side(side.lower())
    root = app.root_for(tree_side, path)

    try:
        session = app.session_for(tree_side)
        nodes = app.scanner.list_one_level(root, tree_side, session=session)
    except MsyncError as e:
        logger.debug("Listing failed", exc_info=True)
        console.print(f"[bold red]❌ {e}[/bold red]")
        raise click.Abort()

    display_tree(root, nodes)
