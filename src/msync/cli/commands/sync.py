"""Metadata sync command."""

import logging
from typing import Any, Optional

import click

from ...core.sync import MatchEngine, ProgressReporter, SyncOrchestrator
from ...exceptions import MsyncError
from ...models import SyncPreview
from ..display import console, display_preview, display_progress, display_sync_result

logger = logging.getLogger(__name__)


@click.command("sync")
@click.option("--local", "local_path", help="Local library folder")
@click.option("--remote", "remote_path", help="Device library folder")
@click.option("--yes", "-y", is_flag=True, help="Apply without asking")
@click.pass_obj
def sync_command(
    app: Any, local_path: Optional[str], remote_path: Optional[str], yes: bool
) -> None:
    """Sync tags between the local library and the device.

    For every file present on both sides (matched by file name) the tags of
    the more recently modified copy are written to the other one.
    """
    local_root, remote_root = app.resolve_roots(local_path, remote_path)
    if not local_root:
        raise click.UsageError(
            "No local folder given; use --local or set MSYNC_LOCAL_ROOT"
        )

    try:
        session = app.connect()
    except MsyncError as e:
        logger.debug("Connecting failed", exc_info=True)
        console.print(f"[bold red]❌ {e}[/bold red]")
        raise click.Abort()

    orchestrator = SyncOrchestrator(
        app.scanner,
        MatchEngine(),
        app.staging,
        app.codec,
        ProgressReporter(),
    )
    orchestrator.subscribe(display_progress)

    def confirm(preview: SyncPreview) -> bool:
        display_preview(preview, orchestrator.result)
        return yes or click.confirm("Apply these changes?", default=False)

    console.print(f"[bold blue]🔄 Syncing {local_root} ⇄ {remote_root}[/bold blue]")
    result = orchestrator.sync(local_root, remote_root, session, confirm)
    display_sync_result(result)

    if result.errors:
        raise SystemExit(1)
    app.settings.save(local_root, remote_root)
