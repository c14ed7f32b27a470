"""Display formatters and UI helpers for CLI."""

import logging
from typing import Any, List

from rich.console import Console
from rich.table import Table

from ...core.filesystem.scanner import ScanStatistics
from ...core.sync.orchestrator import OrchestratorPhase, SyncResult
from ...models import (
    DeviceInfo,
    DirectoryNode,
    FileRecord,
    RunStatus,
    SyncDirection,
    SyncPreview,
    SyncRunProgress,
)
from ...services import BulkEditResult

console = Console()
logger = logging.getLogger(__name__)

_DIRECTION_LABELS = {
    SyncDirection.TO_REMOTE: "local → device",
    SyncDirection.TO_LOCAL: "device → local",
    SyncDirection.NONE: "up to date",
}


def format_rating(rating: int) -> str:
    """Render a 0..5 rating as stars."""
    return "★" * rating + "☆" * (5 - rating)


def display_devices(devices: List[DeviceInfo]) -> None:
    """Display attached devices.

    Args:
        devices: Devices reported by adb
    """
    if not devices:
        console.print("[yellow]No device connected[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Serial", style="cyan")
    table.add_column("Model", style="green")
    for device in devices:
        table.add_row(device.id, device.model)
    console.print(table)


def display_records(records: List[FileRecord], stats: ScanStatistics) -> None:
    """Display scanned file records and scan statistics.

    Args:
        records: Scanned records
        stats: Statistics of the scan
    """
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("File", style="cyan")
    table.add_column("Title")
    table.add_column("Artist")
    table.add_column("Album")
    table.add_column("Rating", style="yellow")
    table.add_column("Modified", style="dim")

    for record in records:
        modified = (
            record.last_modified.strftime("%Y-%m-%d %H:%M")
            if record.last_modified
            else "-"
        )
        table.add_row(
            record.filename,
            record.title,
            record.artist,
            record.album,
            format_rating(record.rating),
            modified,
        )

    console.print(table)
    console.print(
        f"[green]{stats.files_found} files[/green] in "
        f"{stats.directories_scanned} directories"
    )
    _display_errors(stats.errors)


def display_tree(path: str, nodes: List[DirectoryNode]) -> None:
    """Display one level of a directory tree.

    Args:
        path: Directory that was listed
        nodes: Its subdirectories
    """
    console.print(f"[bold]{path}[/bold]")
    if not nodes:
        console.print("  [dim](no subfolders)[/dim]")
    for node in nodes:
        console.print(f"  📁 {node.name}")


def display_preview(preview: SyncPreview, result: SyncResult) -> None:
    """Display what a sync run is about to change.

    Args:
        preview: Counts of the pending transfers
        result: Prepared sync result holding the pending pairs
    """
    console.print(
        f"\n[bold blue]🔄 {preview.total} of {preview.total_matched} matched "
        f"files need syncing[/bold blue]"
    )

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("File", style="cyan")
    table.add_column("Direction", style="green")
    for pair in result.pairs:
        table.add_row(pair.filename, _DIRECTION_LABELS[pair.direction])
    console.print(table)

    console.print(f"  → device: {preview.to_remote}")
    console.print(f"  → local:  {preview.to_local}")


def display_progress(update: SyncRunProgress) -> None:
    """Print one sync progress update.

    Args:
        update: Progress update
    """
    if update.phase == RunStatus.RUNNING and update.total_count:
        console.print(
            f"  [{update.current_index}/{update.total_count}] "
            f"{update.current_filename}"
        )


def display_sync_result(result: SyncResult) -> None:
    """Display the outcome of a sync run.

    Args:
        result: Final sync result
    """
    if result.phase == OrchestratorPhase.FAILED:
        console.print(f"\n[bold red]❌ Sync failed: {result.error_message}[/bold red]")
        if result.applied:
            console.print(
                f"  [yellow]{len(result.applied)} file(s) were synced "
                f"before the failure[/yellow]"
            )
        return

    if result.phase == OrchestratorPhase.IDLE:
        console.print("[dim]Sync cancelled, nothing was changed[/dim]")
        return

    if not result.pairs:
        console.print("\n[bold green]✅ Everything is up to date[/bold green]")
        return

    console.print(
        f"\n[bold green]✅ Sync complete: {len(result.applied)} "
        f"file(s) updated[/bold green]"
    )


def display_bulk_result(result: BulkEditResult) -> None:
    """Display the outcome of a bulk edit.

    Args:
        result: Bulk edit result
    """
    console.print(f"[green]✓ Updated {len(result.updated)} file(s)[/green]")
    if result.failed:
        _display_errors([f"{path}: {error}" for path, error in result.failed.items()])


def _display_errors(errors: List[Any]) -> None:
    if not errors:
        return
    console.print(f"\n[yellow]⚠️  {len(errors)} error(s) occurred:[/yellow]")
    for error in errors[:10]:
        console.print(f"  • {error}")
