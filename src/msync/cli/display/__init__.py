"""CLI display and formatting utilities."""

from .formatters import (
    console,
    display_bulk_result,
    display_devices,
    display_preview,
    display_progress,
    display_records,
    display_sync_result,
    display_tree,
    format_rating,
)

__all__ = [
    "console",
    "display_bulk_result",
    "display_devices",
    "display_preview",
    "display_progress",
    "display_records",
    "display_sync_result",
    "display_tree",
    "format_rating",
]
