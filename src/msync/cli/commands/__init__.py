"""CLI command modules."""

from .common import MsyncApp
from .devices import devices_command
from .edit import delete_command, edit_command
from .play import play_command
from .scan import scan_command, tree_command
from .sync import sync_command

__all__ = [
    "MsyncApp",
    "devices_command",
    "scan_command",
    "tree_command",
    "sync_command",
    "edit_command",
    "delete_command",
    "play_command",
]
