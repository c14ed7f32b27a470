"""Models for the msync application."""

from .models import (
    EPOCH,
    AudioFormat,
    DeviceInfo,
    DirectoryNode,
    FileRecord,
    RunStatus,
    Side,
    SyncDirection,
    SyncPair,
    SyncPreview,
    SyncRunProgress,
    TagUpdate,
)

__all__ = [
    "EPOCH",
    "AudioFormat",
    "DeviceInfo",
    "DirectoryNode",
    "FileRecord",
    "RunStatus",
    "Side",
    "SyncDirection",
    "SyncPair",
    "SyncPreview",
    "SyncRunProgress",
    "TagUpdate",
]
