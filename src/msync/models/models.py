"""Data models for the msync application."""

import os
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class AudioFormat(str, Enum):
    """Audio container formats recognised by the scanner."""

    MP3 = "mp3"
    FLAC = "flac"
    M4A = "m4a"
    OGG = "ogg"
    WAV = "wav"
    AIFF = "aiff"
    WMA = "wma"

    @classmethod
    def from_path(cls, path: str) -> Optional["AudioFormat"]:
        """Derive the format from a file extension (case-insensitive).

        Works for both local paths and device (posix) paths.

        Args:
            path: File path or bare file name

        Returns:
            AudioFormat, or None when the extension is not supported
        """
        ext = os.path.splitext(path)[1]
        if not ext:
            return None
        try:
            return cls(ext[1:].lower())
        except ValueError:
            return None


class Side(str, Enum):
    """Which copy of the library a record belongs to."""

    LOCAL = "local"
    REMOTE = "remote"


class FileRecord(BaseModel):
    """Normalized metadata snapshot for one audio file."""

    identity: str
    filename: str
    title: str = ""
    artist: str = ""
    album: str = ""
    rating: int = Field(default=0, ge=0, le=5)
    last_modified: Optional[datetime] = None
    format: AudioFormat
    size_bytes: int = 0
    side: Side = Side.LOCAL

    @property
    def match_key(self) -> str:
        """Cross-side join key (case-insensitive filename)."""
        return self.filename.lower()

    @property
    def modified_or_epoch(self) -> datetime:
        """Modification instant, defaulting to epoch-zero when unknown."""
        if self.last_modified is None:
            return EPOCH
        if self.last_modified.tzinfo is None:
            return self.last_modified.replace(tzinfo=timezone.utc)
        return self.last_modified

    def to_update(self) -> "TagUpdate":
        """Full metadata snapshot of this record as a write request."""
        return TagUpdate(
            title=self.title,
            artist=self.artist,
            album=self.album,
            rating=self.rating,
        )


class TagUpdate(BaseModel):
    """Partial metadata write request.

    Fields left as None are not touched on the target file.
    """

    title: Optional[str] = None
    artist: Optional[str] = None
    album: Optional[str] = None
    rating: Optional[int] = Field(default=None, ge=0, le=5)

    model_config = ConfigDict(frozen=True)

    @property
    def is_empty(self) -> bool:
        """True when no field would be written."""
        return not self.present_fields()

    def present_fields(self) -> Dict[str, object]:
        """Return only the fields that should be written."""
        return self.model_dump(exclude_none=True)


class DirectoryNode(BaseModel):
    """Lazily populated folder tree node used for browsing."""

    name: str
    path: str
    children: List["DirectoryNode"] = []
    is_expanded: bool = False


class DeviceInfo(BaseModel):
    """An attached device as reported by the debug bridge."""

    id: str
    model: str = "Unknown Device"
    connected: bool = True


class SyncDirection(str, Enum):
    """Which way metadata flows for a matched pair."""

    TO_REMOTE = "to_remote"
    TO_LOCAL = "to_local"
    NONE = "none"


@dataclass(frozen=True)
class SyncPair:
    """A local record matched to a remote record by filename."""

    local: FileRecord
    remote: FileRecord
    direction: SyncDirection

    @property
    def filename(self) -> str:
        """Display name of the pair (local side's filename)."""
        return self.local.filename

    @property
    def needs_sync(self) -> bool:
        """Whether any transfer is required for this pair."""
        return self.direction != SyncDirection.NONE


class RunStatus(str, Enum):
    """Observer-facing status of a sync run."""

    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class SyncRunProgress:
    """Progress snapshot emitted by the sync orchestrator."""

    current_index: int
    total_count: int
    current_filename: str
    phase: RunStatus
    error_message: Optional[str] = None

    def __str__(self) -> str:
        """String representation of progress."""
        parts = [f"[{self.phase.value}]", f"{self.current_index}/{self.total_count}"]
        if self.current_filename:
            parts.append(self.current_filename)
        if self.error_message:
            parts.append(f"- {self.error_message}")
        return " ".join(parts)


@dataclass(frozen=True)
class SyncPreview:
    """Counts shown to the user before any metadata is changed."""

    total_matched: int
    total: int
    to_remote: int
    to_local: int

    @classmethod
    def from_pairs(
        cls, matched: List[SyncPair], pending: List[SyncPair]
    ) -> "SyncPreview":
        """Build the preview from all matches and the pending subset."""
        return cls(
            total_matched=len(matched),
            total=len(pending),
            to_remote=sum(1 for p in pending if p.direction == SyncDirection.TO_REMOTE),
            to_local=sum(1 for p in pending if p.direction == SyncDirection.TO_LOCAL),
        )
