"""Library service for user-initiated edits outside a sync run.

Covers single rating changes, bulk metadata edits, file deletion and
finding a playable copy of a file on either side of the library.
"""

import logging
from dataclasses import dataclass
from dataclasses import field as dataclass_field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from ..core.device.session import DeviceSession
from ..core.sync.staging import RemoteStagingController
from ..core.tags.codec import TagCodec
from ..exceptions import MsyncError, NoDeviceConnectedError, UnsupportedFormatError
from ..models import AudioFormat, Side, TagUpdate

logger = logging.getLogger(__name__)


@dataclass
class BulkEditResult:
    """Outcome of a bulk metadata edit."""

    updated: List[str] = dataclass_field(default_factory=list)
    failed: Dict[str, str] = dataclass_field(default_factory=dict)

    @property
    def success(self) -> bool:
        """Whether every file was updated."""
        return not self.failed

    def get_summary(self) -> Dict[str, Any]:
        """Get summary of the edit."""
        return {
            "success": self.success,
            "updated": len(self.updated),
            "failed": len(self.failed),
        }


class LibraryService:
    """Edits and deletes files on the local or remote side."""

    def __init__(
        self, codec: TagCodec, staging: Optional[RemoteStagingController] = None
    ) -> None:
        """Initialize library service.

        Args:
            codec: Tag codec for local files
            staging: Staging controller for device files
        """
        self.codec = codec
        self.staging = staging or RemoteStagingController(codec)

    def _write(
        self,
        side: Side,
        path: str,
        update: TagUpdate,
        session: Optional[DeviceSession],
    ) -> None:
        if side == Side.LOCAL:
            self.codec.write(path, update)
            return
        if session is None:
            raise NoDeviceConnectedError()
        self.staging.write_remote(session, path, update)

    def set_rating(
        self,
        side: Side,
        path: str,
        rating: int,
        session: Optional[DeviceSession] = None,
    ) -> None:
        """Change the rating of one file.

        Args:
            side: Side the file is on
            path: File path (local path or device path)
            rating: New rating, 0..5
            session: Device session for remote files

        Raises:
            pydantic.ValidationError: If the rating is out of range
            TagWriteError: If the tags cannot be saved
            TransportError: If staging a device file fails
        """
        update = TagUpdate(rating=rating)
        self._write(side, path, update, session)
        logger.info("Set rating of %s to %d", path, rating)

    def bulk_update(
        self,
        side: Side,
        paths: Iterable[str],
        update: TagUpdate,
        session: Optional[DeviceSession] = None,
    ) -> BulkEditResult:
        """Apply the same partial update to many files.

        A failing file is recorded and the remaining files are still
        processed.

        Args:
            side: Side the files are on
            paths: File paths
            update: Fields to write
            session: Device session for remote files

        Returns:
            BulkEditResult listing updated and failed paths
        """
        result = BulkEditResult()
        if update.is_empty:
            logger.info("Bulk edit has no fields to write")
            return result

        for path in paths:
            try:
                self._write(side, path, update, session)
            except (MsyncError, OSError) as e:
                logger.warning("Failed to update %s: %s", path, e)
                result.failed[path] = str(e)
                continue
            result.updated.append(path)

        logger.info(
            "Bulk edit finished: %d updated, %d failed",
            len(result.updated),
            len(result.failed),
        )
        return result

    def delete_files(
        self,
        side: Side,
        paths: Iterable[str],
        session: Optional[DeviceSession] = None,
    ) -> List[str]:
        """Delete files, stopping at the first failure.

        Args:
            side: Side the files are on
            paths: File paths
            session: Device session for remote files

        Returns:
            Paths that were deleted

        Raises:
            OSError: If a local file cannot be deleted
            TransportError: If a device file cannot be deleted
            NoDeviceConnectedError: If a remote delete has no session
        """
        deleted: List[str] = []
        for path in paths:
            if side == Side.LOCAL:
                Path(path).unlink()
            else:
                if session is None:
                    raise NoDeviceConnectedError()
                session.transport.delete(path)
            deleted.append(path)
            logger.info("Deleted %s", path)
        return deleted

    def playable_path(
        self, side: Side, path: str, session: Optional[DeviceSession] = None
    ) -> Path:
        """Return a local path an audio player can open for a file.

        Local files are used in place; device files are pulled into a
        temp dir first.

        Raises:
            UnsupportedFormatError: If the file is not a supported audio file
            FileNotFoundError: If a local file does not exist
            TransportError: If a device file cannot be pulled
            NoDeviceConnectedError: If a remote file has no session
        """
        if AudioFormat.from_path(path) is None:
            raise UnsupportedFormatError(path)
        if side == Side.LOCAL:
            local_path = Path(path)
            if not local_path.is_file():
                raise FileNotFoundError(f"No such file: {path}")
            return local_path
        if session is None:
            raise NoDeviceConnectedError()
        return self.staging.stage_for_playback(session, path)
