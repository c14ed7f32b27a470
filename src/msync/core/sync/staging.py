"""Remote staging: pull a device file into a temp dir, work on it, push it back.

Every read or write of a remote file goes through a private temp directory
that is removed again on every exit path.
"""

import logging
import posixpath
import shutil
import tempfile
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

from ...models import FileRecord, Side, TagUpdate
from ..device.session import DeviceSession
from ..tags.codec import TagCodec

logger = logging.getLogger(__name__)


class RemoteStagingController:
    """Reads and writes device file metadata through local staged copies."""

    def __init__(self, codec: TagCodec, temp_dir: Optional[str] = None) -> None:
        """Initialize the controller.

        Args:
            codec: Tag codec used on the staged copies
            temp_dir: Parent directory for staging dirs (system default if None)
        """
        self.codec = codec
        self.temp_dir = temp_dir

    @contextmanager
    def _staged_copy(self, session: DeviceSession, remote_path: str) -> Iterator[Path]:
        """Pull a remote file into a fresh temp dir and yield the local path."""
        staging_dir = tempfile.mkdtemp(prefix="msync-", dir=self.temp_dir)
        local_path = Path(staging_dir) / posixpath.basename(remote_path)
        try:
            session.transport.pull(remote_path, str(local_path))
            yield local_path
        finally:
            shutil.rmtree(staging_dir, ignore_errors=True)
            logger.debug("Removed staging dir %s", staging_dir)

    def read_remote(
        self,
        session: DeviceSession,
        remote_path: str,
        modified_at: Optional[datetime] = None,
        size_bytes: Optional[int] = None,
    ) -> FileRecord:
        """Read the metadata of a device file.

        Args:
            session: Active device session
            remote_path: Path of the file on the device
            modified_at: Device-side modification time, if already known;
                when None the read time of the staged copy is used
            size_bytes: Device-side size, if already known

        Returns:
            FileRecord whose identity is the device path

        Raises:
            TransportError: If the pull fails
            NoDeviceConnectedError: If the session is no longer active
        """
        with self._staged_copy(session, remote_path) as local_path:
            record = self.codec.read(local_path, side=Side.REMOTE)

        update: Dict[str, Any] = {"identity": remote_path, "side": Side.REMOTE}
        # Without a listing time the staged copy's read time stands in
        if modified_at is not None:
            update["last_modified"] = modified_at
        if size_bytes is not None:
            update["size_bytes"] = size_bytes
        return record.model_copy(update=update)

    def write_remote(
        self, session: DeviceSession, remote_path: str, update: TagUpdate
    ) -> None:
        """Apply a metadata update to a device file.

        Pulls the file, writes the tags on the staged copy and pushes it back.
        If any step fails the device file is left unchanged.

        Args:
            session: Active device session
            remote_path: Path of the file on the device
            update: Fields to write

        Raises:
            TransportError: If the pull or push fails
            TagWriteError: If the staged copy cannot be modified
            NoDeviceConnectedError: If the session is no longer active
        """
        with self._staged_copy(session, remote_path) as local_path:
            self.codec.write(local_path, update)
            session.transport.push(str(local_path), remote_path)
        logger.info("Updated remote tags of %s", remote_path)

    def stage_for_playback(self, session: DeviceSession, remote_path: str) -> Path:
        """Pull a device file into its own temp dir and keep it there.

        The copy outlives the call so an external player can open it; it is
        left to the system temp cleanup.

        Args:
            session: Active device session
            remote_path: Path of the file on the device

        Returns:
            Local path of the pulled copy

        Raises:
            TransportError: If the pull fails
            NoDeviceConnectedError: If the session is no longer active
        """
        staging_dir = tempfile.mkdtemp(prefix="msync-play-", dir=self.temp_dir)
        local_path = Path(staging_dir) / posixpath.basename(remote_path)
        try:
            session.transport.pull(remote_path, str(local_path))
        except Exception:
            shutil.rmtree(staging_dir, ignore_errors=True)
            raise
        logger.debug("Staged %s for playback at %s", remote_path, local_path)
        return local_path
