"""Directory scanner for both sides of the library.

Walks a local directory (``os.scandir``) or a device directory (through
the session's transport) and produces one ``FileRecord`` per supported
audio file. The walk is an explicit stack of pending directories; a
failure in one subdirectory or one file is recorded in the scan
statistics and the walk carries on.
"""

import logging
import os
import posixpath
from dataclasses import dataclass
from dataclasses import field as dataclass_field
from typing import Any, Dict, List, Optional, Tuple

from ...exceptions import (
    DirectoryNotAccessibleError,
    MsyncError,
    NoDeviceConnectedError,
    TransportError,
)
from ...models import AudioFormat, DirectoryNode, FileRecord, Side
from ..device.session import DeviceSession
from ..device.transport import RemoteEntry
from ..sync.staging import RemoteStagingController
from ..tags.codec import TagCodec

logger = logging.getLogger(__name__)


@dataclass
class ScanStatistics:
    """Statistics from one scan."""

    files_found: int = 0
    directories_scanned: int = 0
    errors: List[str] = dataclass_field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert statistics to dictionary format.

        Returns:
            Dictionary with statistics and limited error list
        """
        return {
            "files_found": self.files_found,
            "directories_scanned": self.directories_scanned,
            "error_count": len(self.errors),
            "errors": self.errors[:10],
        }


def _sort_key(name: str) -> Tuple[str, str]:
    return (name.lower(), name)


class DirectoryScanner:
    """Scans local and remote directory trees into file records."""

    def __init__(
        self, codec: TagCodec, staging: Optional[RemoteStagingController] = None
    ) -> None:
        """Initialize the scanner.

        Args:
            codec: Tag codec used for local files
            staging: Staging controller used for remote files
        """
        self.codec = codec
        self.staging = staging or RemoteStagingController(codec)
        self.last_statistics = ScanStatistics()

    def scan(
        self, root: str, side: Side, session: Optional[DeviceSession] = None
    ) -> List[FileRecord]:
        """Recursively scan a directory tree.

        Args:
            root: Root directory (local path or device path)
            side: Which side the root is on
            session: Device session, required for the remote side

        Returns:
            One FileRecord per supported audio file, depth-first

        Raises:
            DirectoryNotAccessibleError: If the root cannot be listed
            NoDeviceConnectedError: If a remote scan has no active session
        """
        if side == Side.REMOTE:
            session = self._require_session(session)

        stats = ScanStatistics()
        self.last_statistics = stats
        logger.info("Scanning %s directory: %s", side.value, root)

        records: List[FileRecord] = []
        # Root failures are fatal, so list it outside the loop
        stack: List[Tuple[str, List[Any]]] = [(root, self._list(root, side, session))]

        while stack:
            directory, entries = stack.pop()
            logger.debug("Scanning %s (%d entries)", directory, len(entries))
            stats.directories_scanned += 1
            subdirs = []
            for entry in entries:
                name, path, is_dir = self._entry_info(entry, side)
                if is_dir:
                    subdirs.append(path)
                    continue
                audio_format = AudioFormat.from_path(name)
                if audio_format is None:
                    continue
                record = self._read_record(entry, audio_format, side, session, stats)
                if record is not None:
                    records.append(record)
                    stats.files_found += 1

            # Reversed so the first subdirectory is visited first
            for subdir in reversed(subdirs):
                try:
                    stack.append((subdir, self._list(subdir, side, session)))
                except DirectoryNotAccessibleError as e:
                    logger.warning("Skipping directory: %s", e)
                    stats.errors.append(str(e))

        logger.info(
            "Scan of %s complete: %d files in %d directories (%d errors)",
            root,
            stats.files_found,
            stats.directories_scanned,
            len(stats.errors),
        )
        return records

    def list_one_level(
        self, path: str, side: Side, session: Optional[DeviceSession] = None
    ) -> List[DirectoryNode]:
        """List the visible subdirectories of one directory.

        Args:
            path: Directory to list
            side: Which side the directory is on
            session: Device session, required for the remote side

        Returns:
            DirectoryNode per non-hidden subdirectory, sorted case-insensitively

        Raises:
            DirectoryNotAccessibleError: If the directory cannot be listed
            NoDeviceConnectedError: If a remote listing has no active session
        """
        if side == Side.REMOTE:
            session = self._require_session(session)

        nodes = []
        for entry in self._list(path, side, session):
            name, entry_path, is_dir = self._entry_info(entry, side)
            if is_dir and not name.startswith("."):
                nodes.append(DirectoryNode(name=name, path=entry_path))
        return nodes

    @staticmethod
    def _require_session(session: Optional[DeviceSession]) -> DeviceSession:
        if session is None or not session.active:
            raise NoDeviceConnectedError()
        return session

    @staticmethod
    def _entry_info(entry: Any, side: Side) -> Tuple[str, str, bool]:
        if side == Side.REMOTE:
            return entry.name, entry.path, entry.is_directory
        try:
            is_dir = entry.is_dir(follow_symlinks=False)
        except OSError:
            is_dir = False
        return entry.name, entry.path, is_dir

    def _list(
        self, path: str, side: Side, session: Optional[DeviceSession]
    ) -> List[Any]:
        """List one directory, sorted case-insensitively by name.

        Raises:
            DirectoryNotAccessibleError: If the directory cannot be listed
        """
        if side == Side.REMOTE:
            transport = self._require_session(session).transport
            try:
                entries: List[Any] = transport.list(path)
            except TransportError as e:
                raise DirectoryNotAccessibleError(path, e.detail or str(e)) from e
        else:
            if not os.path.isdir(path):
                raise DirectoryNotAccessibleError(path, "not a directory")
            try:
                with os.scandir(path) as it:
                    entries = list(it)
            except OSError as e:
                raise DirectoryNotAccessibleError(path, e.strerror or str(e)) from e
        return sorted(entries, key=lambda entry: _sort_key(entry.name))

    def _read_record(
        self,
        entry: Any,
        audio_format: AudioFormat,
        side: Side,
        session: Optional[DeviceSession],
        stats: ScanStatistics,
    ) -> Optional[FileRecord]:
        if side == Side.LOCAL:
            try:
                return self.codec.read(entry.path, side=Side.LOCAL)
            except (OSError, MsyncError) as e:
                logger.warning("Skipping %s: %s", entry.path, e)
                stats.errors.append(f"{entry.path}: {e}")
                return None

        remote_session = self._require_session(session)
        try:
            return self.staging.read_remote(
                remote_session,
                entry.path,
                modified_at=entry.modified_at,
                size_bytes=entry.size_bytes,
            )
        except NoDeviceConnectedError:
            raise
        except (OSError, MsyncError) as e:
            logger.warning("Could not stage %s, using listing data: %s", entry.path, e)
            stats.errors.append(f"{entry.path}: {e}")
            return self._fallback_record(entry, audio_format)

    @staticmethod
    def _fallback_record(entry: RemoteEntry, audio_format: AudioFormat) -> FileRecord:
        """Minimal record built from the listing alone."""
        return FileRecord(
            identity=entry.path,
            filename=entry.name,
            title=posixpath.splitext(entry.name)[0],
            format=audio_format,
            size_bytes=entry.size_bytes,
            last_modified=entry.modified_at,
            side=Side.REMOTE,
        )

