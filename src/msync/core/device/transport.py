"""Device transport over the Android debug bridge.

The core only ever talks to a device through the ``DeviceTransport``
protocol (list, pull, push, delete). ``AdbTransport`` implements it by
shelling out to the ``adb`` executable.
"""

import logging
import os
import posixpath
import shlex
import shutil
import subprocess  # noqa: S404
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Protocol, Sequence

from ...exceptions import AdbNotFoundError, TransportError

logger = logging.getLogger(__name__)

PARTIAL_SUFFIX = ".msync-partial"

# Common platform-tools install locations, checked after PATH
_WELL_KNOWN_ADB_PATHS = (
    Path.home() / "AppData/Local/Android/Sdk/platform-tools/adb.exe",
    Path("C:/Program Files/Android/platform-tools/adb.exe"),
    Path("C:/platform-tools/adb.exe"),
    Path.home() / "Library/Android/sdk/platform-tools/adb",
    Path.home() / "Android/Sdk/platform-tools/adb",
    Path("/usr/lib/android-sdk/platform-tools/adb"),
)


@dataclass(frozen=True)
class RemoteEntry:
    """One directory entry on the device."""

    name: str
    path: str
    is_directory: bool
    size_bytes: int = 0
    modified_at: Optional[datetime] = None


class DeviceTransport(Protocol):
    """Minimal file operations the core needs from a device."""

    def list(self, path: str) -> List[RemoteEntry]:
        """List the direct children of a device directory."""
        ...

    def pull(self, remote_path: str, local_path: str) -> None:
        """Copy a device file to a local path."""
        ...

    def push(self, local_path: str, remote_path: str) -> None:
        """Copy a local file to a device path, replacing it."""
        ...

    def delete(self, path: str) -> None:
        """Delete a device file."""
        ...


def find_adb(configured: Optional[str] = None) -> Optional[str]:
    """Locate the adb executable.

    Checks the configured path first, then PATH, then well-known
    platform-tools install locations.

    Args:
        configured: Explicitly configured adb path

    Returns:
        Path to adb, or None if not found
    """
    if configured:
        if Path(configured).is_file() or shutil.which(configured):
            return configured
        logger.warning("Configured adb path does not exist: %s", configured)

    on_path = shutil.which("adb")
    if on_path:
        return on_path

    for candidate in _WELL_KNOWN_ADB_PATHS:
        if candidate.is_file():
            return str(candidate)
    return None


def parse_stat_line(line: str, directory: str) -> Optional[RemoteEntry]:
    """Parse one ``stat -c '%F|%s|%Y|%n'`` output line.

    Args:
        line: Output line
        directory: Directory that was listed

    Returns:
        RemoteEntry, or None for lines that are not entries
    """
    parts = line.rstrip("\r").split("|", 3)
    if len(parts) != 4:
        return None
    file_type, size_text, mtime_text, full_path = parts
    name = posixpath.basename(full_path.rstrip("/"))
    if name in ("", ".", ".."):
        return None

    modified_at = None
    try:
        seconds = int(mtime_text)
        if seconds > 0:
            modified_at = datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (ValueError, OverflowError, OSError):
        modified_at = None

    try:
        size = int(size_text)
    except ValueError:
        size = 0

    return RemoteEntry(
        name=name,
        path=posixpath.join(directory, name),
        is_directory=file_type.strip() == "directory",
        size_bytes=size,
        modified_at=modified_at,
    )


class AdbTransport:
    """DeviceTransport bound to one device serial, using the adb CLI."""

    def __init__(self, adb_path: str, serial: str, timeout: float = 60.0) -> None:
        """Initialize the transport.

        Args:
            adb_path: Path to the adb executable
            serial: Device serial number
            timeout: Per-command timeout in seconds
        """
        self.adb_path = adb_path
        self.serial = serial
        self.timeout = timeout

    def _run(
        self, args: Sequence[str], operation: str, path: Optional[str] = None
    ) -> str:
        cmd = [self.adb_path, "-s", self.serial, *args]
        logger.debug("Running: %s", " ".join(cmd))
        try:
            result = subprocess.run(  # noqa: S603
                cmd,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
                check=False,
            )
        except FileNotFoundError as e:
            raise AdbNotFoundError() from e
        except subprocess.TimeoutExpired as e:
            raise TransportError(
                operation, path, f"timed out after {self.timeout}s"
            ) from e
        except OSError as e:
            raise TransportError(operation, path, str(e)) from e

        if result.returncode != 0:
            detail = (result.stderr or result.stdout or "").strip()
            raise TransportError(
                operation, path, detail or f"exit code {result.returncode}"
            )
        return result.stdout

    def _shell(self, command: str, operation: str, path: Optional[str] = None) -> str:
        return self._run(["shell", command], operation, path)

    def list(self, path: str) -> List[RemoteEntry]:
        """List the direct children of a device directory.

        Symbolic links are followed, both for the listed directory itself
        (``/sdcard`` is one) and for its entries, which are reported with
        the type of their target. Dangling links are left out.
        """
        quoted = shlex.quote(path)
        output = self._shell(
            f"find -L {quoted} -mindepth 1 -maxdepth 1 "
            "\\( -type d -o -type f \\) "
            f"-exec stat -L -c '%F|%s|%Y|%n' {{}} +",
            "list",
            path,
        )
        entries = []
        for line in output.splitlines():
            entry = parse_stat_line(line, path)
            if entry is not None:
                entries.append(entry)
        return entries

    def pull(self, remote_path: str, local_path: str) -> None:
        """Copy a device file to a local path."""
        self._run(["pull", remote_path, local_path], "pull", remote_path)

    def push(self, local_path: str, remote_path: str) -> None:
        """Copy a local file to the device, replacing the target atomically.

        The file is pushed next to the target first and renamed over it, so
        a failed transfer never leaves a half-written target.
        """
        if not os.path.isfile(local_path):
            raise TransportError("push", remote_path, f"missing source {local_path}")

        partial = remote_path + PARTIAL_SUFFIX
        try:
            self._run(["push", local_path, partial], "push", remote_path)
            self._shell(
                f"mv -f {shlex.quote(partial)} {shlex.quote(remote_path)}",
                "push",
                remote_path,
            )
        except TransportError:
            try:
                self._shell(f"rm -f {shlex.quote(partial)}", "delete", partial)
            except TransportError as cleanup_error:
                logger.warning("Could not remove %s: %s", partial, cleanup_error)
            raise

    def delete(self, path: str) -> None:
        """Delete a device file."""
        self._shell(f"rm {shlex.quote(path)}", "delete", path)
