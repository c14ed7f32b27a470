"""Exceptions raised by the msync core."""

from typing import Optional


class MsyncError(Exception):
    """Base class for all msync errors."""

    pass


class DirectoryNotAccessibleError(MsyncError):
    """The root of a scan is missing or cannot be read."""

    def __init__(self, path: str, reason: str = "") -> None:
        """Initialize with the offending path and an optional reason."""
        self.path = path
        self.reason = reason
        message = f"Cannot access {path}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class TagReadError(MsyncError):
    """Embedded tags could not be parsed.

    Only raised inside the tag codec, which recovers from it.
    """

    def __init__(self, path: str, reason: str = "") -> None:
        """Initialize with the offending path and an optional reason."""
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to read tags from {path}: {reason}")


class TagWriteError(MsyncError):
    """Embedded tags could not be saved; the original file is untouched."""

    def __init__(self, path: str, reason: str = "") -> None:
        """Initialize with the offending path and an optional reason."""
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to write tags to {path}: {reason}")


class UnsupportedFormatError(MsyncError):
    """The file extension is not one of the supported audio formats."""

    def __init__(self, path: str) -> None:
        """Initialize with the offending path."""
        self.path = path
        super().__init__(f"Unsupported audio format: {path}")


class TransportError(MsyncError):
    """A device transport operation (list, pull, push, delete) failed."""

    def __init__(
        self, operation: str, path: Optional[str] = None, detail: str = ""
    ) -> None:
        """Initialize with the failed operation, its path and error detail."""
        self.operation = operation
        self.path = path
        self.detail = detail
        message = f"Device {operation} failed"
        if path:
            message += f" for {path}"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class AdbNotFoundError(TransportError):
    """No adb executable could be located."""

    def __init__(self) -> None:
        """Initialize with a fixed hint on how to fix the problem."""
        super().__init__(
            "startup",
            detail="adb executable not found; install platform-tools or set "
            "MSYNC_ADB_PATH",
        )


class NoDeviceConnectedError(MsyncError):
    """A remote operation was attempted without an active device session."""

    def __init__(self, message: str = "No device connected") -> None:
        """Initialize with an optional custom message."""
        super().__init__(message)


class SyncStateError(MsyncError):
    """An orchestrator operation is not valid in the current phase."""

    pass
