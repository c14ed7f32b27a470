"""Device module.

Handles the debug-bridge transport, device discovery and sessions.
"""

from .session import (
    DeviceEvent,
    DeviceEventKind,
    DeviceListener,
    DeviceManager,
    DeviceSession,
)
from .transport import AdbTransport, DeviceTransport, RemoteEntry, find_adb

__all__ = [
    "AdbTransport",
    "DeviceTransport",
    "RemoteEntry",
    "find_adb",
    "DeviceEvent",
    "DeviceEventKind",
    "DeviceListener",
    "DeviceManager",
    "DeviceSession",
]
