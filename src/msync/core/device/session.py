"""Device discovery, explicit sessions and attach/detach subscriptions.

There is no process-wide "current device". Callers obtain a
``DeviceSession`` from ``DeviceManager.connect`` and pass it into every
remote-facing call; disconnecting (or the device detaching) invalidates
the session so later calls fail fast with ``NoDeviceConnectedError``.
"""

import logging
import subprocess  # noqa: S404
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional

from ...exceptions import AdbNotFoundError, NoDeviceConnectedError, TransportError
from ...models import DeviceInfo
from .transport import AdbTransport, DeviceTransport

logger = logging.getLogger(__name__)


class DeviceSession:
    """Handle to one connected device, passed explicitly to remote operations."""

    def __init__(self, device: DeviceInfo, transport: DeviceTransport) -> None:
        """Initialize the session.

        Args:
            device: The connected device
            transport: Transport bound to that device
        """
        self.device = device
        self._transport = transport
        self._active = True

    @property
    def active(self) -> bool:
        """Whether the session can still be used."""
        return self._active

    @property
    def transport(self) -> DeviceTransport:
        """Transport for this device.

        Raises:
            NoDeviceConnectedError: If the session was invalidated
        """
        if not self._active:
            raise NoDeviceConnectedError(
                f"Device {self.device.id} is no longer connected"
            )
        return self._transport

    def invalidate(self) -> None:
        """Mark the session as unusable."""
        if self._active:
            logger.info("Session for %s invalidated", self.device.id)
        self._active = False

    def __repr__(self) -> str:
        """Debug representation."""
        state = "active" if self._active else "invalid"
        return f"DeviceSession({self.device.id!r}, {state})"


class DeviceEventKind(str, Enum):
    """Kinds of device notifications."""

    ATTACHED = "attached"
    DETACHED = "detached"


@dataclass(frozen=True)
class DeviceEvent:
    """A device attached to or detached from the host."""

    kind: DeviceEventKind
    device: DeviceInfo


DeviceListener = Callable[[DeviceEvent], None]


class DeviceManager:
    """Discovers devices over adb and hands out explicit sessions."""

    def __init__(self, adb_path: Optional[str], timeout: float = 60.0) -> None:
        """Initialize the manager.

        Args:
            adb_path: Path to the adb executable (None if not found)
            timeout: Per-command timeout in seconds
        """
        self.adb_path = adb_path
        self.timeout = timeout
        self._listeners: List[DeviceListener] = []
        self._known: Dict[str, DeviceInfo] = {}
        self._sessions: List[DeviceSession] = []

    def _adb(self, *args: str) -> str:
        if not self.adb_path:
            raise AdbNotFoundError()
        operation = args[2] if args[0] == "-s" else args[0]
        try:
            result = subprocess.run(  # noqa: S603
                [self.adb_path, *args],
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except FileNotFoundError as e:
            raise AdbNotFoundError() from e
        except (subprocess.TimeoutExpired, OSError) as e:
            raise TransportError(operation, detail=str(e)) from e
        if result.returncode != 0:
            raise TransportError(operation, detail=result.stderr.strip())
        return result.stdout

    def start_server(self) -> None:
        """Start the adb server (no-op if it already runs)."""
        self._adb("start-server")

    def _device_model(self, serial: str) -> str:
        try:
            model = self._adb("-s", serial, "shell", "getprop", "ro.product.model")
        except TransportError as e:
            logger.debug("Could not read model of %s: %s", serial, e)
            return "Unknown Device"
        return model.strip() or "Unknown Device"

    def list_devices(self) -> List[DeviceInfo]:
        """List devices that are attached and authorized.

        Returns:
            List of DeviceInfo, in adb's order
        """
        output = self._adb("devices")
        devices = []
        for line in output.splitlines()[1:]:
            parts = line.strip().split("\t")
            if len(parts) != 2 or parts[1] != "device":
                continue
            serial = parts[0]
            known = self._known.get(serial)
            model = known.model if known else self._device_model(serial)
            devices.append(DeviceInfo(id=serial, model=model))
        return devices

    def connect(self, serial: Optional[str] = None) -> DeviceSession:
        """Open a session to a device.

        Args:
            serial: Device serial; the first attached device if omitted

        Returns:
            A new active DeviceSession

        Raises:
            NoDeviceConnectedError: If no (matching) device is attached
        """
        devices = self.list_devices()
        if serial is not None:
            devices = [d for d in devices if d.id == serial]
        if not devices:
            raise NoDeviceConnectedError(
                f"Device {serial} not found" if serial else "No device connected"
            )

        device = devices[0]
        if not self.adb_path:
            raise AdbNotFoundError()
        transport = AdbTransport(self.adb_path, device.id, timeout=self.timeout)
        session = DeviceSession(device, transport)
        self._sessions.append(session)
        logger.info("Connected to %s (%s)", device.model, device.id)
        return session

    def disconnect(self, session: DeviceSession) -> None:
        """Invalidate a session explicitly."""
        session.invalidate()
        if session in self._sessions:
            self._sessions.remove(session)

    def subscribe(self, listener: DeviceListener) -> Callable[[], None]:
        """Register a listener for attach/detach events.

        Args:
            listener: Called with each DeviceEvent

        Returns:
            Callable that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def poll(self) -> List[DeviceEvent]:
        """Compare attached devices with the previous poll and notify listeners.

        Returns:
            Events generated by this poll, detaches first
        """
        current = {d.id: d for d in self.list_devices()}
        events: List[DeviceEvent] = []

        for serial, device in self._known.items():
            if serial not in current:
                events.append(DeviceEvent(DeviceEventKind.DETACHED, device))
        for serial, device in current.items():
            if serial not in self._known:
                events.append(DeviceEvent(DeviceEventKind.ATTACHED, device))

        self._known = current
        for event in events:
            logger.info("Device %s: %s", event.kind.value, event.device.id)
            if event.kind == DeviceEventKind.DETACHED:
                self._invalidate_sessions_for(event.device.id)
            self._notify(event)
        return events

    def _invalidate_sessions_for(self, serial: str) -> None:
        for session in list(self._sessions):
            if session.device.id == serial:
                session.invalidate()
                self._sessions.remove(session)

    def _notify(self, event: DeviceEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.error("Error in device listener: %s", e)
