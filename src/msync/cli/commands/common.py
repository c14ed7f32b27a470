"""Shared application state for CLI commands."""

import logging
from typing import Optional, Tuple

import click

from ...config import Config, SettingsStore
from ...core.device.session import DeviceManager, DeviceSession
from ...core.filesystem.scanner import DirectoryScanner
from ...core.sync.staging import RemoteStagingController
from ...core.tags.codec import TagCodec
from ...models import Side

logger = logging.getLogger(__name__)

SIDE_CHOICE = click.Choice([side.value for side in Side], case_sensitive=False)


class MsyncApp:
    """Wires configuration and core services together for the CLI."""

    def __init__(
        self,
        config: Optional[Config] = None,
        device_manager: Optional[DeviceManager] = None,
        settings: Optional[SettingsStore] = None,
    ) -> None:
        """Initialize the application.

        Args:
            config: Application configuration (read from env if omitted)
            device_manager: Device manager (built from config if omitted)
            settings: Last-used path store (config location if omitted)
        """
        self.config = config or Config()
        self.device_manager = device_manager or DeviceManager(
            self.config.adb_path, timeout=self.config.adb_timeout
        )
        self.settings = settings or SettingsStore(self.config.settings_file)
        self.device_serial: Optional[str] = None

        self.codec = TagCodec()
        self.staging = RemoteStagingController(self.codec, self.config.temp_dir)
        self.scanner = DirectoryScanner(self.codec, self.staging)

    def connect(self) -> DeviceSession:
        """Open a session to the selected (or first) device."""
        logger.debug("Connecting to device %s", self.device_serial or "(first)")
        return self.device_manager.connect(self.device_serial)

    def resolve_roots(
        self, local: Optional[str], remote: Optional[str]
    ) -> Tuple[Optional[str], str]:
        """Pick the library roots for a command.

        Explicit values win, then the last-used paths, then configuration.

        Args:
            local: Local root given on the command line
            remote: Remote root given on the command line

        Returns:
            Tuple of (local root or None, remote root)
        """
        saved = self.settings.load() if self.settings.path.exists() else {}
        configured_local = (
            str(self.config.local_root) if self.config.local_root else None
        )

        local_root = local or saved.get("local_path") or configured_local
        remote_root = remote or saved.get("remote_path") or self.config.remote_root
        return local_root, remote_root

    def root_for(self, side: Side, path: Optional[str]) -> str:
        """Resolve the root directory of one side.

        Raises:
            click.UsageError: If no local root is known
        """
        local_root, remote_root = self.resolve_roots(
            path if side == Side.LOCAL else None,
            path if side == Side.REMOTE else None,
        )
        if side == Side.REMOTE:
            return remote_root
        if not local_root:
            raise click.UsageError(
                "No local folder given; pass a path or set MSYNC_LOCAL_ROOT"
            )
        return local_root

    def session_for(self, side: Side) -> Optional[DeviceSession]:
        """Connect to the device only when the side needs one."""
        if side == Side.REMOTE:
            return self.connect()
        return None
