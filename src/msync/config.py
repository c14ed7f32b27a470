"""Configuration management for the msync application."""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from .core.device.transport import find_adb

logger = logging.getLogger(__name__)

DEFAULT_REMOTE_ROOT = "/sdcard/Music"

# Load .env file from config directory or project root
_config_env = Path(__file__).parent.parent.parent / "config" / ".env"
if _config_env.exists():
    load_dotenv(_config_env)
else:
    load_dotenv()


class Config:
    """Application configuration."""

    def __init__(self) -> None:
        """Initialize configuration from environment variables."""
        # Library roots
        local_root = os.getenv("MSYNC_LOCAL_ROOT")
        self.local_root: Optional[Path] = Path(local_root) if local_root else None
        self.remote_root = os.getenv("MSYNC_REMOTE_ROOT", DEFAULT_REMOTE_ROOT)

        # Device bridge settings
        self.adb_path = find_adb(os.getenv("MSYNC_ADB_PATH"))
        self.adb_timeout = float(os.getenv("MSYNC_ADB_TIMEOUT", "60"))

        # Staging settings
        self.temp_dir = os.getenv("MSYNC_TEMP_DIR") or None

        # Persisted last-used paths
        default_settings = str(Path.home() / ".msync" / "settings.json")
        self.settings_file = Path(os.getenv("MSYNC_SETTINGS_FILE", default_settings))


class SettingsStore:
    """Persists the last-used local and remote library paths as JSON."""

    def __init__(self, path: Path) -> None:
        """Initialize settings store.

        Args:
            path: Location of the settings file
        """
        self.path = Path(path)

    def load(self) -> Dict[str, Any]:
        """Load saved paths.

        A missing or unreadable file yields the defaults.

        Returns:
            Dictionary with "local_path" and "remote_path"
        """
        settings: Dict[str, Any] = {
            "local_path": None,
            "remote_path": DEFAULT_REMOTE_ROOT,
        }
        if not self.path.exists():
            return settings

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Could not read settings from %s: %s", self.path, e)
            return settings

        if not isinstance(data, dict):
            logger.warning("Ignoring malformed settings file %s", self.path)
            return settings

        if isinstance(data.get("local_path"), str):
            settings["local_path"] = data["local_path"]
        if isinstance(data.get("remote_path"), str) and data["remote_path"]:
            settings["remote_path"] = data["remote_path"]
        return settings

    def save(self, local_path: Optional[str], remote_path: str) -> None:
        """Save the paths, creating the parent directory if needed.

        Args:
            local_path: Local library root
            remote_path: Device library root
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"local_path": local_path, "remote_path": remote_path}
        self.path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        logger.debug("Saved settings to %s", self.path)
