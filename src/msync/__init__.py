"""Music library metadata sync.

Keeps title, artist, album and rating tags in step between a local music
folder and the music folder of an Android device attached over adb.
"""

__version__ = "0.1.0"

from .config import Config
from .models import FileRecord, SyncPair, TagUpdate

__all__ = [
    "Config",
    "FileRecord",
    "SyncPair",
    "TagUpdate",
]
