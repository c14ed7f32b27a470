"""Shared fixtures: a folder-backed fake device and tiny tagged audio files."""

import os
import shutil
import struct
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Set

import pytest
from mutagen.flac import FLAC
from mutagen.id3 import ID3, POPM, TALB, TIT2, TPE1

from msync.core.device import DeviceSession, RemoteEntry
from msync.core.filesystem import DirectoryScanner
from msync.core.sync import RemoteStagingController
from msync.core.tags import TagCodec, canonical_to_popm
from msync.exceptions import TransportError
from msync.models import DeviceInfo

REMOTE_ROOT = "/sdcard/Music"


class FakeTransport:
    """DeviceTransport backed by a local folder standing in for the device."""

    def __init__(self, backing_dir: Path, remote_root: str = REMOTE_ROOT) -> None:
        self.backing_dir = backing_dir
        self.remote_root = remote_root
        self.fail_list: Set[str] = set()
        self.fail_pull: Set[str] = set()
        self.fail_push: Set[str] = set()
        self.no_mtime: Set[str] = set()
        self.calls: List[tuple] = []

    def local_path(self, remote_path: str) -> Path:
        relative = os.path.relpath(remote_path, self.remote_root)
        return self.backing_dir / relative

    def list(self, path: str) -> List[RemoteEntry]:
        self.calls.append(("list", path))
        target = self.local_path(path)
        if path in self.fail_list or not target.is_dir():
            raise TransportError("list", path, "No such file or directory")
        entries = []
        for child in target.iterdir():
            stat = child.stat()
            child_path = f"{path.rstrip('/')}/{child.name}"
            modified_at = None
            if child_path not in self.no_mtime:
                modified_at = datetime.fromtimestamp(
                    int(stat.st_mtime), tz=timezone.utc
                )
            entries.append(
                RemoteEntry(
                    name=child.name,
                    path=child_path,
                    is_directory=child.is_dir(),
                    size_bytes=stat.st_size,
                    modified_at=modified_at,
                )
            )
        return entries

    def pull(self, remote_path: str, local_path: str) -> None:
        self.calls.append(("pull", remote_path))
        source = self.local_path(remote_path)
        if remote_path in self.fail_pull or not source.is_file():
            raise TransportError("pull", remote_path, "remote object does not exist")
        shutil.copyfile(source, local_path)

    def push(self, local_path: str, remote_path: str) -> None:
        self.calls.append(("push", remote_path))
        if remote_path in self.fail_push:
            raise TransportError("push", remote_path, "connection reset")
        shutil.copyfile(local_path, self.local_path(remote_path))

    def delete(self, path: str) -> None:
        self.calls.append(("delete", path))
        target = self.local_path(path)
        if not target.is_file():
            raise TransportError("delete", path, "No such file or directory")
        target.unlink()


def set_mtime(path: Path, timestamp: float) -> None:
    """Set both access and modification time of a file."""
    os.utime(path, (timestamp, timestamp))


def make_mp3(
    path: Path,
    title: str = "",
    artist: str = "",
    album: str = "",
    rating: Optional[int] = None,
    mtime: Optional[float] = None,
) -> Path:
    """Write a small file carrying only an ID3v2 tag."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"\x00" * 256)

    tags = ID3()
    if title:
        tags.add(TIT2(encoding=3, text=[title]))
    if artist:
        tags.add(TPE1(encoding=3, text=[artist]))
    if album:
        tags.add(TALB(encoding=3, text=[album]))
    if rating is not None:
        tags.add(POPM(email="no@email", rating=canonical_to_popm(rating), count=0))
    tags.save(str(path))

    if mtime is not None:
        set_mtime(path, mtime)
    return path


def _flac_header() -> bytes:
    """fLaC marker plus a single (last) STREAMINFO block: 44.1kHz stereo 16-bit."""
    block_header = bytes([0x80, 0x00, 0x00, 34])
    sizes = struct.pack(">HH", 4096, 4096) + b"\x00" * 6
    packed = (44100 << 44) | (1 << 41) | (15 << 36)
    return b"fLaC" + block_header + sizes + packed.to_bytes(8, "big") + b"\x00" * 16


def make_flac(
    path: Path,
    fields: Optional[Dict[str, str]] = None,
    mtime: Optional[float] = None,
) -> Path:
    """Write a header-only FLAC stream with the given Vorbis comments."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(_flac_header())
    if fields:
        audio = FLAC(str(path))
        audio.add_tags()
        for key, value in fields.items():
            audio.tags[key] = [value]
        audio.save()
    if mtime is not None:
        set_mtime(path, mtime)
    return path


@pytest.fixture
def codec():
    """Create a tag codec."""
    return TagCodec()


@pytest.fixture
def device_dir(tmp_path):
    """Folder holding the fake device's files."""
    directory = tmp_path / "device"
    directory.mkdir()
    return directory


@pytest.fixture
def local_dir(tmp_path):
    """Folder holding the local library."""
    directory = tmp_path / "local"
    directory.mkdir()
    return directory


@pytest.fixture
def staging_dir(tmp_path):
    """Parent directory for staging copies."""
    directory = tmp_path / "staging"
    directory.mkdir()
    return directory


@pytest.fixture
def transport(device_dir):
    """Create a fake transport over the device folder."""
    return FakeTransport(device_dir)


@pytest.fixture
def session(transport):
    """Create an active session on the fake device."""
    return DeviceSession(DeviceInfo(id="FAKE123", model="Pixel Test"), transport)


@pytest.fixture
def staging(codec, staging_dir):
    """Create a staging controller using the private staging dir."""
    return RemoteStagingController(codec, temp_dir=str(staging_dir))


@pytest.fixture
def scanner(codec, staging):
    """Create a directory scanner."""
    return DirectoryScanner(codec, staging)
