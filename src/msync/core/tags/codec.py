"""Per-format tag reading and writing built on mutagen.

This module is the only place that touches embedded tag containers:
- MP3 (ID3v2 text frames + POPM rating)
- FLAC / OGG (Vorbis comments, ``RATING`` field)
- WAV / AIFF (ID3 chunk, text fields only)
- M4A (MP4 atoms, text fields only)
- WMA (ASF attributes, text fields only)
"""

import logging
import os
import shutil
import tempfile
from contextlib import suppress
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Union

from mutagen.aiff import AIFF
from mutagen.asf import ASF
from mutagen.flac import FLAC
from mutagen.id3 import ID3, POPM, TALB, TIT2, TPE1, ID3NoHeaderError
from mutagen.mp4 import MP4
from mutagen.oggvorbis import OggVorbis
from mutagen.wave import WAVE

from ...exceptions import TagReadError, TagWriteError, UnsupportedFormatError
from ...models import AudioFormat, FileRecord, Side, TagUpdate
from .rating import (
    canonical_to_popm,
    normalized_to_canonical,
    parse_rating_text,
    popm_to_canonical,
)

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

ID3_FORMATS = frozenset({AudioFormat.MP3, AudioFormat.WAV, AudioFormat.AIFF})
VORBIS_FORMATS = frozenset({AudioFormat.FLAC, AudioFormat.OGG})
RATING_FORMATS = frozenset({AudioFormat.MP3, AudioFormat.FLAC, AudioFormat.OGG})

ID3_FRAMES = {"title": TIT2, "artist": TPE1, "album": TALB}
VORBIS_KEYS = {"title": "TITLE", "artist": "ARTIST", "album": "ALBUM"}
MP4_KEYS = {"title": "\xa9nam", "artist": "\xa9ART", "album": "\xa9alb"}
ASF_KEYS = {"title": "Title", "artist": "Author", "album": "WM/AlbumTitle"}

# Containers opened through their mutagen FileType (everything but bare MP3)
_OPENERS = {
    AudioFormat.FLAC: FLAC,
    AudioFormat.OGG: OggVorbis,
    AudioFormat.M4A: MP4,
    AudioFormat.WAV: WAVE,
    AudioFormat.AIFF: AIFF,
    AudioFormat.WMA: ASF,
}


def _first_text(values: Any) -> str:
    """Return the first entry of a tag value list as a string."""
    if not values:
        return ""
    return str(values[0]).strip()


class TagCodec:
    """Reads and writes normalized metadata from/to audio files."""

    POPM_EMAIL = "no@email"

    def __init__(self, popm_email: str = POPM_EMAIL) -> None:
        """Initialize the codec.

        Args:
            popm_email: Owner identifier used for the POPM frame written to MP3s
        """
        self.popm_email = popm_email

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def read(self, file_path: PathLike, side: Side = Side.LOCAL) -> FileRecord:
        """Read a normalized record from an audio file.

        Tag parse failures never raise: the record then falls back to the
        file name as title, empty artist/album and no rating.

        Args:
            file_path: Path to the audio file
            side: Which side the record describes

        Returns:
            FileRecord for the file

        Raises:
            UnsupportedFormatError: If the extension is not supported
            OSError: If the file itself cannot be stat'ed
        """
        path = Path(file_path)
        audio_format = AudioFormat.from_path(path.name)
        if audio_format is None:
            raise UnsupportedFormatError(str(path))

        stat = path.stat()
        record = FileRecord(
            identity=str(path),
            filename=path.name,
            title=path.stem,
            format=audio_format,
            size_bytes=stat.st_size,
            last_modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
            side=side,
        )

        try:
            fields = self._read_fields(path, audio_format)
        except TagReadError as e:
            logger.warning("%s; falling back to file name", e)
            return record

        if not fields.get("title"):
            fields.pop("title", None)
        return record.model_copy(update=fields)

    def _read_fields(self, path: Path, audio_format: AudioFormat) -> Dict[str, Any]:
        try:
            if audio_format == AudioFormat.MP3:
                try:
                    tags: Any = ID3(str(path))
                except ID3NoHeaderError:
                    return {}
            else:
                tags = _OPENERS[audio_format](str(path)).tags
        except Exception as e:
            raise TagReadError(str(path), str(e)) from e

        if tags is None:
            return {}

        if audio_format in ID3_FORMATS:
            return self._read_id3(tags, audio_format)
        if audio_format in VORBIS_FORMATS:
            return self._read_vorbis(tags)
        if audio_format == AudioFormat.M4A:
            return {field: _first_text(tags.get(key)) for field, key in MP4_KEYS.items()}
        return {field: _first_text(tags.get(key)) for field, key in ASF_KEYS.items()}

    def _read_id3(self, tags: Any, audio_format: AudioFormat) -> Dict[str, Any]:
        fields: Dict[str, Any] = {}
        for field, frame_cls in ID3_FRAMES.items():
            frame = tags.get(frame_cls.__name__)
            fields[field] = _first_text(frame.text) if frame is not None else ""

        if audio_format not in RATING_FORMATS:
            return fields

        popm_frames = tags.getall("POPM")
        if popm_frames:
            preferred = [f for f in popm_frames if f.email == self.popm_email]
            frame = (preferred or popm_frames)[0]
            fields["rating"] = popm_to_canonical(frame.rating)
        else:
            txxx = tags.get("TXXX:RATING")
            if txxx is not None:
                fields["rating"] = parse_rating_text(_first_text(txxx.text))
        return fields

    def _read_vorbis(self, tags: Any) -> Dict[str, Any]:
        fields: Dict[str, Any] = {
            field: _first_text(tags.get(key)) for field, key in VORBIS_KEYS.items()
        }
        rating_text = _first_text(tags.get("RATING"))
        if rating_text:
            fields["rating"] = parse_rating_text(rating_text)
            return fields

        fmps_text = _first_text(tags.get("FMPS_RATING"))
        if fmps_text:
            try:
                fields["rating"] = normalized_to_canonical(float(fmps_text))
            except ValueError:
                logger.debug("Ignoring unparsable FMPS_RATING %r", fmps_text)
        return fields

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def write(self, file_path: PathLike, update: TagUpdate) -> None:
        """Apply a partial metadata update to an audio file.

        The file is copied to a sibling temp file, the copy is modified and
        saved, and the copy then atomically replaces the original. The
        modification time is bumped to "now" on success.

        Args:
            file_path: Path to the audio file
            update: Fields to write; None fields are left untouched

        Raises:
            UnsupportedFormatError: If the extension is not supported
            TagWriteError: If the container cannot be opened or saved
        """
        path = Path(file_path)
        audio_format = AudioFormat.from_path(path.name)
        if audio_format is None:
            raise UnsupportedFormatError(str(path))
        if not path.is_file():
            raise TagWriteError(str(path), "file does not exist")
        if not os.access(path, os.W_OK):
            raise TagWriteError(str(path), "file is read-only")

        fields = update.present_fields()
        logger.debug("Writing %s to %s", fields, path)

        try:
            fd, temp_name = tempfile.mkstemp(
                prefix=f".{path.stem}.", suffix=f".msync{path.suffix}", dir=path.parent
            )
            os.close(fd)
        except OSError as e:
            raise TagWriteError(str(path), str(e)) from e

        temp_path = Path(temp_name)
        try:
            shutil.copy2(path, temp_path)
            self._write_container(temp_path, audio_format, fields)
            os.replace(temp_path, path)
        except Exception as e:
            with suppress(OSError):
                temp_path.unlink()
            raise TagWriteError(str(path), str(e)) from e

        os.utime(path, None)
        logger.info("Updated tags of %s", path.name)

    def _write_container(
        self, path: Path, audio_format: AudioFormat, fields: Dict[str, Any]
    ) -> None:
        if audio_format == AudioFormat.MP3:
            try:
                id3 = ID3(str(path))
            except ID3NoHeaderError:
                id3 = ID3()
            self._apply_id3(id3, audio_format, fields)
            id3.save(str(path))
            return

        audio = _OPENERS[audio_format](str(path))
        if audio.tags is None:
            audio.add_tags()

        if audio_format in ID3_FORMATS:
            self._apply_id3(audio.tags, audio_format, fields)
        elif audio_format in VORBIS_FORMATS:
            self._apply_vorbis(audio.tags, fields)
        elif audio_format == AudioFormat.M4A:
            self._apply_keyed(audio.tags, MP4_KEYS, fields)
        else:
            self._apply_keyed(audio.tags, ASF_KEYS, fields)

        if "rating" in fields and audio_format not in RATING_FORMATS:
            logger.debug("Rating not supported for %s, skipping", audio_format.value)
        audio.save()

    def _apply_id3(
        self, tags: Any, audio_format: AudioFormat, fields: Dict[str, Any]
    ) -> None:
        for field, frame_cls in ID3_FRAMES.items():
            if field not in fields:
                continue
            tags.delall(frame_cls.__name__)
            if fields[field]:
                tags.add(frame_cls(encoding=3, text=[fields[field]]))

        if "rating" not in fields or audio_format not in RATING_FORMATS:
            return

        play_count = 0
        for frame in tags.getall("POPM"):
            if frame.email == self.popm_email:
                play_count = getattr(frame, "count", 0)
        tags.delall("POPM")
        tags.add(
            POPM(
                email=self.popm_email,
                rating=canonical_to_popm(fields["rating"]),
                count=play_count,
            )
        )

    def _apply_vorbis(self, tags: Any, fields: Dict[str, Any]) -> None:
        self._apply_keyed(tags, VORBIS_KEYS, fields)
        if "rating" in fields:
            tags["RATING"] = [str(fields["rating"])]

    @staticmethod
    def _apply_keyed(tags: Any, keys: Dict[str, str], fields: Dict[str, Any]) -> None:
        for field, key in keys.items():
            if field not in fields:
                continue
            if fields[field]:
                tags[key] = [fields[field]]
            elif key in tags:
                del tags[key]
