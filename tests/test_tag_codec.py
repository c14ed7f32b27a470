"""Tests for TagCodec."""

import os
import stat
import time
from unittest.mock import patch

import pytest
from conftest import make_flac, make_mp3, set_mtime
from mutagen.flac import FLAC
from mutagen.id3 import ID3, POPM, TXXX

from msync.core.tags import TagCodec
from msync.exceptions import TagWriteError, UnsupportedFormatError
from msync.models import AudioFormat, Side, TagUpdate


class TestTagCodecRead:
    """Test reading normalized records."""

    def test_read_mp3(self, codec, tmp_path):
        """Test title, artist, album and rating are read from ID3."""
        path = make_mp3(
            tmp_path / "song.mp3", title="Song", artist="Band", album="LP", rating=4
        )

        record = codec.read(path)

        assert record.title == "Song"
        assert record.artist == "Band"
        assert record.album == "LP"
        assert record.rating == 4
        assert record.format == AudioFormat.MP3
        assert record.filename == "song.mp3"
        assert record.identity == str(path)
        assert record.side == Side.LOCAL
        assert record.size_bytes == path.stat().st_size

    def test_read_mtime_is_utc(self, codec, tmp_path):
        """Test last_modified mirrors the file's mtime as aware UTC."""
        path = make_mp3(tmp_path / "song.mp3", title="Song", mtime=1_700_000_000)

        record = codec.read(path)

        assert record.last_modified.timestamp() == 1_700_000_000
        assert record.last_modified.utcoffset().total_seconds() == 0

    def test_read_without_tags_falls_back_to_filename(self, codec, tmp_path):
        """Test an untagged file yields the file stem as title."""
        path = tmp_path / "Untitled Track.mp3"
        path.write_bytes(b"\x00" * 64)

        record = codec.read(path)

        assert record.title == "Untitled Track"
        assert record.artist == ""
        assert record.album == ""
        assert record.rating == 0

    def test_read_corrupt_container_falls_back(self, codec, tmp_path):
        """Test an unparsable file degrades instead of raising."""
        path = tmp_path / "broken.flac"
        path.write_bytes(b"not a flac stream at all")

        record = codec.read(path)

        assert record.title == "broken"
        assert record.rating == 0
        assert record.format == AudioFormat.FLAC

    def test_read_prefers_own_popm_frame(self, codec, tmp_path):
        """Test the no@email POPM frame wins over other players' frames."""
        path = make_mp3(tmp_path / "song.mp3", title="Song")
        tags = ID3(str(path))
        tags.add(POPM(email="other@player", rating=255, count=0))
        tags.add(POPM(email="no@email", rating=64, count=0))
        tags.save(str(path))

        assert codec.read(path).rating == 2

    def test_read_txxx_rating_fallback(self, codec, tmp_path):
        """Test a TXXX:RATING frame is used when there is no POPM."""
        path = make_mp3(tmp_path / "song.mp3", title="Song")
        tags = ID3(str(path))
        tags.add(TXXX(encoding=3, desc="RATING", text=["3"]))
        tags.save(str(path))

        assert codec.read(path).rating == 3

    def test_read_flac(self, codec, tmp_path):
        """Test Vorbis comments including a plain star RATING."""
        path = make_flac(
            tmp_path / "song.flac",
            {"TITLE": "Flac Song", "ARTIST": "Band", "ALBUM": "LP", "RATING": "1"},
        )

        record = codec.read(path)

        assert record.title == "Flac Song"
        assert record.artist == "Band"
        assert record.rating == 1

    def test_read_flac_fmps_rating(self, codec, tmp_path):
        """Test FMPS_RATING is used when RATING is absent."""
        path = make_flac(tmp_path / "song.flac", {"FMPS_RATING": "0.8"})

        assert codec.read(path).rating == 4

    def test_read_remote_side(self, codec, tmp_path):
        """Test the side is passed through."""
        path = make_mp3(tmp_path / "song.mp3", title="Song")

        assert codec.read(path, side=Side.REMOTE).side == Side.REMOTE

    def test_read_unsupported_extension(self, codec, tmp_path):
        """Test a non-audio extension is rejected."""
        path = tmp_path / "notes.txt"
        path.write_text("hello")

        with pytest.raises(UnsupportedFormatError):
            codec.read(path)


class TestTagCodecWrite:
    """Test partial metadata writes."""

    def test_partial_write_keeps_other_fields(self, codec, tmp_path):
        """Test writing only a rating leaves title/artist/album unchanged."""
        path = make_mp3(
            tmp_path / "song.mp3", title="Song", artist="Band", album="LP", rating=1
        )

        codec.write(path, TagUpdate(rating=3))
        record = codec.read(path)

        assert record.rating == 3
        assert record.title == "Song"
        assert record.artist == "Band"
        assert record.album == "LP"

    def test_write_replaces_popm_frames(self, codec, tmp_path):
        """Test a single no@email POPM frame remains after a rating write."""
        path = make_mp3(tmp_path / "song.mp3", title="Song")
        tags = ID3(str(path))
        tags.add(POPM(email="other@player", rating=10, count=7))
        tags.save(str(path))

        codec.write(path, TagUpdate(rating=5))

        frames = ID3(str(path)).getall("POPM")
        assert len(frames) == 1
        assert frames[0].email == "no@email"
        assert frames[0].rating == 255

    def test_write_keeps_play_count(self, codec, tmp_path):
        """Test the play counter of our own POPM frame survives."""
        path = make_mp3(tmp_path / "song.mp3", title="Song")
        tags = ID3(str(path))
        tags.add(POPM(email="no@email", rating=64, count=12))
        tags.save(str(path))

        codec.write(path, TagUpdate(rating=4))

        frame = ID3(str(path)).getall("POPM")[0]
        assert frame.rating == 196
        assert frame.count == 12

    def test_write_text_fields(self, codec, tmp_path):
        """Test text fields are written to an untagged file."""
        path = tmp_path / "bare.mp3"
        path.write_bytes(b"\x00" * 64)

        codec.write(path, TagUpdate(title="New", artist="Someone", album="Album"))
        record = codec.read(path)

        assert (record.title, record.artist, record.album) == (
            "New",
            "Someone",
            "Album",
        )

    def test_empty_string_clears_field(self, codec, tmp_path):
        """Test an empty value removes the field."""
        path = make_mp3(tmp_path / "song.mp3", title="Song", album="LP")

        codec.write(path, TagUpdate(album=""))

        assert codec.read(path).album == ""
        assert "TALB" not in ID3(str(path))

    def test_write_flac_rating_as_text(self, codec, tmp_path):
        """Test Vorbis RATING is stored as star text."""
        path = make_flac(tmp_path / "song.flac", {"TITLE": "Flac Song"})

        codec.write(path, TagUpdate(rating=2))

        audio = FLAC(str(path))
        assert audio.tags["RATING"] == ["2"]
        assert audio.tags["TITLE"] == ["Flac Song"]
        assert codec.read(path).rating == 2

    def test_write_bumps_mtime(self, codec, tmp_path):
        """Test a successful write sets mtime to now."""
        path = make_mp3(tmp_path / "song.mp3", title="Song")
        set_mtime(path, time.time() - 3600)

        codec.write(path, TagUpdate(rating=2))

        assert path.stat().st_mtime > time.time() - 60

    def test_write_leaves_no_temp_files(self, codec, tmp_path):
        """Test the sibling temp file is gone after the write."""
        path = make_mp3(tmp_path / "song.mp3", title="Song")

        codec.write(path, TagUpdate(rating=2))

        assert sorted(p.name for p in tmp_path.iterdir()) == ["song.mp3"]

    def test_write_failure_keeps_original(self, codec, tmp_path):
        """Test a failing save leaves the original bytes and no temp file."""
        path = make_mp3(tmp_path / "song.mp3", title="Song", rating=1)
        before = path.read_bytes()

        with patch.object(
            TagCodec, "_write_container", side_effect=RuntimeError("disk full")
        ):
            with pytest.raises(TagWriteError, match="disk full"):
                codec.write(path, TagUpdate(rating=5))

        assert path.read_bytes() == before
        assert sorted(p.name for p in tmp_path.iterdir()) == ["song.mp3"]

    @pytest.mark.skipif(
        hasattr(os, "geteuid") and os.geteuid() == 0,
        reason="root ignores file permissions",
    )
    def test_write_read_only_file(self, codec, tmp_path):
        """Test a read-only file raises TagWriteError."""
        path = make_mp3(tmp_path / "song.mp3", title="Song")
        path.chmod(stat.S_IRUSR)

        try:
            with pytest.raises(TagWriteError, match="read-only"):
                codec.write(path, TagUpdate(rating=5))
        finally:
            path.chmod(stat.S_IRUSR | stat.S_IWUSR)

    def test_write_missing_file(self, codec, tmp_path):
        """Test writing to a missing file raises TagWriteError."""
        with pytest.raises(TagWriteError):
            codec.write(tmp_path / "missing.mp3", TagUpdate(rating=1))

    def test_write_unsupported_extension(self, codec, tmp_path):
        """Test writing to a non-audio file is rejected."""
        path = tmp_path / "cover.jpg"
        path.write_bytes(b"\xff\xd8")

        with pytest.raises(UnsupportedFormatError):
            codec.write(path, TagUpdate(rating=1))
