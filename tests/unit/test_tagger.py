"""
Unit tests for MetadataTagger and the mutagen MP4 writer.
"""

import struct
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from mutagen.mp4 import MP4, MP4Cover

from vgm_convert.core.audio_file import AudioFile, FileStage
from vgm_convert.core.exceptions import InvalidStateError, MetadataWriteError
from vgm_convert.metadata.mp4_writer import load_cover, write_mp4_tags
from vgm_convert.metadata.tagger import (
    MetadataTagger,
    build_base_tags,
    check_cover,
    prepare_cover,
    validate_tags,
)


def _atom(name: bytes, payload: bytes) -> bytes:
    return struct.pack(">I", 8 + len(payload)) + name + payload


def build_m4a(path: Path) -> Path:
    """Write a minimal MPEG-4 audio file (ftyp, moov/mvhd, mdat) without tags."""
    ftyp = _atom(b"ftyp", b"M4A " + struct.pack(">I", 0) + b"M4A mp42isom")
    mvhd = _atom(b"mvhd", (
        struct.pack(">IIIII", 0, 0, 0, 44100, 44100)  # version/flags, times, timescale, 1s
        + struct.pack(">IH", 0x00010000, 0x0100)  # rate, volume
        + b"\x00" * (10 + 36 + 24)  # reserved, matrix, pre-defined
        + struct.pack(">I", 2)  # next track id
    ))
    moov = _atom(b"moov", mvhd)
    mdat = _atom(b"mdat", b"\x00" * 32)
    path.write_bytes(ftyp + moov + mdat)
    return path


class TestMetadataTagger:

    @pytest.fixture
    def final_file(self, tmp_path):
        path = tmp_path / "track01.m4a"
        path.write_bytes(b"ftypM4A ")
        return AudioFile(path, FileStage.FINAL)

    def test_title_merged_into_base_tags(self, final_file, tag_writer):
        tagger = MetadataTagger({"album": "X", "artist": "Y"}, writer=tag_writer)

        written = tagger.tag(final_file)

        assert written == {"album": "X", "artist": "Y", "title": "track01"}
        assert tag_writer.calls == [(final_file.path, written, {})]

    def test_base_tags_are_not_mutated(self, final_file, tag_writer):
        base = {"album": "X"}
        tagger = MetadataTagger(base, writer=tag_writer)

        tagger.tag(final_file)

        assert base == {"album": "X"}
        assert "title" not in tagger.base_tags

    def test_cover_adds_attachment_options(self, final_file, tag_writer, tmp_path):
        cover = tmp_path / "cover.jpg"
        tagger = MetadataTagger({"album": "X"}, cover_path=cover, writer=tag_writer)

        tagger.tag(final_file)

        assert tag_writer.calls[0][2] == {"disposition": True, "attachments": [str(cover)]}

    def test_requires_final_stage(self, tmp_path, tag_writer):
        wav = AudioFile(tmp_path / "track01.wav", FileStage.INTERMEDIATE)

        with pytest.raises(InvalidStateError):
            MetadataTagger({}, writer=tag_writer).tag(wav)
        assert tag_writer.calls == []

    def test_writer_failure_wrapped_and_file_kept(self, final_file, make_writer):
        tagger = MetadataTagger({"album": "X"}, writer=make_writer(fail_for={"track01"}))

        with pytest.raises(MetadataWriteError) as exc_info:
            tagger.tag(final_file)

        assert exc_info.value.stage == "tagging"
        assert final_file.path.exists()

    def test_unknown_tag_names_rejected(self):
        with pytest.raises(ValueError):
            MetadataTagger({"composer": "Koji Kondo"})


class TestTagHelpers:

    def test_build_base_tags_drops_empty_values(self):
        tags = build_base_tags(album="Mario Kart Wii", artist="", genre="  ", date="2008")
        assert tags == {"album": "Mario Kart Wii", "date": "2008"}

    def test_validate_tags_stringifies(self):
        assert validate_tags({"date": 2008}) == {"date": "2008"}

    def test_prepare_cover_copies_with_extension(self, tmp_path, cover_image):
        run_dir = tmp_path / "out" / "1"
        run_dir.mkdir(parents=True)

        copied = prepare_cover(cover_image, run_dir)

        assert copied == run_dir / "cover.png"
        assert copied.read_bytes() == cover_image.read_bytes()

    def test_prepare_cover_missing_image(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            prepare_cover(tmp_path / "nope.jpg", tmp_path)

    def test_check_cover_accepts_jpeg_and_png(self, tmp_path, cover_image):
        jpeg = tmp_path / "front.JPEG"
        jpeg.write_bytes(b"\xff\xd8\xff")

        assert check_cover(cover_image) == cover_image
        assert check_cover(str(jpeg)) == jpeg

    @pytest.mark.parametrize("name", ["art.webp", "art.gif", "art"])
    def test_check_cover_rejects_unembeddable_images(self, tmp_path, name):
        cover = tmp_path / name
        cover.write_bytes(b"image")

        with pytest.raises(ValueError, match="Unsupported cover image type"):
            check_cover(cover)

    def test_prepare_cover_rejects_before_copying(self, tmp_path):
        cover = tmp_path / "art.gif"
        cover.write_bytes(b"GIF89a")
        run_dir = tmp_path / "run"
        run_dir.mkdir()

        with pytest.raises(ValueError):
            prepare_cover(cover, run_dir)
        assert list(run_dir.iterdir()) == []


class TestMP4Writer:

    @pytest.fixture
    def mp4(self):
        with patch("vgm_convert.metadata.mp4_writer.MP4") as mp4_class:
            instance = MagicMock()
            instance.tags = {}
            mp4_class.return_value = instance
            yield mp4_class, instance

    def test_tags_mapped_to_atoms(self, mp4):
        mp4_class, instance = mp4

        write_mp4_tags(Path("/out/1/track01.m4a"), {
            "title": "track01", "album": "X", "artist": "Y",
            "genre": "Game", "date": "2008", "comment": "ripped",
        })

        mp4_class.assert_called_once_with("/out/1/track01.m4a")
        assert instance.tags == {
            "\xa9nam": ["track01"],
            "\xa9alb": ["X"],
            "\xa9ART": ["Y"],
            "\xa9gen": ["Game"],
            "\xa9day": ["2008"],
            "\xa9cmt": ["ripped"],
        }
        instance.save.assert_called_once_with()

    def test_adds_tag_container_when_missing(self, mp4):
        _, instance = mp4
        instance.tags = None
        instance.add_tags.side_effect = lambda: setattr(instance, "tags", {})

        write_mp4_tags("/out/1/track01.m4a", {"title": "track01"})

        instance.add_tags.assert_called_once_with()
        assert instance.tags == {"\xa9nam": ["track01"]}

    def test_cover_embedded_with_disposition(self, mp4, cover_image):
        _, instance = mp4

        write_mp4_tags("/out/1/track01.m4a", {"title": "track01"},
                       {"disposition": True, "attachments": [str(cover_image)]})

        covers = instance.tags["covr"]
        assert len(covers) == 1
        assert covers[0].imageformat == MP4Cover.FORMAT_PNG
        assert bytes(covers[0]) == cover_image.read_bytes()

    def test_no_cover_without_options(self, mp4):
        _, instance = mp4

        write_mp4_tags("/out/1/track01.m4a", {"title": "track01"}, {})

        assert "covr" not in instance.tags

    def test_jpeg_cover_format(self, tmp_path):
        cover = tmp_path / "front.JPG"
        cover.write_bytes(b"\xff\xd8\xff")
        assert load_cover(cover).imageformat == MP4Cover.FORMAT_JPEG

    def test_unsupported_cover_format(self, tmp_path):
        cover = tmp_path / "front.gif"
        cover.write_bytes(b"GIF89a")
        with pytest.raises(ValueError):
            load_cover(cover)


class TestMP4RoundTrip:
    """Writes into a real MPEG-4 container and reads it back with mutagen."""

    def test_tags_and_cover_read_back(self, tmp_path, cover_image):
        track = build_m4a(tmp_path / "track01.m4a")

        write_mp4_tags(track, {"title": "track01", "album": "Mario Kart Wii", "date": "2008"},
                       {"disposition": True, "attachments": [str(cover_image)]})

        audio = MP4(str(track))
        assert audio.tags["\xa9nam"] == ["track01"]
        assert audio.tags["\xa9alb"] == ["Mario Kart Wii"]
        assert audio.tags["\xa9day"] == ["2008"]
        covers = audio.tags["covr"]
        assert len(covers) == 1
        assert covers[0].imageformat == MP4Cover.FORMAT_PNG
        assert bytes(covers[0]) == cover_image.read_bytes()

    def test_tagger_with_real_writer(self, tmp_path, cover_image):
        track = build_m4a(tmp_path / "Main Theme.m4a")
        run_cover = prepare_cover(cover_image, tmp_path)
        tagger = MetadataTagger({"artist": "Nintendo", "genre": "Video Game"}, cover_path=run_cover)

        tagger.tag(AudioFile(track, FileStage.FINAL))

        audio = MP4(str(track))
        assert audio.tags["\xa9nam"] == ["Main Theme"]
        assert audio.tags["\xa9ART"] == ["Nintendo"]
        assert audio.tags["\xa9gen"] == ["Video Game"]
        assert "covr" in audio.tags
        assert audio.info.length == pytest.approx(1.0)
