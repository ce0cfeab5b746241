"""
Shared pytest fixtures for VGM Convert tests.

Provides fake external tools so the pipeline can be exercised without
vgmstream-cli, ffmpeg or real MP4 files.
"""

import threading
from pathlib import Path
from typing import Iterable, List

import pytest

from vgm_convert.core.config_manager import ConverterConfig
from vgm_convert.utils.tool_runner import ToolResult


class FakeToolRunner:
    """Stands in for vgmstream-cli and ffmpeg by writing placeholder files."""

    def __init__(self,
                 fail_decode: Iterable[str] = (),
                 fail_encode: Iterable[str] = (),
                 decode_stderr: str = ""):
        self.fail_decode = set(fail_decode)
        self.fail_encode = set(fail_encode)
        self.decode_stderr = decode_stderr
        self.calls: List[List[str]] = []
        self._lock = threading.Lock()

    def __call__(self, command):
        with self._lock:
            self.calls.append(list(command))

        tool = command[0]
        if tool == "vgmstream-cli":
            target = Path(command[command.index("-o") + 1])
            source = Path(command[-1])
            if source.stem in self.fail_decode:
                return ToolResult(command, 1, stderr="failed to open file")
            target.write_bytes(b"RIFF" + source.read_bytes())
            return ToolResult(command, 0, stderr=self.decode_stderr)

        if tool == "ffmpeg":
            source = Path(command[command.index("-i") + 1])
            target = Path(command[-1])
            if source.stem in self.fail_encode:
                return ToolResult(command, 1, stderr="Invalid data found when processing input")
            target.write_bytes(b"ftypM4A " + source.read_bytes())
            return ToolResult(command, 0)

        raise FileNotFoundError(f"No such file or directory: '{tool}'")

    def commands_for(self, tool: str) -> List[List[str]]:
        return [call for call in self.calls if call[0] == tool]


class RecordingTagWriter:
    """Records tag writes instead of touching the files."""

    def __init__(self, fail_for: Iterable[str] = ()):
        self.fail_for = set(fail_for)
        self.calls = []
        self._lock = threading.Lock()

    def __call__(self, path, tags, options):
        if Path(path).stem in self.fail_for:
            raise RuntimeError("not a valid MP4 file")
        with self._lock:
            self.calls.append((Path(path), dict(tags), dict(options)))

    def tags_for(self, stem: str):
        for path, tags, _ in self.calls:
            if path.stem == stem:
                return tags
        return None


@pytest.fixture
def fake_runner():
    return FakeToolRunner()


@pytest.fixture
def tag_writer():
    return RecordingTagWriter()


@pytest.fixture
def config():
    """Default configuration with a small worker pool."""
    config = ConverterConfig()
    config.processing.max_workers = 2
    return config


@pytest.fixture
def input_dir(tmp_path):
    """Input folder with three containers and some noise."""
    folder = tmp_path / "rip"
    folder.mkdir()
    for name in ("track01.brstm", "track02.bfstm", "track03.bwav"):
        (folder / name).write_bytes(b"container data")
    (folder / "notes.txt").write_text("not audio")
    (folder / "extras").mkdir()
    return folder


@pytest.fixture
def output_root(tmp_path):
    return tmp_path / "out"


@pytest.fixture
def cover_image(tmp_path):
    cover = tmp_path / "art.png"
    cover.write_bytes(b"\x89PNG\r\n\x1a\n" + b"\x00" * 16)
    return cover


@pytest.fixture
def make_runner():
    """Factory for FakeToolRunner with failure injection."""
    return FakeToolRunner


@pytest.fixture
def make_writer():
    """Factory for RecordingTagWriter with failure injection."""
    return RecordingTagWriter
