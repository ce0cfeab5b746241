"""
Unit tests for TranscodeStageRunner.

Covers command construction, stage ordering, diagnostics handling and
intermediate file cleanup.
"""

import logging

import pytest

from vgm_convert.core.audio_file import AudioFile, FileStage
from vgm_convert.core.config_manager import AudioConfig, ToolsConfig
from vgm_convert.core.exceptions import ExternalToolError, InvalidStateError
from vgm_convert.core.transcoder import TranscodeStageRunner


class TestTranscodeStageRunner:

    @pytest.fixture
    def run_dir(self, tmp_path):
        path = tmp_path / "out" / "1"
        path.mkdir(parents=True)
        return path

    @pytest.fixture
    def raw_file(self, tmp_path):
        path = tmp_path / "Rainbow Road.brstm"
        path.write_bytes(b"container")
        return AudioFile(path, FileStage.RAW)

    @pytest.fixture
    def transcoder(self, run_dir, fake_runner):
        return TranscodeStageRunner(run_dir, runner=fake_runner)

    def test_intermediate_command(self, transcoder, raw_file, run_dir, fake_runner):
        wav = transcoder.to_intermediate(raw_file)

        assert fake_runner.calls == [[
            "vgmstream-cli", "-l", "1.0",
            "-o", str(run_dir / "Rainbow Road.wav"),
            str(raw_file.path),
        ]]
        assert wav.stage is FileStage.INTERMEDIATE
        assert wav.path == run_dir / "Rainbow Road.wav"
        assert wav.path.exists()

    def test_final_command(self, transcoder, raw_file, run_dir, fake_runner):
        wav = transcoder.to_intermediate(raw_file)
        final = transcoder.to_final(wav)

        assert fake_runner.calls[-1] == [
            "ffmpeg", "-i", str(run_dir / "Rainbow Road.wav"),
            "-acodec", "alac", str(run_dir / "Rainbow Road.m4a"),
        ]
        assert final.stage is FileStage.FINAL
        assert final.path == run_dir / "Rainbow Road.m4a"

    def test_configured_tools_are_used(self, run_dir, raw_file, make_runner):
        runner = make_runner()
        calls = []

        def renaming_runner(command):
            calls.append(command)
            translated = {"/opt/vgm/vgmstream-cli": "vgmstream-cli", "/usr/local/bin/ffmpeg": "ffmpeg"}
            return runner([translated.get(command[0], command[0])] + command[1:])

        transcoder = TranscodeStageRunner(
            run_dir,
            tools=ToolsConfig(vgmstream_command="/opt/vgm/vgmstream-cli",
                              ffmpeg_command="/usr/local/bin/ffmpeg", loop_count=2),
            audio=AudioConfig(output_extension=".m4a"),
            runner=renaming_runner,
        )
        transcoder.transcode(raw_file)

        assert calls[0][:3] == ["/opt/vgm/vgmstream-cli", "-l", "2.0"]
        assert calls[1][0] == "/usr/local/bin/ffmpeg"

    def test_to_final_requires_intermediate(self, transcoder, raw_file, fake_runner):
        with pytest.raises(InvalidStateError):
            transcoder.to_final(raw_file)
        assert fake_runner.calls == []

    def test_to_final_rejects_final_file(self, transcoder, raw_file):
        final = transcoder.transcode(raw_file)
        with pytest.raises(InvalidStateError):
            transcoder.to_final(final)

    def test_to_intermediate_requires_raw(self, transcoder, raw_file):
        wav = transcoder.to_intermediate(raw_file)
        with pytest.raises(InvalidStateError):
            transcoder.to_intermediate(wav)

    def test_intermediate_removed_after_success(self, transcoder, raw_file, run_dir):
        final = transcoder.transcode(raw_file)

        assert final.path.exists()
        assert not (run_dir / "Rainbow Road.wav").exists()

    def test_intermediate_kept_after_encode_failure(self, run_dir, raw_file, make_runner):
        transcoder = TranscodeStageRunner(run_dir, runner=make_runner(fail_encode={"Rainbow Road"}))
        wav = transcoder.to_intermediate(raw_file)

        with pytest.raises(ExternalToolError) as exc_info:
            transcoder.to_final(wav)

        assert wav.path.exists()
        assert exc_info.value.returncode == 1
        assert exc_info.value.stage == "final"
        assert "Invalid data" in exc_info.value.stderr

    def test_scope_keeps_intermediate_on_failure(self, run_dir, raw_file, make_runner):
        transcoder = TranscodeStageRunner(run_dir, runner=make_runner(fail_encode={"Rainbow Road"}))

        with pytest.raises(ExternalToolError):
            transcoder.transcode(raw_file)

        assert (run_dir / "Rainbow Road.wav").exists()
        assert not (run_dir / "Rainbow Road.m4a").exists()

    def test_decode_failure_raises(self, run_dir, raw_file, make_runner):
        transcoder = TranscodeStageRunner(run_dir, runner=make_runner(fail_decode={"Rainbow Road"}))

        with pytest.raises(ExternalToolError) as exc_info:
            transcoder.to_intermediate(raw_file)

        assert exc_info.value.stage == "intermediate"
        assert exc_info.value.file_name == "Rainbow Road.brstm"

    def test_stderr_on_success_is_only_a_warning(self, run_dir, raw_file, make_runner, caplog):
        transcoder = TranscodeStageRunner(run_dir, runner=make_runner(decode_stderr="loop info ignored"))

        with caplog.at_level(logging.WARNING, logger="vgm_convert.core.transcoder"):
            wav = transcoder.to_intermediate(raw_file)

        assert wav.stage is FileStage.INTERMEDIATE
        assert "loop info ignored" in caplog.text

    def test_spawn_failure_becomes_tool_error(self, run_dir, raw_file):
        def missing_tool(command):
            raise FileNotFoundError(command[0])

        transcoder = TranscodeStageRunner(run_dir, runner=missing_tool)

        with pytest.raises(ExternalToolError) as exc_info:
            transcoder.to_intermediate(raw_file)

        assert exc_info.value.returncode is None
        assert "Could not start vgmstream-cli" in str(exc_info.value)
