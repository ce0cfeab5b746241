"""
Transcode Stage Runner

Runs the two external transforms for one track:

Stage 1: container -> intermediate WAV (vgmstream-cli)
Stage 2: intermediate WAV -> ALAC .m4a (ffmpeg), then removes the WAV

The intermediate file lives exactly from its creation until the final file
has been produced. When stage 2 fails it is left in place for diagnosis.
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

from .audio_file import AudioFile, FileStage
from .config_manager import AudioConfig, ToolsConfig
from .exceptions import ExternalToolError, InvalidStateError
from ..utils.tool_runner import ToolResult, ToolRunner, run_tool

STAGE_INTERMEDIATE = "intermediate"
STAGE_FINAL = "final"


class TranscodeStageRunner:
    """Invokes the external transforms for individual files."""

    def __init__(self,
                 output_dir: Path,
                 tools: Optional[ToolsConfig] = None,
                 audio: Optional[AudioConfig] = None,
                 runner: ToolRunner = run_tool):
        """
        Initialize the stage runner.

        Args:
            output_dir: Run directory receiving intermediate and final files
            tools: External tool configuration
            audio: Stage file extension and codec configuration
            runner: Callable executing an argument vector
        """
        self.output_dir = Path(output_dir)
        self.tools = tools or ToolsConfig()
        self.audio = audio or AudioConfig()
        self.runner = runner
        self.logger = logging.getLogger(__name__)

    def intermediate_command(self, source: Path, target: Path) -> List[str]:
        return [
            self.tools.vgmstream_command,
            "-l", str(float(self.tools.loop_count)),
            "-o", str(target),
            str(source),
        ]

    def final_command(self, source: Path, target: Path) -> List[str]:
        return [
            self.tools.ffmpeg_command,
            "-i", str(source),
            "-acodec", self.audio.output_codec,
            str(target),
        ]

    def _target_path(self, audio: AudioFile, extension: str) -> Path:
        return self.output_dir / f"{audio.base_name}{extension}"

    def _execute(self, command: List[str], audio: AudioFile, stage: str) -> ToolResult:
        tool = Path(command[0]).name
        try:
            result = self.runner(command)
        except OSError as e:
            raise ExternalToolError(
                f"Could not start {tool}: {e}",
                command=command, file_name=audio.name, stage=stage
            ) from e

        if not result.succeeded:
            detail = result.diagnostics or "no diagnostic output"
            raise ExternalToolError(
                f"{tool} exited with status {result.returncode}: {detail}",
                command=command, returncode=result.returncode,
                stderr=result.stderr, file_name=audio.name, stage=stage
            )
        return result

    def to_intermediate(self, audio: AudioFile) -> AudioFile:
        """
        Decode a container file into the intermediate format.

        Args:
            audio: RAW input file

        Returns:
            INTERMEDIATE AudioFile in the run directory

        Raises:
            InvalidStateError: If the input is not RAW
            ExternalToolError: If the decoder fails or cannot be started
        """
        if audio.stage is not FileStage.RAW:
            raise InvalidStateError(
                f"Expected a raw file for decoding, got {audio}",
                file_name=audio.name, stage=STAGE_INTERMEDIATE
            )

        target = self._target_path(audio, self.audio.intermediate_extension)
        result = self._execute(self.intermediate_command(audio.path, target), audio, STAGE_INTERMEDIATE)

        # vgmstream prints informational output on stderr even on success
        if result.diagnostics:
            self.logger.warning(f"[vgmstream] {audio.base_name}: {result.diagnostics}")
        else:
            self.logger.info(f"[vgmstream] {audio.base_name}: Conversion successful")

        return audio.advance(target, FileStage.INTERMEDIATE)

    def to_final(self, intermediate: AudioFile) -> AudioFile:
        """
        Encode an intermediate file into the lossless output format.

        The intermediate file is deleted once the final file exists.

        Args:
            intermediate: INTERMEDIATE file produced by to_intermediate

        Returns:
            FINAL AudioFile, ready for tagging

        Raises:
            InvalidStateError: If the input is not INTERMEDIATE
            ExternalToolError: If the encoder fails; the intermediate file is kept
        """
        if intermediate.stage is not FileStage.INTERMEDIATE:
            raise InvalidStateError(
                f"Expected an intermediate file for encoding, got {intermediate}",
                file_name=intermediate.name, stage=STAGE_FINAL
            )

        target = self._target_path(intermediate, self.audio.output_extension)
        self._execute(self.final_command(intermediate.path, target), intermediate, STAGE_FINAL)
        self.logger.info(f"[ffmpeg] {intermediate.base_name}: Conversion successful")

        self._discard_intermediate(intermediate)
        return intermediate.advance(target, FileStage.FINAL)

    def _discard_intermediate(self, intermediate: AudioFile) -> None:
        try:
            intermediate.path.unlink()
        except FileNotFoundError:
            self.logger.debug(f"Intermediate already gone: {intermediate.path}")

    @contextmanager
    def intermediate_scope(self, audio: AudioFile) -> Iterator[AudioFile]:
        """
        Produce the intermediate file for the duration of a block.

        Usage:
            with runner.intermediate_scope(raw) as wav:
                final = runner.to_final(wav)

        The block is expected to call to_final; if it exits without the
        final file having been produced the intermediate stays on disk.
        """
        intermediate = self.to_intermediate(audio)
        try:
            yield intermediate
        except Exception:
            if intermediate.path.exists():
                self.logger.warning(f"Keeping intermediate for diagnosis: {intermediate.path}")
            raise

    def transcode(self, audio: AudioFile) -> AudioFile:
        """Run both stages for a RAW file and return the FINAL file."""
        with self.intermediate_scope(audio) as intermediate:
            return self.to_final(intermediate)
