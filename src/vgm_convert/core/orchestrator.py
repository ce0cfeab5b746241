"""
Conversion Pipeline Orchestrator

Coordinates one conversion run:
Phase 1: Discovery of input containers
Phase 2: Run directory allocation and cover preparation (serial)
Phase 3: Per-file decode -> encode -> tag, fanned out on a thread pool

A file that fails at any point is recorded and skipped; the batch always
runs to completion and returns a summary of every file's outcome.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Union

from .audio_file import AudioFile
from .config_manager import ConverterConfig
from .exceptions import ConversionError, InvalidStateError, MetadataWriteError, OutputCollisionError
from .scanner import DirectoryScanner
from .transcoder import TranscodeStageRunner
from .versioner import OutputVersioner, RunDirectory
from ..metadata.mp4_writer import write_mp4_tags
from ..metadata.tagger import MetadataTagger, TagWriter, check_cover, prepare_cover
from ..utils.tool_runner import ToolRunner, run_tool


class FileState(Enum):
    """Per-file position in the conversion state machine"""
    RAW = "raw"
    INTERMEDIATE = "intermediate"
    CONVERTED = "converted"
    TAGGED = "tagged"
    FAILED = "failed"


@dataclass
class FileOutcome:
    """Result of processing a single input file"""
    source: Path
    state: FileState = FileState.RAW
    output: Optional[Path] = None
    failed_stage: Optional[str] = None
    error: Optional[str] = None
    tag_error: Optional[str] = None

    @property
    def name(self) -> str:
        return self.source.name

    @property
    def succeeded(self) -> bool:
        return self.state in (FileState.CONVERTED, FileState.TAGGED)


@dataclass
class RunSummary:
    """Aggregate result of a conversion run"""
    run_directory: RunDirectory
    outcomes: List[FileOutcome] = field(default_factory=list)
    duration: float = 0.0

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def succeeded(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.succeeded)

    @property
    def failed(self) -> int:
        return len(self.failures)

    @property
    def tagged(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.state is FileState.TAGGED)

    @property
    def untagged(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.state is FileState.CONVERTED)

    @property
    def failures(self) -> List[FileOutcome]:
        return [outcome for outcome in self.outcomes if outcome.state is FileState.FAILED]

    def to_dict(self) -> Dict:
        return {
            'run_directory': str(self.run_directory.path),
            'total': self.total,
            'succeeded': self.succeeded,
            'failed': self.failed,
            'untagged': self.untagged,
            'duration': round(self.duration, 3),
            'failures': [
                {'file': outcome.name, 'stage': outcome.failed_stage, 'error': outcome.error}
                for outcome in self.failures
            ],
        }


ProgressCallback = Callable[[FileOutcome], None]


class ConversionPipeline:
    """
    Converts every accepted file of an input directory into a fresh run
    directory and tags the results.
    """

    def __init__(self,
                 input_dir: Union[str, Path],
                 output_root: Union[str, Path],
                 base_tags: Optional[Mapping[str, str]] = None,
                 cover_path: Optional[Union[str, Path]] = None,
                 config: Optional[ConverterConfig] = None,
                 runner: ToolRunner = run_tool,
                 writer: TagWriter = write_mp4_tags):
        """
        Initialize the pipeline.

        Args:
            input_dir: Directory containing container files
            output_root: Root under which numbered run directories are created
            base_tags: Tags shared by every file of the run
            cover_path: Optional cover image embedded into every file
            config: Converter configuration (defaults when omitted)
            runner: External process runner
            writer: Tag writer
        """
        self.input_dir = Path(input_dir)
        self.output_root = Path(output_root)
        self.base_tags = dict(base_tags or {})
        self.cover_path = Path(cover_path) if cover_path else None
        self.config = config or ConverterConfig()
        self.runner = runner
        self.writer = writer
        self.logger = logging.getLogger(__name__)

        self.scanner = DirectoryScanner(self.config.audio.accepted_extensions)
        self.versioner = OutputVersioner()

        self.input_files: List[AudioFile] = []
        self.run_directory: Optional[RunDirectory] = None
        self.run_cover_path: Optional[Path] = None
        self._transcoder: Optional[TranscodeStageRunner] = None
        self._tagger: Optional[MetadataTagger] = None

    @property
    def output_dir(self) -> Optional[Path]:
        return self.run_directory.path if self.run_directory else None

    def prepare(self) -> RunDirectory:
        """
        Scan the inputs and allocate this run's output directory.

        Must complete before any file is processed.

        Raises:
            OSError: If the input directory or the cover cannot be read, or
                the run directory cannot be created
            ValueError: If the cover image type cannot be embedded
        """
        self.input_files = self.scanner.scan(self.input_dir)
        if self.cover_path:
            check_cover(self.cover_path)
        self.run_directory = self.versioner.allocate(self.output_root)

        if self.cover_path:
            self.run_cover_path = prepare_cover(self.cover_path, self.run_directory.path)
            self.logger.info(f"🖼️  Cover copied to {self.run_cover_path}")

        self._transcoder = TranscodeStageRunner(
            self.run_directory.path,
            tools=self.config.tools,
            audio=self.config.audio,
            runner=self.runner,
        )
        self._tagger = MetadataTagger(self.base_tags, self.run_cover_path, writer=self.writer)
        return self.run_directory

    def run(self, progress_callback: Optional[ProgressCallback] = None) -> RunSummary:
        """
        Convert and tag every input file.

        Args:
            progress_callback: Called with each FileOutcome as it completes

        Returns:
            RunSummary with one outcome per input file, in input order
        """
        if self.run_directory is None:
            self.prepare()

        start_time = time.time()
        max_workers = max(1, self.config.processing.max_workers)
        self.logger.info(
            f"🎵 Converting {len(self.input_files)} files into {self.output_dir} "
            f"({max_workers} workers)"
        )

        outcomes: Dict[int, FileOutcome] = {}
        collisions = self._find_collisions()

        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            future_to_index = {}
            for index, audio in enumerate(self.input_files):
                if index in collisions:
                    outcome = self._collision_outcome(audio, collisions[index])
                    outcomes[index] = outcome
                    self._notify(progress_callback, outcome)
                    continue
                future_to_index[executor.submit(self.process_file, audio)] = index

            for future in as_completed(future_to_index):
                index = future_to_index[future]
                outcome = future.result()
                outcomes[index] = outcome
                self._notify(progress_callback, outcome)

        summary = RunSummary(
            run_directory=self.run_directory,
            outcomes=[outcomes[index] for index in sorted(outcomes)],
            duration=time.time() - start_time,
        )
        self.logger.info(
            f"✅ Run complete: {summary.succeeded}/{summary.total} converted, "
            f"{summary.failed} failed, {summary.untagged} untagged "
            f"({summary.duration:.2f}s)"
        )
        return summary

    def process_file(self, audio: AudioFile) -> FileOutcome:
        """
        Take one file through decode, encode and tagging.

        Never raises: every error becomes part of the returned outcome.
        """
        outcome = FileOutcome(source=audio.path)
        stage = "intermediate"
        try:
            with self._transcoder.intermediate_scope(audio) as intermediate:
                outcome.state = FileState.INTERMEDIATE
                stage = "final"
                final = self._transcoder.to_final(intermediate)

            outcome.state = FileState.CONVERTED
            outcome.output = final.path
            stage = "tagging"
            try:
                self._tagger.tag(final)
                outcome.state = FileState.TAGGED
            except MetadataWriteError as e:
                outcome.tag_error = str(e)
                self.logger.error(f"[Metadata] {final.base_name}: {e}")

        except InvalidStateError as e:
            self._fail(outcome, e.stage or stage, e)
            self.logger.exception(f"Stage contract violated for {audio.name} ({outcome.failed_stage})")
        except ConversionError as e:
            self._fail(outcome, e.stage or stage, e)
            self.logger.error(f"❌ {audio.name} failed at {outcome.failed_stage}: {e}")
        except Exception as e:
            self._fail(outcome, stage, e)
            self.logger.error(f"❌ {audio.name} failed at {stage}: {type(e).__name__}: {e}")

        return outcome

    def _notify(self, progress_callback: Optional[ProgressCallback], outcome: FileOutcome) -> None:
        if progress_callback is None:
            return
        try:
            progress_callback(outcome)
        except Exception as e:
            self.logger.warning(f"Progress callback failed for {outcome.name}: {type(e).__name__}: {e}")

    def _fail(self, outcome: FileOutcome, stage: str, error: Exception) -> None:
        outcome.state = FileState.FAILED
        outcome.failed_stage = stage
        outcome.error = str(error)

    def _find_collisions(self) -> Dict[int, str]:
        """Map index of each input whose base name was already taken to the first owner"""
        owners: Dict[str, str] = {}
        collisions = {}
        for index, audio in enumerate(self.input_files):
            if audio.base_name in owners:
                collisions[index] = owners[audio.base_name]
            else:
                owners[audio.base_name] = audio.name
        return collisions

    def _collision_outcome(self, audio: AudioFile, owner: str) -> FileOutcome:
        error = OutputCollisionError(
            f"Output name '{audio.base_name}' is already used by {owner}",
            file_name=audio.name, stage="scan"
        )
        outcome = FileOutcome(source=audio.path)
        self._fail(outcome, "scan", error)
        self.logger.error(f"❌ {audio.name} skipped: {error}")
        return outcome
