"""
VGM Convert

Batch converter for game-audio containers (BRSTM, BFSTM, BCSTM, BWAV, AST,
NUS3AUDIO) into tagged Apple Lossless files.

Features:
- Two-stage conversion through vgmstream-cli and ffmpeg
- Numbered run directories, so repeated runs never overwrite each other
- Album, artist, genre, year and cover art embedded in every track
- Per-file failure isolation with a summary at the end of each run
"""

__version__ = "1.0.0"
__license__ = "MIT"

from .core.audio_file import AudioFile, FileStage
from .core.config_manager import ConfigManager, ConverterConfig
from .core.orchestrator import ConversionPipeline, FileOutcome, FileState, RunSummary
from .core.scanner import DirectoryScanner
from .core.versioner import OutputVersioner, RunDirectory
from .core.transcoder import TranscodeStageRunner
from .metadata.tagger import MetadataTagger

__all__ = [
    "__version__",
    "__license__",
    "AudioFile",
    "FileStage",
    "ConverterConfig",
    "ConfigManager",
    "ConversionPipeline",
    "FileOutcome",
    "FileState",
    "RunSummary",
    "DirectoryScanner",
    "OutputVersioner",
    "RunDirectory",
    "TranscodeStageRunner",
    "MetadataTagger",
]
