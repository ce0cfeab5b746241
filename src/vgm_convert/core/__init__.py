"""Core components for VGM Convert."""

from .audio_file import AudioFile, FileStage
from .config_manager import ConfigManager, ConverterConfig
from .exceptions import (
    ConversionError,
    ExternalToolError,
    InvalidStateError,
    MetadataWriteError,
    OutputCollisionError,
)
from .scanner import DirectoryScanner
from .versioner import OutputVersioner, RunDirectory
from .transcoder import TranscodeStageRunner
from .orchestrator import ConversionPipeline, FileOutcome, FileState, RunSummary

__all__ = [
    "AudioFile",
    "FileStage",
    "ConfigManager",
    "ConverterConfig",
    "ConversionError",
    "ExternalToolError",
    "InvalidStateError",
    "MetadataWriteError",
    "OutputCollisionError",
    "DirectoryScanner",
    "OutputVersioner",
    "RunDirectory",
    "TranscodeStageRunner",
    "ConversionPipeline",
    "FileOutcome",
    "FileState",
    "RunSummary",
]
