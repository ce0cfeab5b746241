"""
Error taxonomy for the conversion pipeline.

Filesystem failures use the builtin OSError family (IOError is an alias).
Everything raised for a single file derives from ConversionError so the
orchestrator can record the file name and stage it failed in.
"""

from typing import List, Optional


class ConversionError(Exception):
    """Base class for per-file pipeline failures."""

    def __init__(self, message: str, file_name: Optional[str] = None,
                 stage: Optional[str] = None):
        self.file_name = file_name
        self.stage = stage
        super().__init__(message)


class ExternalToolError(ConversionError):
    """An external transform exited non-zero or could not be started."""

    def __init__(self, message: str, command: Optional[List[str]] = None,
                 returncode: Optional[int] = None, stderr: str = "",
                 file_name: Optional[str] = None, stage: Optional[str] = None):
        self.command = command or []
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message, file_name=file_name, stage=stage)


class InvalidStateError(ConversionError):
    """A stage was invoked on a file that is not in the required prior stage."""


class MetadataWriteError(ConversionError):
    """The tag writer failed; the converted file is kept untagged."""


class OutputCollisionError(ConversionError):
    """Two inputs share a base name and would write the same output files."""
