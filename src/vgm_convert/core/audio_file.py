"""
Audio file model.

An AudioFile pairs a path with the pipeline stage the file is in. Values are
immutable: each stage transition produces a new AudioFile.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Union


class FileStage(Enum):
    """Lifecycle stages of a converted track"""
    RAW = "raw"
    INTERMEDIATE = "intermediate"
    FINAL = "final"


@dataclass(frozen=True)
class AudioFile:
    """A file on disk tagged with its processing stage."""
    path: Path
    stage: FileStage

    def __post_init__(self):
        if not isinstance(self.path, Path):
            object.__setattr__(self, 'path', Path(self.path))

    @property
    def base_name(self) -> str:
        """File name without extension, shared by a track across all stages."""
        return self.path.stem

    @property
    def name(self) -> str:
        return self.path.name

    def advance(self, path: Union[str, Path], stage: FileStage) -> "AudioFile":
        """Return the file produced from this one at the next stage."""
        return AudioFile(Path(path), stage)

    def __str__(self) -> str:
        return f"{self.name} [{self.stage.value}]"
