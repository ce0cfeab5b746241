"""
Directory Scanner

Lists a single input directory and returns the game-audio containers in it.
"""

import logging
import os
from pathlib import Path
from typing import Iterable, List, Optional, Union

from .audio_file import AudioFile, FileStage
from .constants import ACCEPTED_CONTAINER_FORMATS


class DirectoryScanner:
    """Non-recursive discovery of accepted container files."""

    def __init__(self, accepted_extensions: Optional[Iterable[str]] = None):
        self.logger = logging.getLogger(__name__)
        if accepted_extensions is None:
            accepted_extensions = ACCEPTED_CONTAINER_FORMATS.keys()
        # Matching is case-insensitive: "song.BWAV" is a .bwav file
        self.accepted_extensions = {ext.lower() for ext in accepted_extensions}

    def is_accepted(self, path: Path) -> bool:
        return path.suffix.lower() in self.accepted_extensions

    def scan(self, directory: Union[str, Path]) -> List[AudioFile]:
        """
        Find accepted input files in a directory.

        Args:
            directory: Directory to list (subdirectories are not descended into)

        Returns:
            RAW AudioFiles sorted by file name

        Raises:
            FileNotFoundError: If the directory does not exist
            NotADirectoryError: If the path is not a directory
            PermissionError: If the directory cannot be read
        """
        directory = Path(directory)
        if not directory.exists():
            raise FileNotFoundError(f"Input directory does not exist: {directory}")
        if not directory.is_dir():
            raise NotADirectoryError(f"Input path is not a directory: {directory}")

        files = []
        with os.scandir(directory) as entries:
            for entry in entries:
                path = Path(entry.path)
                if not entry.is_file():
                    self.logger.debug(f"Skipping non-file entry: {entry.name}")
                    continue
                if not self.is_accepted(path):
                    self.logger.debug(f"Skipping unsupported file: {entry.name}")
                    continue
                files.append(AudioFile(path, FileStage.RAW))

        files.sort(key=lambda audio: audio.name)
        self.logger.info(f"🔍 Found {len(files)} convertible files in {directory}")
        return files
