"""
Output Versioner

Every run writes into a fresh numbered subdirectory of the output root
(out/1, out/2, ...), so re-running never overwrites earlier results.

The allocator reads the current maximum and then creates max+1. Two
processes allocating against the same root at the same moment can pick the
same ordinal; single-run CLI usage is the supported model.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from .constants import RUN_DIRECTORY_PATTERN

_RUN_DIR_RE = re.compile(RUN_DIRECTORY_PATTERN)


@dataclass(frozen=True)
class RunDirectory:
    """A numbered output directory allocated for one run"""
    parent: Path
    ordinal: int

    @property
    def path(self) -> Path:
        return self.parent / str(self.ordinal)

    def __str__(self) -> str:
        return str(self.path)


class OutputVersioner:
    """Allocates monotonically numbered run directories."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def next_ordinal(self, base_dir: Union[str, Path]) -> int:
        """Return the ordinal the next run would get, without creating anything."""
        base_dir = Path(base_dir)
        if not base_dir.exists():
            return 1

        numbered = [
            int(entry.name)
            for entry in base_dir.iterdir()
            if entry.is_dir() and _RUN_DIR_RE.fullmatch(entry.name)
        ]
        return max(numbered, default=0) + 1

    def allocate(self, base_dir: Union[str, Path]) -> RunDirectory:
        """
        Create the next numbered run directory.

        Args:
            base_dir: Output root; created along with the run directory if missing

        Returns:
            The allocated RunDirectory
        """
        base_dir = Path(base_dir)
        run_dir = RunDirectory(base_dir, self.next_ordinal(base_dir))
        run_dir.path.mkdir(parents=True, exist_ok=True)
        self.logger.info(f"📁 Allocated run directory: {run_dir.path}")
        return run_dir
