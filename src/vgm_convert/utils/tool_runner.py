"""
External Tool Runner

Runs an external transform and reports its outcome through a uniform
contract: exit status plus captured diagnostics. The pipeline only depends
on this contract, so tests and alternative executors can swap the runner.
"""

import logging
import subprocess
from dataclasses import dataclass
from typing import Callable, List

logger = logging.getLogger(__name__)


@dataclass
class ToolResult:
    """Outcome of one external tool invocation"""
    command: List[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0

    @property
    def diagnostics(self) -> str:
        return self.stderr.strip()


ToolRunner = Callable[[List[str]], ToolResult]


def run_tool(command: List[str]) -> ToolResult:
    """
    Run an external command and capture its output.

    Args:
        command: Argument vector, executable first

    Returns:
        ToolResult with exit status and captured streams

    Raises:
        OSError: If the executable cannot be started
    """
    logger.debug(f"Running: {subprocess.list2cmdline(command)}")
    completed = subprocess.run(
        command,
        stdin=subprocess.DEVNULL,
        capture_output=True,
        text=True,
        errors="replace",
    )
    return ToolResult(
        command=list(command),
        returncode=completed.returncode,
        stdout=completed.stdout or "",
        stderr=completed.stderr or "",
    )
