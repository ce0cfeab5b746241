"""
Tool Availability Checker

Checks that the external transforms are installed before a run starts and
provides install hints when they are missing.
"""

import logging
import platform
import shutil
import subprocess
from dataclasses import dataclass
from typing import Dict, List, Optional

from ..core.config_manager import ToolsConfig


@dataclass
class ToolInfo:
    """Information about a required tool"""
    name: str
    command: str
    install_instructions: Dict[str, str]
    version_args: Optional[List[str]] = None


class ToolsMissingError(Exception):
    """Raised when required tools are missing"""

    def __init__(self, missing_tools: List[str], instructions: str = ""):
        self.missing_tools = missing_tools
        self.instructions = instructions
        super().__init__(f"Missing required tools: {', '.join(missing_tools)}")


class ToolChecker:
    """
    Checks for availability of vgmstream-cli and ffmpeg.

    Command names come from the tools configuration so custom builds or
    absolute paths are checked as configured.
    """

    def __init__(self, tools: Optional[ToolsConfig] = None):
        self.logger = logging.getLogger(__name__)
        self.system = platform.system().lower()
        tools = tools or ToolsConfig()

        self.tools = {
            'vgmstream': ToolInfo(
                name="vgmstream decoder",
                command=tools.vgmstream_command,
                install_instructions={
                    'linux': "Download vgmstream-cli from https://vgmstream.org and add it to PATH",
                    'darwin': "brew install vgmstream",
                    'windows': "Download vgmstream-cli from https://vgmstream.org and add it to PATH",
                },
            ),
            'ffmpeg': ToolInfo(
                name="FFmpeg audio encoder",
                command=tools.ffmpeg_command,
                install_instructions={
                    'linux': "sudo apt-get install ffmpeg",
                    'darwin': "brew install ffmpeg",
                    'windows': "Download from https://ffmpeg.org/ and add to PATH",
                },
                version_args=["-version"],
            ),
        }

    def is_tool_available(self, tool_id: str) -> bool:
        return shutil.which(self.tools[tool_id].command) is not None

    def missing_tools(self) -> List[str]:
        return [tool_id for tool_id in self.tools if not self.is_tool_available(tool_id)]

    def get_tool_version(self, tool_id: str) -> Optional[str]:
        """First line of the tool's version output, if it reports one"""
        tool_info = self.tools[tool_id]
        if not tool_info.version_args or not self.is_tool_available(tool_id):
            return None
        try:
            result = subprocess.run(
                [tool_info.command, *tool_info.version_args],
                capture_output=True, text=True, timeout=10,
            )
        except (subprocess.TimeoutExpired, OSError) as e:
            self.logger.debug(f"Version check failed for {tool_info.command}: {e}")
            return None
        output = (result.stdout or result.stderr).strip()
        return output.splitlines()[0] if output else None

    def generate_install_instructions(self, missing: List[str]) -> str:
        """Generate installation instructions for missing tools"""
        lines = []
        for tool_id in missing:
            tool_info = self.tools[tool_id]
            install_cmd = tool_info.install_instructions.get(
                self.system, tool_info.install_instructions['linux']
            )
            lines.append(f"{tool_info.name} ({tool_info.command}): {install_cmd}")
        return "\n".join(lines)

    def check_and_raise_if_missing(self) -> None:
        """
        Raises:
            ToolsMissingError: If any required tool is missing
        """
        missing = self.missing_tools()
        if missing:
            commands = [self.tools[tool_id].command for tool_id in missing]
            self.logger.error(f"Required tools missing: {commands}")
            raise ToolsMissingError(commands, self.generate_install_instructions(missing))

    def get_tool_status_report(self) -> Dict[str, Dict[str, str]]:
        report = {}
        for tool_id, tool_info in self.tools.items():
            available = self.is_tool_available(tool_id)
            report[tool_id] = {
                'name': tool_info.name,
                'command': tool_info.command,
                'status': "available" if available else "missing",
                'version': (self.get_tool_version(tool_id) if available else None) or "unknown",
                'install_cmd': tool_info.install_instructions.get(
                    self.system, tool_info.install_instructions['linux']
                ),
            }
        return report
