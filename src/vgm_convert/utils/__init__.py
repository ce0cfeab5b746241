"""Utility helpers for VGM Convert."""

from .tool_runner import ToolResult, run_tool
from .tool_checker import ToolChecker, ToolsMissingError
from .error_handler import ErrorHandler, handle_user_error
from .manifest import write_manifest

__all__ = [
    "ToolResult",
    "run_tool",
    "ToolChecker",
    "ToolsMissingError",
    "ErrorHandler",
    "handle_user_error",
    "write_manifest",
]
