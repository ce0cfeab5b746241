"""
User-Friendly Error Handling

Converts fatal exceptions (bad input directory, missing tools, invalid
configuration) into understandable messages with suggestions.
"""

import logging
import traceback
from enum import Enum
from typing import Dict, Optional, Any, List

from ..core.exceptions import ConversionError, ExternalToolError
from .tool_checker import ToolsMissingError


class ErrorCategory(Enum):
    """Categories of errors"""
    FILE_ACCESS = "file_access"
    CONVERSION = "conversion"
    CONFIGURATION = "configuration"
    DEPENDENCY = "dependency"
    SYSTEM = "system"


class UserFriendlyError:
    """User-friendly error representation"""

    def __init__(self,
                 category: ErrorCategory,
                 title: str,
                 message: str,
                 suggestions: List[str] = None,
                 technical_details: str = None,
                 error_code: str = None):
        self.category = category
        self.title = title
        self.message = message
        self.suggestions = suggestions or []
        self.technical_details = technical_details
        self.error_code = error_code


ERROR_TEMPLATES: Dict[str, Dict[str, Any]] = {
    "file_not_found": {
        "category": ErrorCategory.FILE_ACCESS,
        "title": "File not found",
        "message": "{detail}",
        "suggestions": [
            "Check that the path is spelled correctly",
            "Use an absolute path if the current directory is unclear",
        ],
    },
    "not_a_directory": {
        "category": ErrorCategory.FILE_ACCESS,
        "title": "Not a directory",
        "message": "{detail}",
        "suggestions": ["Pass the folder containing the game audio files, not a single file"],
    },
    "permission_denied": {
        "category": ErrorCategory.FILE_ACCESS,
        "title": "Access denied",
        "message": "{detail}",
        "suggestions": [
            "Check the permissions of the input and output directories",
            "Make sure no other program holds the files open",
        ],
    },
    "disk_full": {
        "category": ErrorCategory.FILE_ACCESS,
        "title": "Disk full",
        "message": "Not enough free space in the output directory.",
        "suggestions": ["Free up space or choose another output directory with --output"],
    },
    "tools_missing": {
        "category": ErrorCategory.DEPENDENCY,
        "title": "External tools missing",
        "message": "{detail}",
        "suggestions": [
            "Install the missing tools and make sure they are on PATH",
            "Point tools.vgmstream_command / tools.ffmpeg_command at custom locations in the config",
            "Run 'vgm-convert --check-tools' to see the current status",
        ],
    },
    "external_tool_failed": {
        "category": ErrorCategory.CONVERSION,
        "title": "Conversion tool failed",
        "message": "{detail}",
        "suggestions": ["Run again with --log-level DEBUG to see the exact command"],
    },
    "config_invalid": {
        "category": ErrorCategory.CONFIGURATION,
        "title": "Invalid configuration",
        "message": "{detail}",
        "suggestions": [
            "Check the configuration file for typos in section or key names",
            "Remove the file to fall back to the defaults",
        ],
    },
    "invalid_input": {
        "category": ErrorCategory.CONFIGURATION,
        "title": "Invalid input",
        "message": "{detail}",
        "suggestions": ["Check the values given on the command line or at the prompts"],
    },
    "system_error": {
        "category": ErrorCategory.SYSTEM,
        "title": "Unexpected error",
        "message": "{detail}",
        "suggestions": ["Run again with --verbose for technical details"],
    },
}


class ErrorHandler:
    """
    Converts technical exceptions into user-friendly error messages.
    """

    def __init__(self, verbose: bool = False):
        self.verbose = verbose
        self.logger = logging.getLogger(__name__)

    def handle_exception(self, exception: Exception, context: Dict[str, Any] = None) -> UserFriendlyError:
        """
        Convert exception to user-friendly error.

        Args:
            exception: The original exception
            context: Additional context information (e.g. {"config_validation": True})

        Returns:
            UserFriendlyError object
        """
        context = context or {}
        error_key = self._classify_exception(exception, context)
        template = ERROR_TEMPLATES[error_key]

        message_context = dict(context)
        message_context.setdefault("detail", str(exception) or type(exception).__name__)
        try:
            message = template["message"].format(**message_context)
        except (KeyError, ValueError):
            message = template["message"]

        suggestions = list(template["suggestions"])
        if isinstance(exception, ToolsMissingError) and exception.instructions:
            suggestions = exception.instructions.splitlines() + suggestions

        technical_details = None
        if self.verbose:
            technical_details = "".join(
                traceback.format_exception(type(exception), exception, exception.__traceback__)
            )

        return UserFriendlyError(
            category=template["category"],
            title=template["title"],
            message=message,
            suggestions=suggestions,
            technical_details=technical_details,
            error_code=error_key,
        )

    def _classify_exception(self, exception: Exception, context: Dict[str, Any]) -> str:
        """Classify exception to determine error template"""
        if isinstance(exception, ToolsMissingError):
            return "tools_missing"
        if isinstance(exception, ExternalToolError):
            return "external_tool_failed"
        if isinstance(exception, ConversionError):
            return "system_error"
        if isinstance(exception, FileNotFoundError):
            return "file_not_found"
        if isinstance(exception, NotADirectoryError):
            return "not_a_directory"
        if isinstance(exception, PermissionError):
            return "permission_denied"
        if isinstance(exception, OSError):
            if "No space left on device" in str(exception):
                return "disk_full"
            return "system_error"
        if isinstance(exception, ValueError):
            return "config_invalid" if context.get("config_validation") else "invalid_input"
        return "system_error"

    def format_error_message(self, error: UserFriendlyError, show_suggestions: bool = True) -> str:
        """Format error for display"""
        lines = [f"❌ {error.title}", f"   {error.message}", ""]

        if show_suggestions and error.suggestions:
            lines.append("💡 Suggestions:")
            lines.extend(f"   • {suggestion}" for suggestion in error.suggestions)
            lines.append("")

        if self.verbose and error.technical_details:
            lines.append("🔧 Technical details:")
            lines.extend(f"   {line}" for line in error.technical_details.splitlines() if line.strip())
            lines.append("")

        if error.error_code:
            lines.append(f"🔍 Error code: {error.error_code}")

        return "\n".join(lines)

    def log_error(self, error: UserFriendlyError) -> None:
        """Log error with appropriate level"""
        if error.category == ErrorCategory.CONFIGURATION:
            self.logger.warning(f"User Error: {error.title} - {error.message}")
        else:
            self.logger.error(f"{error.title} - {error.message}")

        if self.verbose and error.technical_details:
            self.logger.debug(f"Technical details: {error.technical_details}")


# Global error handler instance
_error_handler: Optional[ErrorHandler] = None


def get_error_handler(verbose: bool = False) -> ErrorHandler:
    """Get global error handler instance"""
    global _error_handler
    if _error_handler is None or _error_handler.verbose != verbose:
        _error_handler = ErrorHandler(verbose=verbose)
    return _error_handler


def handle_user_error(exception: Exception, context: Dict[str, Any] = None, verbose: bool = False) -> str:
    """Convenience function to handle and format error"""
    handler = get_error_handler(verbose)
    error = handler.handle_exception(exception, context)
    handler.log_error(error)
    return handler.format_error_message(error)
