"""
Centralized Configuration Management

Manages all configuration sources:
- Default settings
- Project configs (config/*.json)
- User settings (~/.config/vgm-convert/)
- Explicit config file
- CLI overrides
"""

import json
import logging
import os
import platform
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Dict, Any, List, Optional

from .constants import (
    ACCEPTED_CONTAINER_FORMATS,
    DEFAULT_LOOP_COUNT,
    DEFAULT_OUTPUT_ROOT,
    DEFAULT_WORKER_THREADS,
    FFMPEG_COMMAND,
    INTERMEDIATE_EXTENSION,
    MAX_WORKER_THREADS,
    OUTPUT_CODEC,
    OUTPUT_EXTENSION,
    VGMSTREAM_COMMAND,
)

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass
class ToolsConfig:
    """External tool configuration"""
    vgmstream_command: str = VGMSTREAM_COMMAND
    ffmpeg_command: str = FFMPEG_COMMAND
    loop_count: float = DEFAULT_LOOP_COUNT


@dataclass
class AudioConfig:
    """Input formats and stage file types"""
    accepted_extensions: List[str] = field(
        default_factory=lambda: list(ACCEPTED_CONTAINER_FORMATS.keys())
    )
    intermediate_extension: str = INTERMEDIATE_EXTENSION
    output_extension: str = OUTPUT_EXTENSION
    output_codec: str = OUTPUT_CODEC


@dataclass
class ProcessingConfig:
    """Processing pipeline configuration"""
    max_workers: int = DEFAULT_WORKER_THREADS


@dataclass
class OutputConfig:
    """Output location configuration"""
    output_root: str = DEFAULT_OUTPUT_ROOT
    write_manifest: bool = True


@dataclass
class UIConfig:
    """User interface configuration"""
    log_level: str = "INFO"
    verbose_errors: bool = False


@dataclass
class ConverterConfig:
    """Complete configuration for VGM Convert"""
    tools: ToolsConfig = field(default_factory=ToolsConfig)
    audio: AudioConfig = field(default_factory=AudioConfig)
    processing: ProcessingConfig = field(default_factory=ProcessingConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    ui: UIConfig = field(default_factory=UIConfig)


_SECTIONS = {
    'tools': ToolsConfig,
    'audio': AudioConfig,
    'processing': ProcessingConfig,
    'output': OutputConfig,
    'ui': UIConfig,
}


class ConfigManager:
    """
    Centralized configuration manager with hierarchical loading:
    1. Default settings
    2. Project configs (config/*.json)
    3. User settings (~/.config/vgm-convert/)
    4. Explicit config file
    5. CLI arguments
    """

    def __init__(self, project_root: Optional[Path] = None):
        self.logger = logging.getLogger(__name__)

        if project_root is None:
            # Walk up until we find the packaging file
            current = Path(__file__).parent
            while current != current.parent:
                if (current / "pyproject.toml").exists():
                    project_root = current
                    break
                current = current.parent
            else:
                project_root = Path.cwd()

        self.project_root = Path(project_root)
        self.config_dir = self.project_root / "config"
        self.user_config_dir = self._get_user_config_dir()

        self.logger.debug(f"ConfigManager initialized (project root: {self.project_root})")

    def _get_user_config_dir(self) -> Path:
        """Get platform-appropriate user config directory"""
        system = platform.system()

        if system == "Windows":
            base = Path(os.environ.get("APPDATA", "~"))
        elif system == "Darwin":
            base = Path("~/Library/Application Support")
        else:
            base = Path(os.environ.get("XDG_CONFIG_HOME", "~/.config"))

        return (base / "vgm-convert").expanduser()

    def load_config(self,
                    project_config: Optional[str] = None,
                    config_file: Optional[str] = None,
                    cli_overrides: Optional[Dict] = None) -> ConverterConfig:
        """
        Load configuration from all sources with proper precedence.

        Args:
            project_config: Project config file name inside config/ (default: default.json)
            config_file: Explicit config file path, e.g. from --config
            cli_overrides: Command-line argument overrides

        Returns:
            Complete configuration object

        Raises:
            FileNotFoundError: If an explicit config file does not exist
            ValueError: If a config file is not valid JSON or has unknown keys
        """
        config_dict = asdict(ConverterConfig())

        project_config_path = self.config_dir / (project_config or "default.json")
        if project_config_path.exists():
            config_dict = self._merge_configs(config_dict, self._load_json_config(project_config_path))
            self.logger.info(f"Loaded project config: {project_config_path}")

        user_config_path = self.user_config_dir / "settings.json"
        if user_config_path.exists():
            config_dict = self._merge_configs(config_dict, self._load_json_config(user_config_path))
            self.logger.info(f"Loaded user config: {user_config_path}")

        if config_file:
            path = Path(config_file)
            if not path.exists():
                raise FileNotFoundError(f"Configuration file does not exist: {config_file}")
            config_dict = self._merge_configs(config_dict, self._load_json_config(path))
            self.logger.info(f"Loaded config file: {path}")

        if cli_overrides:
            config_dict = self._merge_configs(config_dict, cli_overrides)
            self.logger.debug("Applied CLI overrides")

        return self._dict_to_config(config_dict)

    def _load_json_config(self, config_path: Path) -> Dict[str, Any]:
        """Load JSON configuration file"""
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {config_path}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Config {config_path} must contain a JSON object")
        return data

    def _merge_configs(self, base: Dict, override: Dict) -> Dict:
        """Deep merge configuration dictionaries"""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value

        return result

    def _dict_to_config(self, config_dict: Dict) -> ConverterConfig:
        """Convert dictionary to config dataclass"""
        unknown = set(config_dict) - set(_SECTIONS)
        if unknown:
            raise ValueError(f"Unknown config sections: {', '.join(sorted(unknown))}")

        sections = {}
        for name, section_cls in _SECTIONS.items():
            try:
                sections[name] = section_cls(**config_dict.get(name, {}))
            except TypeError as e:
                raise ValueError(f"Invalid keys in config section '{name}': {e}") from e

        return ConverterConfig(**sections)

    def validate_config(self, config: ConverterConfig) -> List[str]:
        """Validate configuration and return list of issues"""
        issues = []

        if not config.tools.vgmstream_command:
            issues.append("tools.vgmstream_command must not be empty")
        if not config.tools.ffmpeg_command:
            issues.append("tools.ffmpeg_command must not be empty")
        if config.tools.loop_count <= 0:
            issues.append("tools.loop_count must be positive")

        if not config.audio.accepted_extensions:
            issues.append("audio.accepted_extensions must not be empty")
        for ext in config.audio.accepted_extensions:
            if not ext.startswith('.'):
                issues.append(f"Extension must start with a dot: {ext}")
        for name in ('intermediate_extension', 'output_extension'):
            if not getattr(config.audio, name).startswith('.'):
                issues.append(f"audio.{name} must start with a dot")

        if config.processing.max_workers < 1 or config.processing.max_workers > MAX_WORKER_THREADS:
            issues.append(f"processing.max_workers must be between 1 and {MAX_WORKER_THREADS}")

        if config.ui.log_level.upper() not in VALID_LOG_LEVELS:
            issues.append(f"ui.log_level must be one of {', '.join(VALID_LOG_LEVELS)}")

        return issues

