"""
Configuration — Centralized settings management

Config hierarchy (highest to lowest priority):
  1. Project config (.jref/config.yaml)
  2. User config (~/.jref/config.yaml)
  3. Environment variables (JREF_LOG_LEVEL, JREF_LOG_FILE, JREF_MAX_FILE_SIZE)
  4. Defaults
"""

import logging
import os
import yaml
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional, Dict, Any

log = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_MAX_FILE_SIZE = 1_000_000


@dataclass
class ServerConfig:
    """Language server process settings."""
    log_level: str = DEFAULT_LOG_LEVEL
    log_file: Optional[str] = None  # None = stderr

    def validate(self) -> Optional[str]:
        """Validate config. Returns error message or None if valid."""
        if self.log_level.upper() not in LOG_LEVELS:
            return f"Unknown log level '{self.log_level}'. Valid: {', '.join(LOG_LEVELS)}"
        return None


@dataclass
class AnalysisConfig:
    """Document analysis limits."""
    max_file_size: int = DEFAULT_MAX_FILE_SIZE  # bytes

    def validate(self) -> Optional[str]:
        """Validate config. Returns error message or None if valid."""
        if self.max_file_size <= 0:
            return f"max_file_size must be positive, got {self.max_file_size}"
        return None


@dataclass
class Config:
    """Application configuration."""
    server: ServerConfig = field(default_factory=ServerConfig)
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "server": {
                "log_level": self.server.log_level,
                "log_file": self.server.log_file,
            },
            "analysis": {
                "max_file_size": self.analysis.max_file_size,
            },
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Config':
        """Create from dictionary."""
        server_data = data.get("server") or {}
        analysis_data = data.get("analysis") or {}

        return cls(
            server=ServerConfig(
                log_level=str(server_data.get("log_level", DEFAULT_LOG_LEVEL)).upper(),
                log_file=server_data.get("log_file"),
            ),
            analysis=AnalysisConfig(
                max_file_size=int(analysis_data.get("max_file_size", DEFAULT_MAX_FILE_SIZE)),
            ),
        )

    def validate(self) -> Optional[str]:
        """First validation error across sections, or None."""
        return self.server.validate() or self.analysis.validate()


class ConfigManager:
    """
    Manages configuration loading.

    Hierarchy:
      1. Project config (.jref/config.yaml)
      2. User config (~/.jref/config.yaml)
      3. Environment
      4. Defaults
    """

    USER_CONFIG_DIR = Path.home() / ".jref"
    USER_CONFIG_FILE = USER_CONFIG_DIR / "config.yaml"
    PROJECT_CONFIG_DIR = ".jref"
    PROJECT_CONFIG_FILE = "config.yaml"

    def __init__(self, project_dir: Optional[Path] = None):
        self.project_dir = Path(project_dir) if project_dir else Path.cwd()
        self._config: Optional[Config] = None

    @property
    def project_config_path(self) -> Path:
        return self.project_dir / self.PROJECT_CONFIG_DIR / self.PROJECT_CONFIG_FILE

    @property
    def user_config_path(self) -> Path:
        return self.USER_CONFIG_FILE

    def load(self) -> Config:
        """Load configuration from all sources."""
        if self._config is not None:
            return self._config

        # Start with defaults
        config_data: Dict[str, Any] = {}

        # Layer 1: Environment
        env_values = (
            ("JREF_LOG_LEVEL", "server", "log_level"),
            ("JREF_LOG_FILE", "server", "log_file"),
            ("JREF_MAX_FILE_SIZE", "analysis", "max_file_size"),
        )
        for env_key, section, setting in env_values:
            if os.environ.get(env_key):
                config_data.setdefault(section, {})[setting] = os.environ[env_key]

        # Layer 2: User config, Layer 3: Project config (higher priority)
        for path in (self.user_config_path, self.project_config_path):
            config_data = self._merge(config_data, self._read_yaml(path))

        try:
            config = Config.from_dict(config_data)
        except (TypeError, ValueError) as e:
            log.warning("Invalid configuration, using defaults: %s", e)
            config = Config()

        error = config.validate()
        if error:
            log.warning("Invalid configuration, using defaults: %s", error)
            config = Config()

        self._config = config
        return self._config

    def reload(self) -> Config:
        """Drop the cached config and load again."""
        self._config = None
        return self.load()

    def _read_yaml(self, path: Path) -> Dict[str, Any]:
        if not path.exists():
            return {}
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            log.warning("Ignoring unreadable config %s: %s", path, e)
            return {}
        if not isinstance(data, dict):
            log.warning("Ignoring config %s: expected a mapping", path)
            return {}
        return data

    def get(self, key: str) -> Optional[str]:
        """Get a configuration value by dotted key (e.g., "server.log_level")."""
        parts = key.split(".")
        if len(parts) != 2:
            return None

        section, setting = parts
        value = self.load().to_dict().get(section, {}).get(setting)
        return None if value is None else str(value)

    def _merge(self, base: Dict, override: Dict) -> Dict:
        """Deep merge two dicts, override wins."""
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge(result[key], value)
            else:
                result[key] = value
        return result

    def display(self) -> str:
        """Format config for display."""
        config = self.load()
        lines = [
            "Configuration:",
            "",
            "Server:",
            f"  Log level: {config.server.log_level}",
            f"  Log file: {config.server.log_file or '(stderr)'}",
            "",
            "Analysis:",
            f"  Max file size: {config.analysis.max_file_size} bytes",
            "",
            "Config files:",
            f"  User: {self.user_config_path}",
            f"  Project: {self.project_config_path}",
        ]
        return "\n".join(lines)


# Convenience function
def get_config(project_dir: Optional[Path] = None) -> Config:
    """Load configuration for a project."""
    return ConfigManager(project_dir).load()
