"""
Configuration management for tidy.
Handles loading, validation, and merging of configurations from multiple sources.
"""

import os
import json
import yaml
import logging
from pathlib import Path
from typing import Dict, Any, List, Optional
from copy import deepcopy

from dotenv import load_dotenv

from tidy.utils.error_handler import ConfigurationError

logger = logging.getLogger(__name__)

ENV_PREFIX = "TIDY_"
VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

# Values taken verbatim from the environment; a directory may be named "2024".
PATH_KEYS = [
    "sorting.output_directory",
    "report.path",
    "report.errors_path",
    "logging.file",
]


class ConfigManager:
    """Manage configuration from defaults, files, environment and command line."""

    def __init__(
        self,
        config_file: Optional[Path] = None,
        overrides: Optional[Dict[str, Any]] = None,
        load_env_file: bool = True,
    ):
        """
        Initialize configuration manager.

        Args:
            config_file: Optional path to a JSON or YAML configuration file
            overrides: Optional dotted-path overrides, e.g. from the command
                line ({"concurrency.max_workers": 4}); None values are ignored
            load_env_file: Whether to read a .env file into the environment
        """
        self.config = self._load_default_config()

        if config_file is not None:
            config_file = Path(config_file)
            if not config_file.exists():
                raise ConfigurationError(f"Config file not found: {config_file}")
            self._load_from_file(config_file)

        if load_env_file:
            load_dotenv()
        self._load_from_env()

        if overrides:
            self._load_overrides(overrides)

        self._validate_config()

        logger.debug("Configuration loaded successfully")

    def _load_default_config(self) -> Dict[str, Any]:
        """Load default configuration."""
        return {
            "sorting": {
                "output_directory": "./sorted",
            },
            "concurrency": {
                "max_workers": 8,
                "channel_capacity": 48,
            },
            "copy": {
                "verify_integrity": False,
                "preserve_metadata": True,
            },
            "logging": {
                "level": "INFO",
                "file": None,
                "max_size": 10485760,  # 10MB
                "backup_count": 5,
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            },
            "report": {
                "path": None,
                "errors_path": None,
            },
            "ui": {
                "show_progress": True,
            },
        }

    def _load_from_file(self, config_file: Path):
        """Load configuration from file."""
        logger.info(f"Loading configuration from {config_file}")

        try:
            with open(config_file, "r") as f:
                if config_file.suffix == ".json":
                    file_config = json.load(f)
                elif config_file.suffix in (".yaml", ".yml"):
                    file_config = yaml.safe_load(f) or {}
                else:
                    raise ConfigurationError(
                        f"Unsupported config file format: {config_file}"
                    )
        except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
            logger.error(f"Error loading config file: {e}")
            raise ConfigurationError(f"Cannot load {config_file}: {e}") from e

        if not isinstance(file_config, dict):
            raise ConfigurationError(f"Config file must contain a mapping: {config_file}")

        self._deep_merge(self.config, file_config)

    def _load_from_env(self):
        """Load configuration from TIDY_* environment variables.

        ``TIDY_CONCURRENCY__MAX_WORKERS=4`` sets ``concurrency.max_workers``.
        """
        for key, value in os.environ.items():
            if key.startswith(ENV_PREFIX):
                config_path = key[len(ENV_PREFIX) :].lower().split("__")
                if len(config_path) < 2:
                    continue
                self._set_nested_config(self.config, config_path, value)

    def _load_overrides(self, overrides: Dict[str, Any]):
        """Apply dotted-path overrides, skipping unset (None) values."""
        for path, value in overrides.items():
            if value is not None:
                self._set_nested_config(self.config, path.split("."), value)

    def _deep_merge(self, base: Dict[str, Any], update: Dict[str, Any]):
        """Deep merge update dictionary into base dictionary."""
        for key, value in update.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._deep_merge(base[key], value)
            else:
                base[key] = value

    def _set_nested_config(
        self, config_dict: Dict[str, Any], path: List[str], value: Any
    ):
        """Set a value in a nested dictionary using a path."""
        if isinstance(value, str) and ".".join(path) not in PATH_KEYS:
            value = self._coerce(value)

        current = config_dict
        for part in path[:-1]:
            if not isinstance(current.get(part), dict):
                current[part] = {}
            current = current[part]
        current[path[-1]] = value

    @staticmethod
    def _coerce(value: str) -> Any:
        """Convert an environment string to bool/int/float/list/None."""
        if value.lower() in ("true", "false"):
            return value.lower() == "true"
        if value.lower() in ("none", "null"):
            return None
        if value.isdigit():
            return int(value)
        if value.replace(".", "", 1).isdigit() and value.count(".") == 1:
            return float(value)
        if value.startswith("[") and value.endswith("]"):
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                return value
        return value

    def _validate_config(self):
        """Validate configuration values."""
        errors = []

        for key in PATH_KEYS:
            value = self.get(key)
            if key == "sorting.output_directory" and not value:
                errors.append(f"{key} must not be empty")
            elif value is not None and not isinstance(value, (str, os.PathLike)):
                errors.append(f"{key} must be a path, got {value!r}")

        concurrency = self.config["concurrency"]
        for key in ("max_workers", "channel_capacity"):
            value = concurrency.get(key)
            if not isinstance(value, int) or isinstance(value, bool) or value < 1:
                errors.append(f"concurrency.{key} must be an integer >= 1")

        for key in ("verify_integrity", "preserve_metadata"):
            if not isinstance(self.config["copy"].get(key), bool):
                errors.append(f"copy.{key} must be true or false")

        level = self.config["logging"].get("level")
        if not isinstance(level, str) or level.upper() not in VALID_LOG_LEVELS:
            errors.append(f"logging level must be one of {VALID_LOG_LEVELS}")

        if errors:
            raise ConfigurationError(
                f"Configuration validation failed: {'; '.join(errors)}"
            )

    def get(self, path: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation.

        Args:
            path: Configuration path (e.g., 'concurrency.max_workers')
            default: Default value if path not found

        Returns:
            Configuration value or default
        """
        parts = path.split(".")
        current = self.config

        for part in parts:
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default

        return current

    def set(self, path: str, value: Any):
        """
        Set configuration value using dot notation.

        Args:
            path: Configuration path (e.g., 'concurrency.max_workers')
            value: Value to set
        """
        parts = path.split(".")
        current = self.config

        for part in parts[:-1]:
            if part not in current:
                current[part] = {}
            current = current[part]

        current[parts[-1]] = value

    def save(self, filepath: Path, format: str = "json"):
        """
        Save configuration to file.

        Args:
            filepath: Path to save configuration
            format: File format ('json' or 'yaml')
        """
        if format not in ("json", "yaml", "yml"):
            raise ValueError(f"Unsupported format: {format}")

        logger.info(f"Saving configuration to {filepath}")

        with open(filepath, "w") as f:
            if format == "json":
                json.dump(self.config, f, indent=2)
            else:
                yaml.safe_dump(deepcopy(self.config), f, default_flow_style=False)
