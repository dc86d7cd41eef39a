#!/usr/bin/env python3
"""Hierarchical process-wide configuration for ModSync.

This is the configuration source consulted when no ``.modsync`` rule file
applies to a path. It also carries the coalescer timings, watcher and
formatter settings.

Precedence, lowest first:
1. Compiled defaults
2. System config (/etc/modsync/config.yaml)
3. User config (~/.config/modsync/config.yaml)
4. Environment variables (MODSYNC_*)
5. CLI arguments
6. Runtime updates

Example:
    >>> config = ConfigManager()
    >>> config.load_file("modsync.yaml")
    >>> config.get("modsync.timing.debounce_delay", default=0.5)
"""

import copy
import os
import threading
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from modsync.core.constants import DEFAULT_CONFIG, ErrorCode

SYSTEM_CONFIG_PATH = "/etc/modsync/config.yaml"
USER_CONFIG_PATH = "~/.config/modsync/config.yaml"
ENV_PREFIX = "MODSYNC_"


class ConfigSource(Enum):
    """Configuration source precedence levels."""

    COMPILED_DEFAULTS = 1  # Lowest precedence
    SYSTEM_CONFIG = 2
    USER_CONFIG = 3
    ENVIRONMENT = 4
    CLI_ARGS = 5
    RUNTIME = 6  # Highest precedence


class ConfigError(Exception):
    """Configuration error."""

    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.INVALID_INPUT):
        self.message = message
        self.error_code = error_code
        super().__init__(message)


class ConfigManager:
    """Thread-safe layered configuration manager.

    Values are looked up by dot-separated key, searching from the highest
    precedence source down to the compiled defaults.
    """

    def __init__(
        self,
        config_file: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
    ):
        """Initialize configuration manager.

        Args:
            config_file: Optional YAML file loaded as user config
            environ: Environment mapping (defaults to ``os.environ``)
        """
        self._config: Dict[ConfigSource, Dict[str, Any]] = {}
        self._lock = threading.RLock()

        self._config[ConfigSource.COMPILED_DEFAULTS] = copy.deepcopy(DEFAULT_CONFIG)

        if config_file:
            self.load_file(config_file)

        self._load_environment(os.environ if environ is None else environ)

    def load_file(self, file_path: str, source: ConfigSource = ConfigSource.USER_CONFIG) -> None:
        """Load configuration from YAML file.

        Args:
            file_path: Path to YAML config file
            source: Configuration source level

        Raises:
            ConfigError: If file cannot be loaded or parsed
        """
        path = Path(file_path).expanduser().resolve()

        if not path.exists():
            raise ConfigError(f"Config file not found: {file_path}", ErrorCode.NOT_FOUND)

        try:
            with open(path, "r", encoding="utf-8") as f:
                config_data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"YAML parse error in {file_path}: {e}", ErrorCode.INVALID_INPUT)
        except OSError as e:
            raise ConfigError(f"Error loading config {file_path}: {e}", ErrorCode.INTERNAL_ERROR)

        if config_data is None:
            config_data = {}
        if not isinstance(config_data, dict):
            raise ConfigError(f"Invalid config format in {file_path}", ErrorCode.INVALID_INPUT)

        with self._lock:
            self._config[source] = config_data

    def load_default_files(self) -> None:
        """Load the system and user config files when they exist."""
        for file_path, source in (
            (SYSTEM_CONFIG_PATH, ConfigSource.SYSTEM_CONFIG),
            (USER_CONFIG_PATH, ConfigSource.USER_CONFIG),
        ):
            if Path(file_path).expanduser().is_file():
                self.load_file(file_path, source)

    def load_dict(self, config_data: Dict[str, Any], source: ConfigSource = ConfigSource.RUNTIME) -> None:
        """Load configuration from dictionary.

        Args:
            config_data: Configuration dictionary
            source: Configuration source level
        """
        with self._lock:
            self._config[source] = copy.deepcopy(config_data)

    def _load_environment(self, environ: Mapping[str, str]) -> None:
        """Load configuration from environment variables.

        Nested keys are separated by a double underscore:
        ``MODSYNC_TIMING__DEBOUNCE_DELAY=1.5`` sets
        ``modsync.timing.debounce_delay``.
        """
        env_config: Dict[str, Any] = {}

        for key, value in environ.items():
            if not key.startswith(ENV_PREFIX):
                continue

            parts = [part for part in key[len(ENV_PREFIX):].lower().split("__") if part]
            if not parts:
                continue

            current = env_config
            for part in parts[:-1]:
                current = current.setdefault(part, {})
                if not isinstance(current, dict):
                    break
            else:
                current[parts[-1]] = self._parse_env_value(value)

        if env_config:
            with self._lock:
                self._config[ConfigSource.ENVIRONMENT] = {"modsync": env_config}

    def _parse_env_value(self, value: str) -> Any:
        """Parse environment variable value into bool, int, float or str."""
        if value.lower() in ("true", "yes"):
            return True
        if value.lower() in ("false", "no"):
            return False

        try:
            return int(value)
        except ValueError:
            pass

        try:
            return float(value)
        except ValueError:
            pass

        return value

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by dot-separated key.

        Args:
            key: Dot-separated key path (e.g., "modsync.defaults.visibility")
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        with self._lock:
            for source in sorted(self._config.keys(), key=lambda s: s.value, reverse=True):
                value = self._get_nested(self._config[source], key)
                if value is not None:
                    return value

            return default

    def _get_nested(self, config: Dict[str, Any], key: str) -> Optional[Any]:
        current: Any = config
        for part in key.split("."):
            if not isinstance(current, dict) or part not in current:
                return None
            current = current[part]
        return current

    def set(self, key: str, value: Any, source: ConfigSource = ConfigSource.RUNTIME) -> None:
        """Set configuration value.

        Args:
            key: Dot-separated key path
            value: Value to set
            source: Configuration source level
        """
        with self._lock:
            current = self._config.setdefault(source, {})
            parts = key.split(".")
            for part in parts[:-1]:
                current = current.setdefault(part, {})
            current[parts[-1]] = value

    def get_all(self) -> Dict[str, Any]:
        """Get merged configuration from all sources."""
        with self._lock:
            merged: Dict[str, Any] = {}
            for source in sorted(self._config.keys(), key=lambda s: s.value):
                merged = self._deep_merge(merged, self._config[source])
            return merged

    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def clear(self, source: Optional[ConfigSource] = None) -> None:
        """Clear one source, or every source except the compiled defaults."""
        with self._lock:
            if source:
                if source in self._config and source != ConfigSource.COMPILED_DEFAULTS:
                    del self._config[source]
            else:
                for s in [s for s in self._config if s != ConfigSource.COMPILED_DEFAULTS]:
                    del self._config[s]


# Global config manager instance
_global_config: Optional[ConfigManager] = None


def get_config_manager(config_file: Optional[str] = None) -> ConfigManager:
    """Get or create the global configuration manager.

    Args:
        config_file: Optional config file to load on first creation

    Returns:
        Global configuration manager
    """
    global _global_config
    if _global_config is None:
        _global_config = ConfigManager(config_file)
    return _global_config


def set_global_config(config: Optional[ConfigManager]) -> None:
    """Set (or reset with None) the global configuration manager."""
    global _global_config
    _global_config = config
