"""
ModSync Core: Configuration Validators.

Structural validation of the process-wide configuration (the YAML files and
CLI/environment overrides managed by ConfigManager). Per-directory rule files
are never validated here: they are parsed leniently by the rule engine and
checked line by line by ``modsync.rules.lint``.
"""
from typing import Any, Dict, Type

from modsync.core.constants import ErrorCode, FmtMode, SortMode, Visibility


class ValidationError(Exception):
    """Base exception for validation errors."""

    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.INVALID_INPUT):
        """Initialize ValidationError.

        Args:
            message: Error message
            error_code: Associated error code
        """
        super().__init__(message)
        self.error_code = error_code


def validate_config(config: Dict[str, Any]) -> bool:
    """Validate a ModSync configuration structure.

    Args:
        config: Configuration dictionary (with or without the ``modsync`` root key)

    Returns:
        True if valid

    Raises:
        ValidationError: If configuration is invalid
    """
    if not isinstance(config, dict):
        raise ValidationError("Configuration must be a dictionary")

    section = config.get("modsync", config)
    if not isinstance(section, dict):
        raise ValidationError("'modsync' section must be a dictionary")

    validators = {
        "defaults": validate_defaults_config,
        "timing": validate_timing_config,
        "watch": validate_watch_config,
        "logging": validate_logging_config,
        "formatter": validate_formatter_config,
    }
    for key, validator in validators.items():
        if key in section:
            try:
                validator(section[key])
            except ValidationError as e:
                raise ValidationError(f"Invalid '{key}' configuration: {e}", e.error_code)

    return True


def _validate_choice(name: str, value: Any, enum_type: Type) -> None:
    try:
        enum_type(value)
    except ValueError:
        valid = [member.value for member in enum_type]
        raise ValidationError(f"Invalid {name}: {value}. Must be one of {valid}")


def validate_defaults_config(defaults: Dict[str, Any]) -> bool:
    """Validate fallback rule values.

    Raises:
        ValidationError: If a value is not part of its grammar
    """
    if not isinstance(defaults, dict):
        raise ValidationError("Defaults must be a dictionary")

    if "visibility" in defaults:
        _validate_choice("visibility", defaults["visibility"], Visibility)
    if "sort" in defaults:
        _validate_choice("sort", defaults["sort"], SortMode)
    if "fmt" in defaults:
        _validate_choice("fmt", defaults["fmt"], FmtMode)

    return True


def validate_timing_config(timing: Dict[str, Any]) -> bool:
    """Validate coalescer delays.

    Delays must be non-negative numbers; the minimum rename score may be
    any number.

    Raises:
        ValidationError: If a delay is invalid
    """
    if not isinstance(timing, dict):
        raise ValidationError("Timing must be a dictionary")

    unknown_fields = set(timing) - {
        "debounce_delay",
        "rename_detection_window",
        "rename_settle_delay",
        "min_rename_score",
    }
    if unknown_fields:
        raise ValidationError(f"Unknown timing fields: {', '.join(sorted(unknown_fields))}")

    for key in ("debounce_delay", "rename_detection_window", "rename_settle_delay"):
        if key in timing:
            value = timing[key]
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
                raise ValidationError(f"{key} must be a non-negative number: {value}")

    if "rename_detection_window" in timing and timing["rename_detection_window"] == 0:
        raise ValidationError("rename_detection_window must be greater than zero")

    if "min_rename_score" in timing:
        score = timing["min_rename_score"]
        if isinstance(score, bool) or not isinstance(score, (int, float)):
            raise ValidationError(f"min_rename_score must be a number: {score}")

    return True


def validate_watch_config(watch: Dict[str, Any]) -> bool:
    """Validate watcher settings."""
    if not isinstance(watch, dict):
        raise ValidationError("Watch must be a dictionary")

    if "ignore_dirs" in watch:
        ignore_dirs = watch["ignore_dirs"]
        if not isinstance(ignore_dirs, list) or not all(
            isinstance(name, str) and name for name in ignore_dirs
        ):
            raise ValidationError("ignore_dirs must be a list of directory names")

    if "recursive" in watch and not isinstance(watch["recursive"], bool):
        raise ValidationError(f"recursive must be boolean: {watch['recursive']}")

    return True


def validate_logging_config(logging_config: Dict[str, Any]) -> bool:
    """Validate logging settings."""
    if not isinstance(logging_config, dict):
        raise ValidationError("Logging must be a dictionary")

    if "level" in logging_config:
        level = logging_config["level"]
        if not isinstance(level, str) or level.upper() not in (
            "DEBUG",
            "INFO",
            "WARNING",
            "ERROR",
            "CRITICAL",
        ):
            raise ValidationError(f"Invalid log level: {level}")

    if logging_config.get("file") is not None and not isinstance(logging_config["file"], str):
        raise ValidationError(f"Log file must be a path string: {logging_config['file']}")

    return True


def validate_formatter_config(formatter: Dict[str, Any]) -> bool:
    """Validate formatter settings."""
    if not isinstance(formatter, dict):
        raise ValidationError("Formatter must be a dictionary")

    if "command" in formatter:
        command = formatter["command"]
        if (
            not isinstance(command, list)
            or not command
            or not all(isinstance(part, str) and part for part in command)
        ):
            raise ValidationError("Formatter command must be a non-empty list of strings")

    if "timeout" in formatter:
        timeout = formatter["timeout"]
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
            raise ValidationError(f"Formatter timeout must be positive number: {timeout}")

    return True
