"""
ModSync Core: Constants and Type Definitions

This module provides system-wide constants, error codes, and type definitions
shared by the rule resolver, the declaration store and the sync engine.
"""
from enum import Enum, IntEnum
from typing import FrozenSet, TypeAlias

# Version information
MODSYNC_VERSION = "1.0.0"


# Error codes
class ErrorCode(IntEnum):
    """Standardized error codes for ModSync operations."""

    SUCCESS = 0  # Operation completed successfully
    INVALID_INPUT = 1  # Bad path, invalid configuration
    NOT_FOUND = 2  # File or resource doesn't exist
    PERMISSION_DENIED = 3  # Insufficient permissions
    CONFLICT = 4  # Resource conflict
    DEPENDENCY_ERROR = 5  # Missing external tool (cargo)
    INTERNAL_ERROR = 6  # Bug in ModSync
    TIMEOUT = 7  # Operation timed out


# Type aliases for clarity
FilePath: TypeAlias = str
ModuleName: TypeAlias = str
Condition: TypeAlias = str


class Visibility(Enum):
    """Visibility qualifier of a generated declaration."""

    PUB = "pub"  # pub mod name;
    PRIVATE = "private"  # mod name;


class SortMode(Enum):
    """Ordering of declaration blocks in an index file."""

    ALPHA = "alpha"  # Re-sort blocks by module name
    NONE = "none"  # Keep insertion order


class FmtMode(Enum):
    """Whether the external formatter runs after a write."""

    ENABLED = "enabled"
    DISABLED = "disabled"


class RustFiles:
    """File names and extensions of the Rust module system."""

    SOURCE_SUFFIX = ".rs"

    CRATE_ROOT = "lib.rs"
    PROGRAM_ENTRY = "main.rs"
    DIRECTORY_INDEX = "mod.rs"
    MANIFEST = "Cargo.toml"

    # Stems that never get a declaration of their own
    RESERVED_STEMS: FrozenSet[str] = frozenset({"mod", "lib", "main", "build"})


# Per-directory rule file name
RULE_FILENAME = ".modsync"


class Timing:
    """Default delays of the event coalescer, in seconds."""

    DEBOUNCE_DELAY = 0.5
    RENAME_DETECTION_WINDOW = 0.3
    RENAME_SETTLE_DELAY = 0.2
    MIN_RENAME_SCORE = 0.0

    FORMATTER_TIMEOUT = 30.0


# Configuration keys
class ConfigKey:
    """Configuration key constants (dot paths below the ``modsync`` root)."""

    ROOT = "modsync"

    DEFAULT_VISIBILITY = "modsync.defaults.visibility"
    DEFAULT_SORT = "modsync.defaults.sort"
    DEFAULT_FMT = "modsync.defaults.fmt"

    DEBOUNCE_DELAY = "modsync.timing.debounce_delay"
    RENAME_DETECTION_WINDOW = "modsync.timing.rename_detection_window"
    RENAME_SETTLE_DELAY = "modsync.timing.rename_settle_delay"
    MIN_RENAME_SCORE = "modsync.timing.min_rename_score"

    IGNORE_DIRS = "modsync.watch.ignore_dirs"
    RECURSIVE = "modsync.watch.recursive"

    LOG_LEVEL = "modsync.logging.level"
    LOG_FILE = "modsync.logging.file"

    FORMATTER_COMMAND = "modsync.formatter.command"
    FORMATTER_TIMEOUT = "modsync.formatter.timeout"


# Default configuration values
DEFAULT_CONFIG = {
    "modsync": {
        "defaults": {
            "visibility": "pub",
            "sort": "none",
            "fmt": "disabled",
        },
        "timing": {
            "debounce_delay": Timing.DEBOUNCE_DELAY,
            "rename_detection_window": Timing.RENAME_DETECTION_WINDOW,
            "rename_settle_delay": Timing.RENAME_SETTLE_DELAY,
            "min_rename_score": Timing.MIN_RENAME_SCORE,
        },
        "watch": {
            "ignore_dirs": ["target", ".git"],
            "recursive": True,
        },
        "logging": {
            "level": "INFO",
            "file": None,
        },
        "formatter": {
            "command": ["cargo", "fmt"],
            "timeout": Timing.FORMATTER_TIMEOUT,
        },
    }
}
