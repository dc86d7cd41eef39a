"""ModSync Core - Shared utilities and infrastructure.

Import specific functions from submodules:
    from modsync.core.config import ConfigManager
    from modsync.core.logging import Logger
    from modsync.core import constants
    from modsync.core import validators
"""

from modsync.core import config, constants, logging, validators

__all__ = [
    "config",
    "constants",
    "logging",
    "validators",
]
