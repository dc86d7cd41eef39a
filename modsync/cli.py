#!/usr/bin/env python3
"""Command-line interface for ModSync.

This module provides the CLI for watching crates and for one-off edits:
- Argument parsing and validation
- Configuration file loading and CLI overrides
- Logging setup
- One-shot commands (add, remove, sort, resolve, check)

Example:
    >>> from modsync.cli import parse_arguments
    >>> args = parse_arguments(['watch', '/work/my-crate'])
"""

import argparse
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from modsync.core.config import ConfigError, ConfigManager, ConfigSource, set_global_config
from modsync.core.constants import MODSYNC_VERSION, ConfigKey, RustFiles
from modsync.core.logging import Logger, set_global_logger
from modsync.core.validators import ValidationError, validate_config
from modsync.rules.engine import ConfigResolver
from modsync.rules.lint import Severity, lint_rules
from modsync.sync.engine import SyncEngine, SyncError, SyncResult
from modsync.sync.formatter import CargoFormatter

# Version information
VERSION = MODSYNC_VERSION
DESCRIPTION = "ModSync - keeps Rust module declarations in step with the source tree"


class CLIError(Exception):
    """Exception raised for CLI-related errors."""

    pass


def parse_arguments(args: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Args:
        args: Argument list to parse (defaults to sys.argv[1:])

    Returns:
        Parsed arguments namespace

    Raises:
        SystemExit: On invalid arguments or --help/--version
        CLIError: If validation fails
    """
    parser = argparse.ArgumentParser(
        prog="modsync",
        description=DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Watch a crate and keep its index files in sync
  modsync watch ./my-crate

  # Declare a file that already exists
  modsync add src/net/http.rs

  # Show which rule applies to a path
  modsync resolve src/utils/strings.rs

  # Check a rule file
  modsync check src/.modsync
        """,
    )

    # Version
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"%(prog)s {VERSION}",
    )

    # Configuration file
    parser.add_argument(
        "-c",
        "--config",
        metavar="FILE",
        type=str,
        help="Configuration file path (YAML format)",
    )

    # Logging options
    log_group = parser.add_argument_group("logging options")

    log_group.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    log_group.add_argument(
        "--log-file",
        metavar="FILE",
        type=str,
        help="Also write logs to this file",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    # watch
    watch_parser = subparsers.add_parser("watch", help="Watch a directory tree for changes")
    watch_parser.add_argument("root", metavar="DIR", nargs="?", default=".", help="Directory to watch")
    watch_parser.add_argument(
        "--debounce",
        metavar="SECONDS",
        type=float,
        help="Quiet period before pending changes are processed",
    )
    watch_parser.add_argument(
        "--rename-window",
        metavar="SECONDS",
        type=float,
        help="How long a deletion may pair with a creation as a rename",
    )
    watch_parser.add_argument(
        "--settle-delay",
        metavar="SECONDS",
        type=float,
        help="Pause before renames are processed",
    )
    watch_parser.add_argument(
        "--ignore-dir",
        metavar="NAME",
        action="append",
        dest="ignore_dirs",
        help="Directory name to ignore (can be specified multiple times)",
    )

    # add / remove
    add_parser = subparsers.add_parser("add", help="Declare a source file in its index file")
    add_parser.add_argument("file", metavar="FILE", help="Rust source file")

    remove_parser = subparsers.add_parser(
        "remove", help="Remove a source file's declarations from its index file"
    )
    remove_parser.add_argument("file", metavar="FILE", help="Rust source file")

    # sort
    sort_parser = subparsers.add_parser("sort", help="Sort the declarations of an index file")
    sort_parser.add_argument("file", metavar="INDEX_FILE", help="lib.rs, main.rs or mod.rs")

    # resolve
    resolve_parser = subparsers.add_parser("resolve", help="Show the rule that applies to a path")
    resolve_parser.add_argument("file", metavar="PATH", help="Path to resolve")

    # check
    check_parser = subparsers.add_parser("check", help="Report problems in a rule file")
    check_parser.add_argument("file", metavar="RULE_FILE", help="Rule file to check")

    # Parse arguments
    parsed = parser.parse_args(args)

    # Validate arguments
    _validate_arguments(parsed)

    return parsed


def _validate_arguments(args: argparse.Namespace) -> None:
    """
    Validate parsed arguments.

    Args:
        args: Parsed arguments namespace

    Raises:
        CLIError: If validation fails
    """
    if args.config:
        config_path = Path(args.config)

        if not config_path.exists():
            raise CLIError(f"Configuration file does not exist: {args.config}")

        if not config_path.is_file():
            raise CLIError(f"Configuration path is not a file: {args.config}")

    if args.command == "watch":
        root = Path(args.root)

        if not root.exists():
            raise CLIError(f"Directory does not exist: {args.root}")

        if not root.is_dir():
            raise CLIError(f"Not a directory: {args.root}")

        for option in ("debounce", "rename_window", "settle_delay"):
            value = getattr(args, option)
            if value is not None and value < 0:
                raise CLIError(f"--{option.replace('_', '-')} must not be negative")

        if args.rename_window == 0:
            raise CLIError("--rename-window must be greater than zero")

    elif args.command in ("add", "remove"):
        if Path(args.file).suffix != RustFiles.SOURCE_SUFFIX:
            raise CLIError(f"Not a Rust source file: {args.file}")

        if args.command == "add" and not Path(args.file).is_file():
            raise CLIError(f"File does not exist: {args.file}")

    elif args.command in ("sort", "check"):
        if not Path(args.file).is_file():
            raise CLIError(f"File does not exist: {args.file}")


def load_config_from_file(config_path: str) -> Dict:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to configuration file

    Returns:
        Configuration dictionary below the ``modsync`` root key

    Raises:
        CLIError: If file cannot be loaded or parsed
    """
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f)

        if not config:
            raise CLIError(f"Configuration file is empty: {config_path}")

        if not isinstance(config, dict):
            raise CLIError(f"Configuration file must contain a YAML dictionary: {config_path}")

        if ConfigKey.ROOT not in config:
            config = {ConfigKey.ROOT: config}

        return config

    except yaml.YAMLError as e:
        raise CLIError(f"Failed to parse configuration file: {config_path}\n{e}")

    except OSError as e:
        raise CLIError(f"Failed to read configuration file: {config_path}\n{e}")


def build_config_from_args(args: argparse.Namespace) -> Dict:
    """
    Build configuration dictionary from command-line arguments.

    Only options that were given end up in the dictionary, so everything
    else keeps its value from files, environment or defaults.

    Args:
        args: Parsed arguments namespace

    Returns:
        Configuration dictionary for ConfigManager
    """
    section: Dict[str, Any] = {}

    if args.debug:
        section.setdefault("logging", {})["level"] = "DEBUG"

    if args.log_file:
        section.setdefault("logging", {})["file"] = args.log_file

    timing = {
        "debounce_delay": getattr(args, "debounce", None),
        "rename_detection_window": getattr(args, "rename_window", None),
        "rename_settle_delay": getattr(args, "settle_delay", None),
    }
    timing = {key: value for key, value in timing.items() if value is not None}
    if timing:
        section["timing"] = timing

    ignore_dirs = getattr(args, "ignore_dirs", None)
    if ignore_dirs:
        section["watch"] = {"ignore_dirs": list(ignore_dirs)}

    return {ConfigKey.ROOT: section}


def load_configuration(args: argparse.Namespace) -> ConfigManager:
    """
    Build the layered configuration for this run and validate it.

    Args:
        args: Parsed arguments namespace

    Returns:
        Configuration manager, also installed as the global one

    Raises:
        CLIError: If a configuration source is unreadable or invalid
    """
    try:
        config = ConfigManager()
        config.load_default_files()
    except ConfigError as e:
        raise CLIError(str(e))

    if args.config:
        config.load_dict(load_config_from_file(args.config), ConfigSource.USER_CONFIG)

    config.load_dict(build_config_from_args(args), ConfigSource.CLI_ARGS)

    try:
        validate_config(config.get_all())
    except ValidationError as e:
        raise CLIError(str(e))

    set_global_config(config)
    return config


def setup_logging(args: argparse.Namespace, config: ConfigManager) -> Logger:
    """
    Setup logging based on arguments and configuration.

    Args:
        args: Parsed arguments namespace
        config: Configuration manager

    Returns:
        Configured logger instance
    """
    log_level = "DEBUG" if args.debug else config.get(ConfigKey.LOG_LEVEL, "INFO")
    log_file = args.log_file or config.get(ConfigKey.LOG_FILE)

    logger = Logger("modsync", level=log_level)

    if log_file:
        try:
            logger.add_handler(logger.create_file_handler(log_file))
        except OSError as e:
            raise CLIError(f"Cannot open log file: {log_file}\n{e}")

    set_global_logger(logger)
    return logger


def print_banner(logger: Logger) -> None:
    """
    Print startup banner with version information.

    Args:
        logger: Logger instance
    """
    logger.info("=" * 60)
    logger.info(f"ModSync v{VERSION}")
    logger.info(DESCRIPTION)
    logger.info("=" * 60)


def build_engine(config: ConfigManager, logger: Logger) -> SyncEngine:
    """Create a SyncEngine wired to the configured resolver and formatter."""
    formatter = CargoFormatter(
        command=config.get(ConfigKey.FORMATTER_COMMAND),
        timeout=float(config.get(ConfigKey.FORMATTER_TIMEOUT)),
    )
    return SyncEngine(ConfigResolver(config, logger), formatter, logger, background_format=False)


def report_result(result: SyncResult) -> None:
    """Print the files a command touched."""
    if result.skipped:
        print(f"Skipped: {result.path}")
        return

    if not result.changed:
        print("Nothing to change")
        return

    for path in result.written:
        print(f"Updated: {path}")
    for path in result.deleted:
        print(f"Deleted: {path}")
    for root in result.format_roots:
        print(f"Formatter run: {root}")


def cmd_watch(args: argparse.Namespace, config: ConfigManager, logger: Logger) -> int:
    print_banner(logger)

    from modsync.main import run_modsync

    return run_modsync(args, config, logger)


def cmd_add(args: argparse.Namespace, config: ConfigManager, logger: Logger) -> int:
    report_result(build_engine(config, logger).handle_create(args.file))
    return 0


def cmd_remove(args: argparse.Namespace, config: ConfigManager, logger: Logger) -> int:
    report_result(build_engine(config, logger).handle_delete(args.file))
    return 0


def cmd_sort(args: argparse.Namespace, config: ConfigManager, logger: Logger) -> int:
    report_result(build_engine(config, logger).sort_index(args.file))
    return 0


def cmd_resolve(args: argparse.Namespace, config: ConfigManager, logger: Logger) -> int:
    rule = ConfigResolver(config, logger).resolve_for_path(args.file)
    document = {
        "visibility": rule.visibility.value,
        "sort": rule.sort.value,
        "fmt": rule.fmt.value,
        "pattern": rule.pattern,
        "cfg": rule.cfg,
        "source": rule.source or "defaults",
    }
    print(yaml.safe_dump(document, sort_keys=False, default_flow_style=False), end="")
    return 0


def cmd_check(args: argparse.Namespace, config: ConfigManager, logger: Logger) -> int:
    try:
        with open(args.file, "r", encoding="utf-8") as f:
            text = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise CLIError(f"Failed to read rule file: {args.file}\n{e}")

    diagnostics = lint_rules(text)
    for diagnostic in diagnostics:
        print(f"{args.file}:{diagnostic}")

    if any(d.severity == Severity.ERROR for d in diagnostics):
        return 1
    return 0


COMMANDS = {
    "watch": cmd_watch,
    "add": cmd_add,
    "remove": cmd_remove,
    "sort": cmd_sort,
    "resolve": cmd_resolve,
    "check": cmd_check,
}


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Handles argument parsing, configuration and logging setup, then runs
    the selected command.
    """
    try:
        # Parse arguments
        args = parse_arguments(argv)

        # Load configuration
        config = load_configuration(args)

        # Setup logging
        logger = setup_logging(args, config)

        return COMMANDS[args.command](args, config, logger)

    except CLIError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except SyncError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 130

    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        import traceback

        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
