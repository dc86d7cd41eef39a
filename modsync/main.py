#!/usr/bin/env python3
"""Watch-mode entry point for ModSync.

This module handles:
- Component initialization (resolver, formatter, engine, coalescer, observer)
- Signal handling for graceful shutdown
- The blocking watch loop
- Flushing pending changes on exit

Example:
    >>> from modsync.main import run_modsync
    >>> run_modsync(args, config, logger)
"""

import argparse
import signal
import sys
import threading
from pathlib import Path
from typing import Optional

from modsync.core.config import ConfigManager
from modsync.core.constants import ConfigKey, Timing
from modsync.core.logging import Logger
from modsync.rules.engine import ConfigResolver
from modsync.sync.coalescer import EventCoalescer
from modsync.sync.engine import SyncEngine
from modsync.sync.formatter import CargoFormatter
from modsync.watcher import ModuleEventHandler, create_observer


class ModSyncMain:
    """
    Main class for a ModSync watch session.

    Handles component lifecycle, the observer and shutdown.
    """

    def __init__(self, args: argparse.Namespace, config: ConfigManager, logger: Logger):
        """
        Initialize watch controller.

        Args:
            args: Parsed command-line arguments (``root`` is the watched directory)
            config: Configuration manager
            logger: Logger instance
        """
        self.args = args
        self.config = config
        self.logger = logger
        self.root = Path(args.root).absolute()
        self.shutdown_event = threading.Event()

        # Components
        self.resolver: Optional[ConfigResolver] = None
        self.engine: Optional[SyncEngine] = None
        self.coalescer: Optional[EventCoalescer] = None
        self.handler: Optional[ModuleEventHandler] = None
        self.observer = None

    def initialize_components(self) -> None:
        """
        Initialize all ModSync components.

        Creates and wires:
        - ConfigResolver
        - CargoFormatter
        - SyncEngine
        - EventCoalescer
        - ModuleEventHandler and its observer
        """
        self.logger.info("Initializing components...")

        self.logger.debug("Creating ConfigResolver")
        self.resolver = ConfigResolver(self.config, self.logger)

        self.logger.debug("Creating SyncEngine")
        formatter = CargoFormatter(
            command=self.config.get(ConfigKey.FORMATTER_COMMAND),
            timeout=float(self.config.get(ConfigKey.FORMATTER_TIMEOUT, Timing.FORMATTER_TIMEOUT)),
        )
        self.engine = SyncEngine(self.resolver, formatter, self.logger)

        self.logger.debug("Creating EventCoalescer")
        self.coalescer = EventCoalescer.from_config(self.engine, self.config, logger=self.logger)

        self.logger.debug("Creating observer", root=str(self.root))
        self.handler = ModuleEventHandler(
            self.root,
            self.coalescer,
            ignore_dirs=self.config.get(ConfigKey.IGNORE_DIRS, ["target", ".git"]),
            logger=self.logger,
        )
        self.observer = create_observer(
            self.handler, recursive=bool(self.config.get(ConfigKey.RECURSIVE, True))
        )

        self.logger.info("All components initialized successfully")

    def setup_signal_handlers(self) -> None:
        """
        Setup signal handlers for graceful shutdown.

        Handles:
        - SIGTERM: Graceful shutdown
        - SIGINT: Graceful shutdown (Ctrl+C)
        """

        def signal_handler(signum, frame):
            sig_name = signal.Signals(signum).name
            self.logger.info(f"Received signal {sig_name}, shutting down...")
            self.shutdown_event.set()

        signal.signal(signal.SIGTERM, signal_handler)
        signal.signal(signal.SIGINT, signal_handler)

        self.logger.debug("Signal handlers registered")

    def watch(self) -> int:
        """
        Watch the root until shutdown is requested.

        Returns:
            Exit code (0 for success, non-zero for failure)
        """
        self.logger.info("Watching for module changes", root=str(self.root))

        try:
            self.observer.start()
        except OSError as e:
            self.logger.error(f"Failed to start observer: {e}")
            return 1

        while not self.shutdown_event.wait(timeout=1.0):
            if not self.observer.is_alive():
                self.logger.error("Observer stopped unexpectedly")
                return 1

        return 0

    def cleanup(self) -> None:
        """
        Cleanup resources on shutdown.

        Stops the observer, treats every held delete as final and flushes
        what is still pending, then waits for formatter runs to finish.
        """
        self.logger.info("Cleaning up...")

        if self.observer is not None and self.observer.is_alive():
            self.observer.stop()
            self.observer.join(timeout=5.0)

        if self.coalescer is not None:
            report = self.coalescer.close(flush_pending=True)
            if report is not None and not report.empty:
                self.logger.info(
                    "Flushed pending changes",
                    renames=len(report.renamed),
                    deletions=len(report.deleted),
                    creations=len(report.created),
                    failures=len(report.failures),
                )

        if self.engine is not None and not self.engine.wait_for_formatting(
            timeout=float(self.config.get(ConfigKey.FORMATTER_TIMEOUT, Timing.FORMATTER_TIMEOUT))
        ):
            self.logger.warning("Formatter still running at shutdown")

        self.logger.info("Cleanup complete")

    def run(self) -> int:
        """
        Run the watch session.

        Returns:
            Exit code (0 for success, non-zero for failure)
        """
        try:
            self.initialize_components()
            self.setup_signal_handlers()
            return self.watch()

        except KeyboardInterrupt:
            self.logger.info("Interrupted by user")
            return 130

        except Exception as e:
            self.logger.exception("Fatal error", e)
            return 1

        finally:
            self.cleanup()


def run_modsync(args: argparse.Namespace, config: ConfigManager, logger: Logger) -> int:
    """
    Run a watch session.

    Args:
        args: Parsed command-line arguments
        config: Configuration manager
        logger: Logger instance

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    return ModSyncMain(args, config, logger).run()


def main():
    """
    Entry point when run as standalone script.

    Typically called via cli.py, which parses arguments.
    """
    from modsync.cli import main as cli_main

    return cli_main()


if __name__ == "__main__":
    sys.exit(main())
