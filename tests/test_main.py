"""Tests for the ModSync watch controller.

This module tests the main controller including:
- Component initialization
- Signal handling
- The watch loop
- Cleanup procedures
"""

import argparse
import signal
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from modsync.core.config import ConfigSource
from modsync.main import ModSyncMain, run_modsync
from modsync.sync.coalescer import EventCoalescer
from modsync.sync.engine import SyncEngine


@pytest.fixture
def mock_args(crate_dir: Path):
    """Create mock command-line arguments."""
    args = argparse.Namespace()
    args.root = str(crate_dir)
    args.config = None
    args.debug = False
    args.log_file = None
    args.command = "watch"
    return args


@pytest.fixture
def mock_observer():
    observer = MagicMock()
    observer.is_alive.return_value = True
    return observer


class TestModSyncMainInit:
    """Test ModSyncMain initialization."""

    def test_init_stores_arguments(self, mock_args, config, logger):
        main = ModSyncMain(mock_args, config, logger)

        assert main.args is mock_args
        assert main.config is config
        assert main.root == Path(mock_args.root).absolute()
        assert not main.shutdown_event.is_set()
        assert main.engine is None


class TestInitializeComponents:
    """Test component wiring."""

    def test_components_created(self, mock_args, config, logger, mock_observer):
        config.load_dict(
            {"modsync": {"timing": {"debounce_delay": 2.0}, "watch": {"ignore_dirs": ["out"]}}},
            ConfigSource.CLI_ARGS,
        )
        main = ModSyncMain(mock_args, config, logger)

        with patch("modsync.main.create_observer", return_value=mock_observer) as mock_create:
            main.initialize_components()

        assert isinstance(main.engine, SyncEngine)
        assert isinstance(main.coalescer, EventCoalescer)
        assert main.coalescer.debounce_delay == 2.0
        assert main.handler.ignore_dirs == {"out"}
        assert main.handler.root == main.root
        assert main.observer is mock_observer
        mock_create.assert_called_once_with(main.handler, recursive=True)


class TestSignalHandlers:
    """Test signal handling."""

    def test_handlers_set_shutdown(self, mock_args, config, logger):
        main = ModSyncMain(mock_args, config, logger)

        with patch("modsync.main.signal.signal") as mock_signal:
            main.setup_signal_handlers()

        registered = {call.args[0]: call.args[1] for call in mock_signal.call_args_list}
        assert set(registered) == {signal.SIGTERM, signal.SIGINT}

        registered[signal.SIGTERM](signal.SIGTERM, None)
        assert main.shutdown_event.is_set()


class TestRun:
    """Test the run lifecycle."""

    def test_run_until_shutdown(self, mock_args, config, logger, mock_observer):
        main = ModSyncMain(mock_args, config, logger)
        main.shutdown_event.set()

        with patch("modsync.main.create_observer", return_value=mock_observer), patch(
            "modsync.main.signal.signal"
        ):
            assert main.run() == 0

        mock_observer.start.assert_called_once()
        mock_observer.stop.assert_called_once()
        mock_observer.join.assert_called_once()

    def test_observer_dies(self, mock_args, config, logger, mock_observer):
        mock_observer.is_alive.return_value = False
        main = ModSyncMain(mock_args, config, logger)

        with patch("modsync.main.create_observer", return_value=mock_observer), patch(
            "modsync.main.signal.signal"
        ), patch.object(main.shutdown_event, "wait", return_value=False):
            assert main.run() == 1

        mock_observer.stop.assert_not_called()

    def test_observer_start_fails(self, mock_args, config, logger, mock_observer):
        mock_observer.start.side_effect = OSError("inotify watch limit reached")
        main = ModSyncMain(mock_args, config, logger)

        with patch("modsync.main.create_observer", return_value=mock_observer), patch(
            "modsync.main.signal.signal"
        ):
            assert main.run() == 1

    def test_keyboard_interrupt(self, mock_args, config, logger, mock_observer):
        main = ModSyncMain(mock_args, config, logger)

        with patch("modsync.main.create_observer", return_value=mock_observer), patch(
            "modsync.main.signal.signal"
        ), patch.object(main.shutdown_event, "wait", side_effect=KeyboardInterrupt):
            assert main.run() == 130

    def test_initialization_error(self, mock_args, config, logger):
        main = ModSyncMain(mock_args, config, logger)

        with patch("modsync.main.create_observer", side_effect=RuntimeError("boom")):
            assert main.run() == 1

    def test_cleanup_flushes_pending(self, mock_args, config, logger, mock_observer, crate_dir):
        main = ModSyncMain(mock_args, config, logger)
        with patch("modsync.main.create_observer", return_value=mock_observer):
            main.initialize_components()

        src = crate_dir / "src"
        (src / "existing.rs").unlink()
        main.coalescer.delete(src / "existing.rs")

        main.cleanup()

        assert (src / "lib.rs").read_text() == "//! Demo crate\n\n"

    def test_run_modsync(self, mock_args, config, logger):
        with patch("modsync.main.ModSyncMain") as mock_main_cls:
            mock_main_cls.return_value.run.return_value = 0
            assert run_modsync(mock_args, config, logger) == 0
        mock_main_cls.assert_called_once_with(mock_args, config, logger)
