"""Tests for the watchdog event handler."""
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from watchdog.events import (
    DirCreatedEvent,
    DirMovedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
)

from modsync.watcher import ModuleEventHandler, create_observer


@pytest.fixture
def coalescer():
    return MagicMock()


@pytest.fixture
def handler(temp_dir: Path, coalescer, logger) -> ModuleEventHandler:
    return ModuleEventHandler(temp_dir, coalescer, logger=logger)


class TestIsRelevant:
    """Test path filtering."""

    def test_rust_source(self, handler, temp_dir: Path):
        assert handler.is_relevant(str(temp_dir / "src" / "a.rs"))

    def test_other_extension(self, handler, temp_dir: Path):
        assert not handler.is_relevant(str(temp_dir / "src" / "a.rs.swp"))
        assert not handler.is_relevant(str(temp_dir / "Cargo.toml"))

    def test_ignored_directories(self, handler, temp_dir: Path):
        assert not handler.is_relevant(str(temp_dir / "target" / "debug" / "build.rs"))
        assert not handler.is_relevant(str(temp_dir / ".git" / "x.rs"))

    def test_ignored_name_as_file_stem_is_fine(self, handler, temp_dir: Path):
        assert handler.is_relevant(str(temp_dir / "src" / "target.rs"))

    def test_outside_root(self, handler):
        assert not handler.is_relevant("/somewhere/else/a.rs")

    def test_custom_ignore_dirs(self, temp_dir: Path, coalescer, logger):
        handler = ModuleEventHandler(temp_dir, coalescer, ignore_dirs=["vendor"], logger=logger)
        assert not handler.is_relevant(str(temp_dir / "vendor" / "a.rs"))
        assert handler.is_relevant(str(temp_dir / "target" / "a.rs"))


class TestEvents:
    """Test event forwarding."""

    def test_created(self, handler, coalescer, temp_dir: Path):
        path = str(temp_dir / "a.rs")
        handler.dispatch(FileCreatedEvent(path))
        coalescer.create.assert_called_once_with(path)

    def test_deleted(self, handler, coalescer, temp_dir: Path):
        path = str(temp_dir / "a.rs")
        handler.dispatch(FileDeletedEvent(path))
        coalescer.delete.assert_called_once_with(path)

    def test_moved(self, handler, coalescer, temp_dir: Path):
        old, new = str(temp_dir / "a.rs"), str(temp_dir / "b.rs")
        handler.dispatch(FileMovedEvent(old, new))
        coalescer.delete.assert_called_once_with(old)
        coalescer.create.assert_called_once_with(new)

    def test_moved_out_of_tree(self, handler, coalescer, temp_dir: Path):
        old = str(temp_dir / "a.rs")
        handler.dispatch(FileMovedEvent(old, str(temp_dir / "a.rs.bak")))
        coalescer.delete.assert_called_once_with(old)
        coalescer.create.assert_not_called()

    def test_directories_ignored(self, handler, coalescer, temp_dir: Path):
        handler.dispatch(DirCreatedEvent(str(temp_dir / "net.rs")))
        handler.dispatch(DirMovedEvent(str(temp_dir / "a"), str(temp_dir / "b")))
        coalescer.create.assert_not_called()
        coalescer.delete.assert_not_called()

    def test_modifications_ignored(self, handler, coalescer, temp_dir: Path):
        handler.dispatch(FileModifiedEvent(str(temp_dir / "a.rs")))
        coalescer.create.assert_not_called()
        coalescer.delete.assert_not_called()


class TestCreateObserver:
    """Test observer creation."""

    def test_schedules_root(self, handler, temp_dir: Path):
        with patch("modsync.watcher.Observer") as mock_observer_cls:
            observer = create_observer(handler, recursive=False)

        assert observer is mock_observer_cls.return_value
        observer.schedule.assert_called_once_with(handler, str(temp_dir), recursive=False)
        observer.start.assert_not_called()
