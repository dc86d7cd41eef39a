"""Shared pytest fixtures for ModSync tests."""
import tempfile
from pathlib import Path
from typing import Callable, Generator, List, Tuple

import pytest

from modsync.core.config import ConfigManager, set_global_config
from modsync.core.logging import Logger
from modsync.sync.formatter import FormatResult, Formatter, FormatStatus
from modsync.sync.scheduler import Scheduler, TimerHandle


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def crate_dir(temp_dir: Path) -> Path:
    """Create a minimal library crate."""
    crate = temp_dir / "crate"
    (crate / "src").mkdir(parents=True)
    (crate / "Cargo.toml").write_text('[package]\nname = "demo"\nversion = "0.1.0"\n')
    (crate / "src" / "lib.rs").write_text("//! Demo crate\n\npub mod existing;\n")
    (crate / "src" / "existing.rs").write_text("")
    return crate


@pytest.fixture
def config() -> Generator[ConfigManager, None, None]:
    """Configuration manager isolated from the host environment."""
    manager = ConfigManager(environ={})
    set_global_config(manager)
    yield manager
    set_global_config(None)


@pytest.fixture
def logger() -> Logger:
    """Create test logger."""
    return Logger("modsync.test", level="DEBUG")


class FakeHandle(TimerHandle):
    """Timer handle of FakeScheduler."""

    def __init__(self, due: float, callback: Callable[[], None]):
        self.due = due
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler(Scheduler):
    """Virtual clock; callbacks fire only when advance() passes their due time."""

    def __init__(self, start: float = 100.0):
        self.time = start
        self.handles: List[FakeHandle] = []
        self.sleeps: List[float] = []

    def now(self) -> float:
        return self.time

    def call_later(self, delay: float, callback: Callable[[], None]) -> FakeHandle:
        handle = FakeHandle(self.time + delay, callback)
        self.handles.append(handle)
        return handle

    def sleep(self, delay: float) -> None:
        self.sleeps.append(delay)

    def pending(self) -> List[FakeHandle]:
        return [h for h in self.handles if not (h.cancelled or h.fired)]

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing due callbacks in time order."""
        target = self.time + seconds
        while True:
            due = [h for h in self.pending() if h.due <= target]
            if not due:
                break
            handle = min(due, key=lambda h: h.due)
            self.time = max(self.time, handle.due)
            handle.fired = True
            handle.callback()
        self.time = target


@pytest.fixture
def scheduler() -> FakeScheduler:
    """Virtual-time scheduler."""
    return FakeScheduler()


class RecordingEngine:
    """Stands in for SyncEngine and records the intents it receives."""

    def __init__(self, failing: Tuple[str, ...] = ()):
        self.calls: List[Tuple] = []
        self.failing = failing

    def _record(self, *call) -> None:
        self.calls.append(call)
        if self.failing and str(call[-1]).endswith(self.failing):
            raise OSError(f"cannot process {call[-1]}")

    def handle_create(self, path):
        self._record("create", path)

    def handle_delete(self, path):
        self._record("delete", path)

    def handle_rename(self, old_path, new_path):
        self._record("rename", old_path, new_path)


@pytest.fixture
def recording_engine() -> RecordingEngine:
    return RecordingEngine()


class RecordingFormatter(Formatter):
    """Formatter that records its calls and returns a fixed status."""

    def __init__(self, status: FormatStatus = FormatStatus.SUCCESS):
        self.status = status
        self.roots: List[Path] = []

    def format(self, root_directory: Path) -> FormatResult:
        self.roots.append(root_directory)
        return FormatResult(self.status, "", root_directory)


@pytest.fixture
def recording_formatter() -> RecordingFormatter:
    return RecordingFormatter()
