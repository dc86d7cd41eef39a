#!/usr/bin/env python3
"""Coalesces raw create/delete notifications into sync intents.

A checkout or rebase can report hundreds of creates and deletes within a few
milliseconds, duplicated and without any rename event. EventCoalescer:
- cancels contradictory pairs (create then delete of the same path)
- holds each delete for ``rename_detection_window`` as a rename candidate
- pairs a create with the best scoring candidate in the same directory
- flushes once ``debounce_delay`` has passed without new events

A flush handles renames first (after ``rename_settle_delay``), then
deletions, then creations. A failing path is logged and never stops the
rest of the batch.

Example:
    >>> coalescer = EventCoalescer(SyncEngine())
    >>> coalescer.delete("/work/app/src/old_name.rs")
    >>> coalescer.create("/work/app/src/new_name.rs")
    >>> # ~0.5s later: engine.handle_rename(old_name.rs, new_name.rs)
"""

import os
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Set, Tuple, Union

from modsync.core.config import ConfigManager
from modsync.core.constants import ConfigKey, Timing
from modsync.core.logging import Logger, get_logger
from modsync.sync.engine import IntentKind, SyncEngine, module_name
from modsync.sync.rename import DeleteRecord, pick_rename_source, stem_of
from modsync.sync.scheduler import Scheduler, ThreadingScheduler, TimerHandle

PathLike = Union[str, "os.PathLike[str]"]


@dataclass
class _HeldDelete:
    record: DeleteRecord
    timer: TimerHandle


@dataclass
class FlushReport:
    """Intents handled by one flush, in processing order per kind."""

    renamed: List[Tuple[str, str]] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)
    created: List[str] = field(default_factory=list)
    failures: List[Tuple[str, Exception]] = field(default_factory=list)

    @property
    def empty(self) -> bool:
        return not (self.renamed or self.deleted or self.created)


class EventCoalescer:
    """Debounced, rename-aware front end of the SyncEngine.

    Safe to call from a watcher thread while timers fire on others: state
    changes happen under one lock and flushes never overlap.
    """

    def __init__(
        self,
        engine: SyncEngine,
        scheduler: Optional[Scheduler] = None,
        debounce_delay: float = Timing.DEBOUNCE_DELAY,
        rename_detection_window: float = Timing.RENAME_DETECTION_WINDOW,
        rename_settle_delay: float = Timing.RENAME_SETTLE_DELAY,
        min_rename_score: float = Timing.MIN_RENAME_SCORE,
        logger: Optional[Logger] = None,
    ):
        """Initialize coalescer.

        Args:
            engine: Receives handle_create/handle_delete/handle_rename calls
            scheduler: Clock and timers (default: threading based)
            debounce_delay: Quiet period before a flush, in seconds
            rename_detection_window: How long a delete may pair with a create
            rename_settle_delay: Pause before renames are processed
            min_rename_score: A rename candidate must score above this
            logger: Logger instance
        """
        self.engine = engine
        self.scheduler = scheduler or ThreadingScheduler()
        self.debounce_delay = debounce_delay
        self.rename_detection_window = rename_detection_window
        self.rename_settle_delay = rename_settle_delay
        self.min_rename_score = min_rename_score
        self.logger = logger or get_logger()

        self._lock = threading.RLock()
        self._processing_lock = threading.Lock()
        self._pending_created: Set[str] = set()
        self._pending_deleted: Set[str] = set()
        self._pending_renames: Dict[str, str] = {}
        self._recent_deletes: Dict[str, _HeldDelete] = {}
        self._flush_timer: Optional[TimerHandle] = None
        self._batches = 0

    @classmethod
    def from_config(
        cls,
        engine: SyncEngine,
        config: ConfigManager,
        scheduler: Optional[Scheduler] = None,
        logger: Optional[Logger] = None,
    ) -> "EventCoalescer":
        """Create a coalescer with the timings of a ConfigManager."""
        return cls(
            engine,
            scheduler=scheduler,
            debounce_delay=float(config.get(ConfigKey.DEBOUNCE_DELAY, Timing.DEBOUNCE_DELAY)),
            rename_detection_window=float(
                config.get(ConfigKey.RENAME_DETECTION_WINDOW, Timing.RENAME_DETECTION_WINDOW)
            ),
            rename_settle_delay=float(
                config.get(ConfigKey.RENAME_SETTLE_DELAY, Timing.RENAME_SETTLE_DELAY)
            ),
            min_rename_score=float(config.get(ConfigKey.MIN_RENAME_SCORE, Timing.MIN_RENAME_SCORE)),
            logger=logger,
        )

    # Inspection

    @property
    def pending_created(self) -> Set[str]:
        with self._lock:
            return set(self._pending_created)

    @property
    def pending_deleted(self) -> Set[str]:
        with self._lock:
            return set(self._pending_deleted)

    @property
    def pending_renames(self) -> Dict[str, str]:
        with self._lock:
            return dict(self._pending_renames)

    @property
    def recent_deletes(self) -> Dict[str, DeleteRecord]:
        with self._lock:
            return {path: held.record for path, held in self._recent_deletes.items()}

    @property
    def flush_scheduled(self) -> bool:
        with self._lock:
            return self._flush_timer is not None

    # Raw events

    def create(self, path: PathLike) -> None:
        """Record a created file.

        A create right after a held delete of the same path pairs with it as
        a rename onto itself, so the index file is re-sorted when its Rule
        asks for it. Files that never get a declaration (``mod.rs``,
        ``main.rs``, non-identifier names) take no part in rename detection.
        """
        path = os.path.abspath(os.fspath(path))

        with self._lock:
            if path in self._pending_deleted:
                self._pending_deleted.discard(path)
                held = self._recent_deletes.pop(path, None)
                if held is not None:
                    held.timer.cancel()
                self.logger.debug("Creation cancels pending deletion", path=path)
                return

            source = None
            if module_name(path) is not None:
                source = pick_rename_source(
                    path,
                    ((old, held.record) for old, held in self._recent_deletes.items()),
                    self.scheduler.now(),
                    self.rename_detection_window,
                    self.min_rename_score,
                )
            if source is not None:
                self._recent_deletes.pop(source).timer.cancel()
                self._pending_renames[source] = path
                self.logger.debug("Detected rename", old=source, new=path)
            else:
                self._pending_created.add(path)

            self._schedule_flush()

    def delete(self, path: PathLike) -> None:
        """Record a deleted file."""
        path = os.path.abspath(os.fspath(path))

        with self._lock:
            if path in self._pending_created:
                self._pending_created.discard(path)
                self.logger.debug("Deletion cancels pending creation", path=path)
                return

            if path in self._pending_deleted:
                self.logger.debug("Duplicate deletion", path=path)
                return

            renamed_from = next(
                (old for old, new in self._pending_renames.items() if new == path), None
            )
            if renamed_from is not None:
                # Renamed and then deleted: only the old path's removal remains
                del self._pending_renames[renamed_from]
                self._pending_deleted.add(renamed_from)
                self._schedule_flush()
                return

            if module_name(path) is None:
                self._pending_deleted.add(path)
                self._schedule_flush()
                return

            previous = self._recent_deletes.pop(path, None)
            if previous is not None:
                previous.timer.cancel()

            record = DeleteRecord(self.scheduler.now(), stem_of(path))
            timer = self.scheduler.call_later(
                self.rename_detection_window, lambda: self._promote(path, record)
            )
            self._recent_deletes[path] = _HeldDelete(record, timer)

    def _promote(self, path: str, record: DeleteRecord) -> None:
        """Turn an unmatched rename candidate into a real deletion."""
        with self._lock:
            held = self._recent_deletes.get(path)
            if held is None or held.record is not record:
                return
            del self._recent_deletes[path]
            self._pending_deleted.add(path)
            self._schedule_flush()

    def _schedule_flush(self) -> None:
        with self._lock:
            if self._flush_timer is not None:
                self._flush_timer.cancel()
            self._flush_timer = self.scheduler.call_later(self.debounce_delay, self.flush)

    # Processing

    def flush(self) -> FlushReport:
        """Process everything pending now.

        Returns:
            What was handled, with per-path failures
        """
        with self._lock:
            if self._flush_timer is not None:
                self._flush_timer.cancel()
                self._flush_timer = None
            renames = dict(self._pending_renames)
            deleted = sorted(self._pending_deleted)
            created = sorted(self._pending_created)
            self._pending_renames.clear()
            self._pending_deleted.clear()
            self._pending_created.clear()

        report = FlushReport()
        if not (renames or deleted or created):
            return report

        with self._processing_lock:
            self._batches += 1
            with self.logger.add_context(batch=self._batches):
                self.logger.info(
                    "Processing batch",
                    renames=len(renames),
                    deletions=len(deleted),
                    creations=len(created),
                )

                if renames:
                    self.scheduler.sleep(self.rename_settle_delay)
                for old, new in renames.items():
                    if self._run(IntentKind.RENAME, new, report, self.engine.handle_rename, old, new):
                        report.renamed.append((old, new))

                for path in deleted:
                    if self._run(IntentKind.DELETE, path, report, self.engine.handle_delete, path):
                        report.deleted.append(path)

                for path in created:
                    if self._run(IntentKind.CREATE, path, report, self.engine.handle_create, path):
                        report.created.append(path)

        return report

    def _run(
        self,
        kind: IntentKind,
        path: str,
        report: FlushReport,
        handler: Callable[..., object],
        *args: str,
    ) -> bool:
        try:
            handler(*args)
        except Exception as e:
            self.logger.exception("Failed to process change", e, kind=kind.value, path=path)
            report.failures.append((path, e))
            return False
        return True

    def close(self, flush_pending: bool = True) -> Optional[FlushReport]:
        """Cancel all timers; optionally treat held deletes as real and flush.

        Args:
            flush_pending: Process what is pending before returning

        Returns:
            Report of the final flush, or None when nothing was flushed
        """
        with self._lock:
            if self._flush_timer is not None:
                self._flush_timer.cancel()
                self._flush_timer = None
            for path, held in self._recent_deletes.items():
                held.timer.cancel()
                if flush_pending:
                    self._pending_deleted.add(path)
            self._recent_deletes.clear()

            if not flush_pending:
                self._pending_created.clear()
                self._pending_deleted.clear()
                self._pending_renames.clear()
                return None

        return self.flush()
