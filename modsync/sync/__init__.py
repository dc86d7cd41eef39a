"""ModSync Sync Layer.

Turns file system changes into index file edits:
- EventCoalescer: debounces raw events and infers renames
- SyncEngine: applies create/delete/rename intents to index files
- Formatter: optional post-write formatting (cargo fmt)
- Scheduler: clock and timers, replaceable in tests
"""

from .coalescer import EventCoalescer, FlushReport
from .engine import IndexKind, IndexTarget, IntentKind, SyncEngine, SyncError, SyncResult
from .formatter import CargoFormatter, Formatter, FormatResult, FormatStatus, find_project_root
from .rename import DeleteRecord, pick_rename_source, score_candidate
from .scheduler import Scheduler, ThreadingScheduler, TimerHandle

__all__ = [
    "EventCoalescer",
    "FlushReport",
    "IntentKind",
    "IndexKind",
    "IndexTarget",
    "SyncEngine",
    "SyncError",
    "SyncResult",
    "Formatter",
    "CargoFormatter",
    "FormatResult",
    "FormatStatus",
    "find_project_root",
    "DeleteRecord",
    "score_candidate",
    "pick_rename_source",
    "Scheduler",
    "ThreadingScheduler",
    "TimerHandle",
]
