#!/usr/bin/env python3
"""Watchdog event handler feeding raw file events to the coalescer.

Only non-directory ``.rs`` files outside ignored directories (``target``,
``.git`` by default) are forwarded. A move is forwarded as a delete of the
source followed by a create of the destination; the coalescer pairs them
again, so nothing downstream depends on the platform reporting moves.
"""

from pathlib import Path
from typing import Iterable, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler, FileSystemMovedEvent
from watchdog.observers import Observer

from modsync.core.constants import RustFiles
from modsync.core.logging import Logger, get_logger
from modsync.sync.coalescer import EventCoalescer


class ModuleEventHandler(FileSystemEventHandler):
    """Forwards Rust source events under ``root`` to an EventCoalescer."""

    def __init__(
        self,
        root: Path,
        coalescer: EventCoalescer,
        ignore_dirs: Iterable[str] = ("target", ".git"),
        logger: Optional[Logger] = None,
    ):
        super().__init__()
        self.root = Path(root).absolute()
        self.coalescer = coalescer
        self.ignore_dirs = frozenset(ignore_dirs)
        self.logger = logger or get_logger()

    def is_relevant(self, src_path) -> bool:
        """True for ``.rs`` paths under the root and outside ignored directories."""
        p = Path(src_path)
        if p.suffix != RustFiles.SOURCE_SUFFIX:
            return False
        try:
            rel = p.absolute().relative_to(self.root)
        except ValueError:
            return False
        return not any(part in self.ignore_dirs for part in rel.parts[:-1])

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory and self.is_relevant(event.src_path):
            self.logger.debug("File created", path=event.src_path)
            self.coalescer.create(event.src_path)

    def on_deleted(self, event: FileSystemEvent) -> None:
        if not event.is_directory and self.is_relevant(event.src_path):
            self.logger.debug("File deleted", path=event.src_path)
            self.coalescer.delete(event.src_path)

    def on_moved(self, event: FileSystemMovedEvent) -> None:
        if event.is_directory:
            return
        if self.is_relevant(event.src_path):
            self.coalescer.delete(event.src_path)
        if self.is_relevant(event.dest_path):
            self.coalescer.create(event.dest_path)


def create_observer(handler: ModuleEventHandler, recursive: bool = True) -> Observer:
    """Create (but do not start) an observer watching the handler's root."""
    observer = Observer()
    observer.schedule(handler, str(handler.root), recursive=recursive)
    return observer
