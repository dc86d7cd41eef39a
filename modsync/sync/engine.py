#!/usr/bin/env python3
"""Applies create/delete/rename intents to Rust index files.

For a changed ``dir/name.rs`` the index file is looked up in ``dir``:
1. ``lib.rs`` (crate root)
2. ``main.rs`` (program entry)
3. ``mod.rs`` (directory index), created on demand for new files

Declarations are generated from the Rule resolved for the path, edited by
the declaration store and written back only when the text changed. When the
Rule enables formatting, the formatter is started after each successful write
without waiting for it; its outcome is only logged.

Example:
    >>> engine = SyncEngine()
    >>> engine.handle_create("/work/app/src/net/http.rs").written
    [PosixPath('/work/app/src/net/mod.rs'), PosixPath('/work/app/src/lib.rs')]
"""

import threading
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Union

from modsync.core.constants import ErrorCode, FmtMode, RustFiles, SortMode
from modsync.core.logging import Logger, get_logger
from modsync.declarations import store
from modsync.declarations.store import TextDocument
from modsync.rules.engine import ConfigResolver, Rule
from modsync.sync.formatter import FormatResult, Formatter, FormatStatus, find_project_root


class SyncError(Exception):
    """An index file could not be read, written or deleted."""

    def __init__(
        self,
        message: str,
        path: Optional[Union[str, Path]] = None,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
    ):
        self.message = message
        self.path = path
        self.error_code = error_code
        super().__init__(message)

    @classmethod
    def from_os_error(cls, action: str, path: Path, error: OSError) -> "SyncError":
        if isinstance(error, FileNotFoundError):
            code = ErrorCode.NOT_FOUND
        elif isinstance(error, PermissionError):
            code = ErrorCode.PERMISSION_DENIED
        else:
            code = ErrorCode.INTERNAL_ERROR
        return cls(f"Cannot {action} {path}: {error}", path, code)


class IntentKind(Enum):
    """Kind of change applied to the module tree."""

    CREATE = "create"
    DELETE = "delete"
    RENAME = "rename"
    SORT = "sort"


class IndexKind(Enum):
    """Which index file of a directory receives the declarations."""

    CRATE_ROOT = "crate_root"
    PROGRAM_ENTRY = "program_entry"
    DIRECTORY_INDEX = "directory_index"


@dataclass(frozen=True)
class IndexTarget:
    """An index file and its role; ``path`` may not exist yet."""

    path: Path
    kind: IndexKind

    @property
    def is_directory_index(self) -> bool:
        return self.kind == IndexKind.DIRECTORY_INDEX


@dataclass
class SyncResult:
    """What handling one intent did to the file tree."""

    kind: IntentKind
    path: Path
    written: List[Path] = field(default_factory=list)
    deleted: List[Path] = field(default_factory=list)
    format_roots: List[Path] = field(default_factory=list)  # handed to the formatter
    skipped: bool = False

    @property
    def changed(self) -> bool:
        return bool(self.written or self.deleted)


def module_name(path: Union[str, Path]) -> Optional[str]:
    """Module name declared for a source file, or None if it never gets one."""
    p = Path(path)
    if p.suffix != RustFiles.SOURCE_SUFFIX:
        return None
    if p.stem in RustFiles.RESERVED_STEMS:
        return None
    if not (p.stem.isidentifier() and p.stem.isascii()):
        return None
    return p.stem


class SyncEngine:
    """Keeps index files in step with create/delete/rename intents.

    Every edit is a read-modify-write cycle under one lock, so two intents
    touching the same index file never interleave.
    """

    def __init__(
        self,
        resolver: Optional[ConfigResolver] = None,
        formatter: Optional[Formatter] = None,
        logger: Optional[Logger] = None,
        background_format: bool = True,
    ):
        """Initialize sync engine.

        Args:
            resolver: Rule resolver (default: one backed by the global config)
            formatter: Formatter run after writes when a Rule enables it
            logger: Logger instance
            background_format: Run the formatter on a daemon thread instead of inline
        """
        self.logger = logger or get_logger()
        self.resolver = resolver or ConfigResolver(logger=self.logger)
        self.formatter = formatter
        self.background_format = background_format
        self._lock = threading.RLock()
        self._format_lock = threading.Lock()
        self._format_threads: List[threading.Thread] = []

    # Target resolution

    def resolve_target(self, directory: Path, create: bool = False) -> Optional[IndexTarget]:
        """Find the index file of ``directory``.

        Args:
            directory: Directory holding the changed file
            create: Return the (missing) mod.rs instead of None when no index exists

        Returns:
            Target index file, or None
        """
        for file_name, kind in (
            (RustFiles.CRATE_ROOT, IndexKind.CRATE_ROOT),
            (RustFiles.PROGRAM_ENTRY, IndexKind.PROGRAM_ENTRY),
            (RustFiles.DIRECTORY_INDEX, IndexKind.DIRECTORY_INDEX),
        ):
            candidate = directory / file_name
            if candidate.is_file():
                return IndexTarget(candidate, kind)

        if create:
            return IndexTarget(directory / RustFiles.DIRECTORY_INDEX, IndexKind.DIRECTORY_INDEX)
        return None

    # Intents

    def handle_create(self, path: Union[str, Path]) -> SyncResult:
        """Declare a newly created source file in its directory's index file.

        When the declaration lands in a directory index (mod.rs), the
        directory itself is declared in its parent's index file if that
        file exists. Only one level is updated.
        """
        file_path = Path(path).absolute()
        result = SyncResult(IntentKind.CREATE, file_path)

        name = module_name(file_path)
        if name is None:
            self.logger.debug("Ignoring created file", path=str(file_path))
            result.skipped = True
            return result

        directory = file_path.parent
        target = self.resolve_target(directory, create=True)
        rule = self.resolver.resolve_for_path(file_path)
        self._update(target.path, self._inserter(name, rule), rule, result)

        if target.is_directory_index:
            self._register_in_parent(directory, result)

        return result

    def handle_delete(self, path: Union[str, Path]) -> SyncResult:
        """Remove a deleted source file's declarations from its directory's index file.

        A directory index left without any non-blank content is deleted.
        """
        file_path = Path(path).absolute()
        result = SyncResult(IntentKind.DELETE, file_path)

        name = module_name(file_path)
        target = self.resolve_target(file_path.parent) if name else None
        if name is None or target is None:
            self.logger.debug("Nothing to remove", path=str(file_path))
            result.skipped = True
            return result

        rule = self.resolver.resolve_for_path(file_path)

        with self._lock:
            content = self._read(target.path)
            updated = store.remove(content, name)
            if updated == content:
                return result

            if target.is_directory_index and TextDocument.parse(updated).is_blank():
                self._unlink(target.path)
                result.deleted.append(target.path)
                self.logger.info("Deleted empty index file", path=str(target.path))
                return result

            self._write(target.path, updated)
            result.written.append(target.path)
            self.logger.info("Removed declaration", module=name, path=str(target.path))

        self._format_after_write(target.path, rule, result)
        return result

    def handle_rename(self, old_path: Union[str, Path], new_path: Union[str, Path]) -> SyncResult:
        """Carry a rename over to the index file.

        If the old name is still declared (no other tool rewrote it) it is
        renamed in place; if neither name is declared the new file is
        declared like a creation. The file is re-sorted when the Rule asks
        for alphabetical order. Renames across directories are handled as a
        delete followed by a create, and so is a rename where one side never
        gets a declaration (``mod.rs``, ``main.rs``, ``my-file.rs``).
        """
        old_file = Path(old_path).absolute()
        new_file = Path(new_path).absolute()
        result = SyncResult(IntentKind.RENAME, new_file)

        old_name = module_name(old_file)
        new_name = module_name(new_file)
        if old_name is None and new_name is None:
            self.logger.debug("Ignoring rename", old=str(old_file), new=str(new_file))
            result.skipped = True
            return result

        if old_file.parent != new_file.parent or old_name is None or new_name is None:
            parts = []
            if old_name is not None:
                parts.append(self.handle_delete(old_file))
            if new_name is not None:
                parts.append(self.handle_create(new_file))
            for part in parts:
                result.written.extend(part.written)
                result.deleted.extend(part.deleted)
                result.format_roots.extend(part.format_roots)
            return result

        target = self.resolve_target(new_file.parent)
        if target is None:
            self.logger.debug("No index file for rename", old=str(old_file), new=str(new_file))
            result.skipped = True
            return result

        rule = self.resolver.resolve_for_path(new_file)

        def transform(content: str) -> str:
            updated = store.rename(content, old_name, new_name)
            if not store.has_declaration(updated, new_name):
                updated = store.insert(
                    updated, store.build_declaration_lines(new_name, rule), new_name
                )
            if rule.sort == SortMode.ALPHA:
                updated = store.sort_content(updated)
            return updated

        self._update(target.path, transform, rule, result)
        return result

    def sort_index(self, index_path: Union[str, Path]) -> SyncResult:
        """Sort the declaration blocks of an existing index file alphabetically.

        Raises:
            SyncError: If the file cannot be read or written
        """
        file_path = Path(index_path).absolute()
        result = SyncResult(IntentKind.SORT, file_path)
        if not file_path.is_file():
            raise SyncError(f"Index file not found: {file_path}", file_path, ErrorCode.NOT_FOUND)

        rule = self.resolver.resolve_for_path(file_path)
        self._update(file_path, store.sort_content, rule, result)
        return result

    # Helpers

    def _inserter(self, name: str, rule: Rule) -> Callable[[str], str]:
        lines = store.build_declaration_lines(name, rule)

        def transform(content: str) -> str:
            updated = store.insert(content, lines, name)
            if updated != content and rule.sort == SortMode.ALPHA:
                updated = store.sort_content(updated)
            return updated

        return transform

    def _register_in_parent(self, directory: Path, result: SyncResult) -> None:
        parent = directory.parent
        name = directory.name
        if parent == directory or not (name.isidentifier() and name.isascii()):
            return

        target = self.resolve_target(parent)
        if target is None:
            return

        rule = self.resolver.resolve_for_path(target.path)
        self._update(target.path, self._inserter(name, rule), rule, result)

    def _update(
        self,
        index_path: Path,
        transform: Callable[[str], str],
        rule: Rule,
        result: SyncResult,
    ) -> bool:
        """Read, transform and write back ``index_path`` if the text changed."""
        with self._lock:
            exists = index_path.exists()
            content = self._read(index_path) if exists else ""
            updated = transform(content)
            if exists and updated == content:
                return False

            self._write(index_path, updated)
            result.written.append(index_path)
            self.logger.info(
                "Updated index file" if exists else "Created index file", path=str(index_path)
            )

        self._format_after_write(index_path, rule, result)
        return True

    def _format_after_write(self, index_path: Path, rule: Rule, result: SyncResult) -> None:
        if rule.fmt != FmtMode.ENABLED or self.formatter is None:
            return

        root = find_project_root(index_path)
        if root is None:
            self.logger.debug("Cargo.toml not found, skipping formatter", path=str(index_path))
            return

        result.format_roots.append(root)
        if not self.background_format:
            self.run_formatter(root)
            return

        thread = threading.Thread(
            target=self.run_formatter, args=(root,), name="modsync-format", daemon=True
        )
        with self._format_lock:
            self._format_threads = [t for t in self._format_threads if t.is_alive()]
            self._format_threads.append(thread)
        thread.start()

    def run_formatter(self, root: Path) -> FormatResult:
        """Run the formatter in ``root``; a non-success is logged as a warning."""
        try:
            outcome = self.formatter.format(root)
        except Exception as e:
            outcome = FormatResult(FormatStatus.FAILURE, str(e), root)

        if outcome.success:
            self.logger.debug("Formatter finished", root=str(root))
        else:
            self.logger.warning(
                "Formatter did not succeed",
                root=str(root),
                status=outcome.status.value,
                message=outcome.message,
            )
        return outcome

    def wait_for_formatting(self, timeout: Optional[float] = None) -> bool:
        """Wait for background formatter runs.

        Args:
            timeout: Seconds to wait for each run (None waits indefinitely)

        Returns:
            True when no run is still in progress
        """
        with self._format_lock:
            threads = list(self._format_threads)
        for thread in threads:
            thread.join(timeout)
        with self._format_lock:
            self._format_threads = [t for t in self._format_threads if t.is_alive()]
            return not self._format_threads

    def _read(self, path: Path) -> str:
        try:
            with open(path, "r", encoding="utf-8", newline="") as f:
                return f.read()
        except OSError as e:
            raise SyncError.from_os_error("read", path, e) from e

    def _write(self, path: Path, content: str) -> None:
        try:
            with open(path, "w", encoding="utf-8", newline="") as f:
                f.write(content)
        except OSError as e:
            raise SyncError.from_os_error("write", path, e) from e

    def _unlink(self, path: Path) -> None:
        try:
            path.unlink()
        except OSError as e:
            raise SyncError.from_os_error("delete", path, e) from e
