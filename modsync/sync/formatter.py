#!/usr/bin/env python3
"""Formatter capability invoked after index files are written.

The sync engine only needs ``format(root) -> FormatResult``; whether a
formatter ran, failed or was unavailable never changes what was written.

Example:
    >>> formatter = CargoFormatter()
    >>> result = formatter.format(Path("/work/my-crate"))
    >>> result.status
    <FormatStatus.SUCCESS: 'success'>
"""

import shutil
import subprocess
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional, Sequence, Union

from modsync.core.constants import RustFiles, Timing


class FormatStatus(Enum):
    """Outcome of a formatter run."""

    SUCCESS = "success"
    FAILURE = "failure"  # Formatter ran and reported an error
    UNAVAILABLE = "unavailable"  # No project root or no executable


@dataclass
class FormatResult:
    """Result of a formatter run."""

    status: FormatStatus
    message: str = ""
    root: Optional[Path] = None
    duration_ms: float = 0.0

    @property
    def success(self) -> bool:
        return self.status == FormatStatus.SUCCESS


class Formatter(ABC):
    """Capability interface for source formatters."""

    @abstractmethod
    def format(self, root_directory: Path) -> FormatResult:
        """Format the project rooted at ``root_directory``."""


def find_project_root(start: Union[str, Path]) -> Optional[Path]:
    """Walk up from ``start`` to the nearest directory holding a Cargo.toml.

    Args:
        start: File or directory to start from

    Returns:
        Project root, or None when there is no manifest up to the filesystem root
    """
    current = Path(start).absolute()
    if not current.is_dir():
        current = current.parent

    for directory in (current, *current.parents):
        if (directory / RustFiles.MANIFEST).is_file():
            return directory
    return None


class CargoFormatter(Formatter):
    """Runs ``cargo fmt`` in the project root."""

    def __init__(
        self,
        command: Optional[Sequence[str]] = None,
        timeout: float = Timing.FORMATTER_TIMEOUT,
    ):
        """Initialize formatter.

        Args:
            command: Command line to run (default ``cargo fmt``)
            timeout: Seconds before the run is abandoned
        """
        self.command: List[str] = list(command or ["cargo", "fmt"])
        self.timeout = timeout

    def format(self, root_directory: Path) -> FormatResult:
        if shutil.which(self.command[0]) is None:
            return FormatResult(
                FormatStatus.UNAVAILABLE, f"{self.command[0]} not found on PATH", root_directory
            )

        start_time = time.perf_counter()
        try:
            completed = subprocess.run(
                self.command,
                cwd=str(root_directory),
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            return FormatResult(
                FormatStatus.FAILURE,
                f"timed out after {self.timeout}s",
                root_directory,
                (time.perf_counter() - start_time) * 1000,
            )
        except OSError as e:
            return FormatResult(FormatStatus.UNAVAILABLE, str(e), root_directory)

        duration_ms = (time.perf_counter() - start_time) * 1000
        if completed.returncode != 0:
            return FormatResult(
                FormatStatus.FAILURE, completed.stderr.strip(), root_directory, duration_ms
            )
        return FormatResult(FormatStatus.SUCCESS, "", root_directory, duration_ms)
