#!/usr/bin/env python3
"""Clock and timer abstractions used by the event coalescer.

The coalescer never calls ``time`` or ``threading`` directly; it receives a
Scheduler. ThreadingScheduler is the production implementation (one daemon
``threading.Timer`` per scheduled callback). Tests substitute a scheduler
that advances virtual time on demand.
"""

import threading
import time
from abc import ABC, abstractmethod
from typing import Callable


class TimerHandle(ABC):
    """A scheduled callback that can be cancelled before it fires."""

    @abstractmethod
    def cancel(self) -> None:
        """Prevent the callback from firing; no-op if it already fired."""


class Scheduler(ABC):
    """Source of time, delayed callbacks and blocking pauses."""

    @abstractmethod
    def now(self) -> float:
        """Current time in seconds (monotonic)."""

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Run ``callback`` once after ``delay`` seconds."""

    @abstractmethod
    def sleep(self, delay: float) -> None:
        """Block the calling flush for ``delay`` seconds."""


class _ThreadTimerHandle(TimerHandle):
    def __init__(self, timer: threading.Timer):
        self._timer = timer

    def cancel(self) -> None:
        self._timer.cancel()


class ThreadingScheduler(Scheduler):
    """Scheduler backed by ``time.monotonic`` and daemon ``threading.Timer`` objects."""

    def now(self) -> float:
        return time.monotonic()

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return _ThreadTimerHandle(timer)

    def sleep(self, delay: float) -> None:
        if delay > 0:
            time.sleep(delay)
