"""Tick scheduling seam.

The live server schedules ticks on the running asyncio event loop, whose
``call_later`` already matches :class:`Scheduler`. Batch runs and tests use
:class:`ManualScheduler` and pump the callbacks themselves.
"""
from __future__ import annotations

from typing import Callable, List, Protocol


class Handle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> Handle: ...


class ManualHandle:
    """Pending callback owned by a :class:`ManualScheduler`."""

    def __init__(self, callback: Callable[[], None]):
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Scheduler that only runs callbacks when told to."""

    def __init__(self) -> None:
        self._queue: List[ManualHandle] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualHandle:
        handle = ManualHandle(callback)
        self._queue.append(handle)
        return handle

    @property
    def pending(self) -> int:
        """Number of scheduled callbacks that have not been cancelled."""
        return sum(1 for handle in self._queue if not handle.cancelled)

    def run_pending(self) -> int:
        """Run everything scheduled so far; return how many callbacks ran."""
        batch, self._queue = self._queue, []
        ran = 0
        for handle in batch:
            if handle.cancelled:
                continue
            handle.callback()
            ran += 1
        return ran

    def run_until_idle(self, limit: int = 1_000_000) -> int:
        """Pump callbacks until none are left (or ``limit`` is reached)."""
        total = 0
        while total < limit:
            ran = self.run_pending()
            if ran == 0:
                break
            total += ran
        return total
