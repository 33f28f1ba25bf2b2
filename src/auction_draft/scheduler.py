"""Delayed continuations for pacing pauses and auto-expiring announcements.

Nothing scheduled here is cancellable; callbacks re-check the state they
were scheduled against when they fire.
"""

import asyncio
import heapq
import itertools
from typing import Any, Callable, List, Optional, Tuple


class Scheduler:
    """Runs a callback after a delay without blocking the caller."""

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any):
        raise NotImplementedError


class AsyncioScheduler(Scheduler):
    """Schedules callbacks on an asyncio event loop.

    Without an explicit loop, ``call_later`` binds to the running loop and
    raises RuntimeError when called outside one.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any):
        self.loop.call_later(delay, callback, *args)


class ManualScheduler(Scheduler):
    """Deterministic virtual clock.

    Callbacks run only when the clock is advanced, in due-time order
    (ties in scheduling order).
    """

    def __init__(self):
        self.now = 0.0
        self._queue: List[Tuple[float, int, Callable[..., Any], tuple]] = []
        self._counter = itertools.count()

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any):
        due = self.now + max(0.0, delay)
        heapq.heappush(self._queue, (due, next(self._counter), callback, args))

    @property
    def pending(self) -> int:
        return len(self._queue)

    def advance(self, seconds: float) -> int:
        """Move the clock forward, running every callback that falls due.

        Returns:
            Number of callbacks executed.
        """
        target = self.now + seconds
        ran = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, callback, args = heapq.heappop(self._queue)
            self.now = due
            callback(*args)
            ran += 1
        self.now = target
        return ran

    def run_pending(self) -> int:
        """Run callbacks that are already due (delay 0)."""
        return self.advance(0.0)
