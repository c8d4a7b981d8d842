"""Schedulers for round timeouts and dwell delays.

:class:`ThreadingScheduler` is used at runtime; :class:`ManualScheduler`
runs on a virtual clock so tests can advance time explicitly.
"""

from __future__ import annotations

import heapq
import itertools
import threading
import time
from collections.abc import Callable


class ThreadingScheduler:
    """Fires callbacks on daemon :class:`threading.Timer` threads."""

    def __init__(self) -> None:
        self._t0 = time.monotonic()

    def now_ms(self) -> int:
        """Milliseconds since the scheduler was created."""
        return int((time.monotonic() - self._t0) * 1000)

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> threading.Timer:
        """Run *callback* after *delay_ms*; the returned handle has ``cancel()``."""
        timer = threading.Timer(max(delay_ms, 0) / 1000.0, callback)
        timer.daemon = True
        timer.start()
        return timer


class _ManualHandle:
    def __init__(self) -> None:
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Virtual-clock scheduler; nothing fires until :meth:`advance` is called."""

    def __init__(self, start_ms: int = 0) -> None:
        self._now = start_ms
        self._queue: list[tuple[int, int, _ManualHandle, Callable[[], None]]] = []
        self._seq = itertools.count()

    def now_ms(self) -> int:
        return self._now

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> _ManualHandle:
        handle = _ManualHandle()
        due = self._now + max(delay_ms, 0)
        heapq.heappush(self._queue, (due, next(self._seq), handle, callback))
        return handle

    def advance(self, delta_ms: int) -> int:
        """Move the clock forward, firing due callbacks in order.

        Callbacks scheduled while advancing fire too if they fall due within
        the window.  Returns the number of callbacks fired.
        """
        target = self._now + delta_ms
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, handle, callback = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self._now = due
            callback()
            fired += 1
        self._now = target
        return fired

    def pending(self) -> int:
        """Number of scheduled, not-yet-cancelled callbacks."""
        return sum(1 for _, _, h, _ in self._queue if not h.cancelled)
