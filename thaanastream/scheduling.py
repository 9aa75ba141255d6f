"""Scheduling port: run a callback after a delay, cancel it before it fires.

The composer and change buffer never sleep. They hand callbacks to a
Scheduler, which lets tests drive time with :class:`ManualScheduler`.
"""

import asyncio
import heapq
import itertools
import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional, Set, Tuple

logger = logging.getLogger("thaanastream.scheduling")

Callback = Callable[[], None]


class Scheduler(ABC):
    """Callback-after-duration facility."""

    @abstractmethod
    def schedule(self, delay_ms: float, callback: Callback) -> Any:
        """Run ``callback`` once after ``delay_ms``. Returns a cancel handle."""
        ...

    @abstractmethod
    def cancel(self, handle: Any) -> None:
        """Cancel a scheduled callback. Unknown or fired handles are ignored."""
        ...

    def close(self) -> None:
        """Release scheduler resources."""


class ThreadingScheduler(Scheduler):
    """Fires callbacks on ``threading.Timer`` threads."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._timers: List[threading.Timer] = []

    def schedule(self, delay_ms: float, callback: Callback) -> threading.Timer:
        timer = threading.Timer(max(delay_ms, 0.0) / 1000.0, self._run, args=(callback,))
        timer.daemon = True
        with self._lock:
            self._timers.append(timer)
        timer.start()
        return timer

    def _run(self, callback: Callback) -> None:
        with self._lock:
            current = threading.current_thread()
            self._timers = [t for t in self._timers if t is not current]
        try:
            callback()
        except Exception:
            logger.exception("Scheduled callback failed")

    def cancel(self, handle: Any) -> None:
        if handle is None:
            return
        handle.cancel()
        with self._lock:
            self._timers = [t for t in self._timers if t is not handle]

    def close(self) -> None:
        with self._lock:
            timers, self._timers = self._timers, []
        for timer in timers:
            timer.cancel()


class AsyncioScheduler(Scheduler):
    """Fires callbacks on an asyncio event loop via ``call_later``.

    Without ``loop`` it must be created inside a running event loop.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop or asyncio.get_running_loop()

    def schedule(self, delay_ms: float, callback: Callback) -> asyncio.TimerHandle:
        return self._loop.call_later(max(delay_ms, 0.0) / 1000.0, callback)

    def cancel(self, handle: Any) -> None:
        if handle is not None:
            handle.cancel()


class ManualScheduler(Scheduler):
    """Virtual clock. Time only moves when :meth:`advance` is called.

    Callbacks due at the same instant fire in scheduling order.
    """

    def __init__(self, start_ms: float = 0.0) -> None:
        self.now_ms = start_ms
        self._queue: List[Tuple[float, int, Callback]] = []
        self._live: Set[int] = set()
        self._seq = itertools.count()

    def schedule(self, delay_ms: float, callback: Callback) -> int:
        handle = next(self._seq)
        heapq.heappush(self._queue, (self.now_ms + max(delay_ms, 0.0), handle, callback))
        self._live.add(handle)
        return handle

    def cancel(self, handle: Any) -> None:
        # Fired, cancelled and unknown handles are not in the live set.
        self._live.discard(handle)

    def advance(self, ms: float) -> int:
        """Move the clock forward, firing due callbacks. Returns how many fired."""
        target = self.now_ms + ms
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            due, handle, callback = heapq.heappop(self._queue)
            if handle not in self._live:
                continue
            self._live.discard(handle)
            self.now_ms = due
            callback()
            fired += 1
        self.now_ms = target
        return fired

    @property
    def pending(self) -> int:
        return len(self._live)

    def close(self) -> None:
        self._queue.clear()
        self._live.clear()
