from __future__ import annotations

import asyncio
import heapq
import itertools
import time
from abc import ABC, abstractmethod
from typing import Any, Callable

DEFAULT_FRAME_MS = 1000 / 60


class Scheduler(ABC):
    """Source of time and deferred callbacks for the tick loop.

    ``now`` is a monotonic millisecond clock used for frame deltas;
    ``wall_time`` is epoch milliseconds used for timestamps that are saved.
    """

    frame_ms: float = DEFAULT_FRAME_MS

    @abstractmethod
    def now(self) -> float: ...

    @abstractmethod
    def wall_time(self) -> float: ...

    @abstractmethod
    def schedule_next(self, callback: Callable[[], None], delay_ms: float | None = None) -> Any:
        """Run *callback* after *delay_ms*, or on the next frame. Returns a handle."""

    @abstractmethod
    def cancel(self, handle: Any) -> None: ...


class ManualScheduler(Scheduler):
    """Deterministic scheduler driven by ``advance``, for tests and simulation."""

    def __init__(
        self,
        start_ms: float = 0.0,
        wall_start_ms: float = 0.0,
        frame_ms: float = DEFAULT_FRAME_MS,
    ) -> None:
        if frame_ms <= 0:
            raise ValueError("frame_ms must be positive")
        self.frame_ms = frame_ms
        self._time = start_ms
        self._wall_offset = wall_start_ms - start_ms
        self._queue: list[tuple[float, int, Callable[[], None]]] = []
        self._cancelled: set[int] = set()
        self._ids = itertools.count(1)

    def now(self) -> float:
        return self._time

    def wall_time(self) -> float:
        return self._time + self._wall_offset

    def schedule_next(self, callback: Callable[[], None], delay_ms: float | None = None) -> int:
        # Anything shorter than a frame waits for the next frame.
        delay = self.frame_ms if delay_ms is None else max(delay_ms, self.frame_ms)
        handle = next(self._ids)
        heapq.heappush(self._queue, (self._time + delay, handle, callback))
        return handle

    def cancel(self, handle: int) -> None:
        if any(h == handle for _, h, _ in self._queue):
            self._cancelled.add(handle)

    @property
    def pending(self) -> int:
        return sum(1 for _, h, _ in self._queue if h not in self._cancelled)

    def advance(self, ms: float) -> int:
        """Move time forward by *ms*, running every callback that falls due.

        Returns the number of callbacks run.
        """
        target = self._time + ms
        ran = 0
        while self._queue and self._queue[0][0] <= target:
            due, handle, callback = heapq.heappop(self._queue)
            # Callbacks overdue from a jump run at the current time.
            self._time = max(self._time, due)
            if handle in self._cancelled:
                self._cancelled.discard(handle)
                continue
            callback()
            ran += 1
        self._time = target
        return ran

    def jump(self, ms: float) -> None:
        """Move time forward without running anything, like a suspended tab."""
        self._time += ms


class AsyncioScheduler(Scheduler):
    """Runs the tick loop on an asyncio event loop."""

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop | None = None,
        frame_ms: float = DEFAULT_FRAME_MS,
    ) -> None:
        self._loop = loop or asyncio.get_running_loop()
        self.frame_ms = frame_ms

    def now(self) -> float:
        return self._loop.time() * 1000

    def wall_time(self) -> float:
        return time.time() * 1000

    def schedule_next(
        self, callback: Callable[[], None], delay_ms: float | None = None
    ) -> asyncio.TimerHandle:
        delay = self.frame_ms if delay_ms is None else delay_ms
        return self._loop.call_later(max(delay, 0) / 1000, callback)

    def cancel(self, handle: asyncio.TimerHandle) -> None:
        handle.cancel()


def wall_clock_ms() -> int:
    return int(time.time() * 1000)
