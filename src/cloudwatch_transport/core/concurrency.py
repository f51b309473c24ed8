"""
Concurrency control for the flush path.

``SerialThrottle`` runs coroutine factories one at a time, in request order,
with a minimum spacing between the starts of consecutive runs. Requests that
arrive while a run is in flight (or while the spacing has not yet elapsed)
wait their turn on a FIFO ``asyncio.Lock`` instead of being dropped, so a
burst of flush triggers collapses into sequential flushes.
"""

from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable, TypeVar

T = TypeVar("T")


class SerialThrottle:
    """At most one run in flight and one start per ``interval_seconds``.

    Usage:
        throttle = SerialThrottle(interval_seconds=1.0)
        result = await throttle.run(lambda: do_flush())
    """

    def __init__(
        self,
        *,
        interval_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if interval_seconds < 0:
            raise ValueError("interval_seconds must be >= 0")
        self._interval = interval_seconds
        self._clock = clock
        self._lock = asyncio.Lock()
        self._last_start: float | None = None
        self._waiting = 0

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    @property
    def waiting(self) -> int:
        """Number of runs queued behind the one in flight."""
        return self._waiting

    async def run(self, factory: Callable[[], Awaitable[T]]) -> T:
        self._waiting += 1
        try:
            await self._lock.acquire()
        finally:
            self._waiting -= 1
        try:
            await self._wait_for_slot()
            self._last_start = self._clock()
            return await factory()
        finally:
            self._lock.release()

    async def _wait_for_slot(self) -> None:
        if self._last_start is None:
            return
        delay = self._last_start + self._interval - self._clock()
        if delay > 0:
            await asyncio.sleep(delay)
