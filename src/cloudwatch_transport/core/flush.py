"""
Flush coordination and the self-reporting error sink.

Flushes are serialized by a ``SerialThrottle``: never two submissions in
flight, and at least ``flush_min_interval_ms`` between their starts. Each
flush takes the whole buffer (ordered by timestamp), submits it and leaves the
buffer empty whatever the outcome. A failed batch is not retried; the failure
is turned into a synthetic record that ships with the next batch.

The error sink may request a flush while a flush is running (a failure that
fills the buffer). Such a request is queued as a follow-up task rather than
awaited inline, which would wait on the lock its own flush holds.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Awaitable, Callable

from ..metrics.metrics import MetricsCollector
from . import diagnostics
from .buffer import BatchBuffer
from .concurrency import SerialThrottle
from .record import LogRecord, now_ms
from .serialization import dumps_compact
from .stream_client import RemoteStreamClient

FlushListener = Callable[[], Any]


class ErrorSink:
    """Re-injects internal failures into the buffer as log records."""

    def __init__(
        self,
        buffer: BatchBuffer,
        flush: Callable[[], Awaitable[object]],
        *,
        component: str = "cloudwatch-transport",
    ) -> None:
        self._buffer = buffer
        self._flush = flush
        self._component = component

    def build_record(self, description: str, error: BaseException | str) -> LogRecord:
        detail = str(error) or type(error).__name__
        return LogRecord(
            timestamp=now_ms(),
            message=dumps_compact({"message": description, "error": detail}),
        )

    async def report(self, description: str, error: BaseException | str) -> None:
        diagnostics.warn(self._component, description, error=str(error))
        if self._buffer.append(self.build_record(description, error)):
            await self._flush()


class FlushCoordinator:
    """Serializes flushes of one buffer to one log stream."""

    def __init__(
        self,
        *,
        buffer: BatchBuffer,
        client: RemoteStreamClient,
        log_group_name: str,
        log_stream_name: str,
        min_interval_ms: int = 1000,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self._buffer = buffer
        self._client = client
        self._group = log_group_name
        self._stream = log_stream_name
        self._throttle = SerialThrottle(interval_seconds=min_interval_ms / 1000.0)
        self._metrics = metrics
        self._listeners: list[FlushListener] = []
        self._followups: set[asyncio.Task[bool]] = set()
        self._active_task: asyncio.Task[Any] | None = None
        self._closed = False
        self.last_error: str | None = None
        self.error_sink = ErrorSink(buffer, self.flush)

    def add_listener(self, listener: FlushListener) -> None:
        """Register a callback run after every accepted write."""
        self._listeners.append(listener)

    @property
    def pending(self) -> int:
        return len(self._followups) + self._throttle.waiting

    @property
    def closed(self) -> bool:
        return self._closed

    async def flush(self) -> bool:
        """Flush the buffer; True when the batch was accepted."""
        if self._closed:
            return False
        current = asyncio.current_task()
        if current is not None and current is self._active_task:
            self._schedule_followup()
            return False
        return await self._throttle.run(self._flush_if_open)

    async def final_flush(self) -> bool:
        """Run the last flush; queued and later requests become no-ops.

        Records still deferred on the ceilings are shipped by further
        submissions of this same flush, until one of them fails.
        """
        self._closed = True
        try:
            result = await self._throttle.run(self._flush_once)
            while self.last_error is None:
                self._buffer.admit_deferred()
                if not len(self._buffer):
                    break
                result = await self._throttle.run(self._flush_once)
            return result
        finally:
            if self._followups:
                await asyncio.gather(*list(self._followups), return_exceptions=True)

    async def _flush_if_open(self) -> bool:
        if self._closed:
            return False
        return await self._flush_once()

    def _schedule_followup(self) -> None:
        task = asyncio.create_task(self.flush())
        self._followups.add(task)
        task.add_done_callback(self._followups.discard)

    async def _flush_once(self) -> bool:
        self._active_task = asyncio.current_task()
        start = time.perf_counter()
        batch = self._buffer.take()
        try:
            try:
                accepted = await self._client.put_batch(
                    self._group, self._stream, batch
                )
            except Exception as exc:
                self.last_error = str(exc) or type(exc).__name__
                self._record(len(batch), "failure", start)
                await self.error_sink.report(
                    "cloudwatch-transport flushing error", exc
                )
                return False
        finally:
            self._active_task = None
        self.last_error = None
        self._record(len(batch), "success" if accepted else "conflict", start)
        if accepted:
            self._notify()
        return accepted

    def _record(self, shipped: int, outcome: str, start: float) -> None:
        if self._metrics is None:
            return
        self._metrics.record_flush(
            shipped=shipped,
            outcome=outcome,
            duration_seconds=time.perf_counter() - start,
        )

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener()
            except Exception as exc:
                diagnostics.warn(
                    "flush-coordinator", "flushed listener failed", error=str(exc)
                )
