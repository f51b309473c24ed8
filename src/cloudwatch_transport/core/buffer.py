"""
Bounded staging buffer for records awaiting a flush.

The buffer enforces the three PutLogEvents limits:

- a single message must be shorter than ``MAX_EVENT_SIZE``; longer ones are
  dropped at admission
- at most ``MAX_BATCH_COUNT`` records per batch
- the estimated batch size (message length plus ``EVENT_OVERHEAD_BYTES`` per
  record) stays below ``MAX_BATCH_BYTES``

A record that would overflow the byte ceiling is not dropped. It is parked in
a deferred list, its admission is retried shortly after on the event loop, and
``append`` asks the caller to flush, which makes room before the retry runs. A
buffer already holding ``MAX_BATCH_COUNT`` records defers admissions the same
way. ``admit_deferred`` moves parked records in directly, which the final
flush uses so nothing parked is lost at shutdown.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable

from ..metrics.metrics import MetricsCollector
from .record import LogRecord, now_ms
from .settings import (
    DEFAULT_INTERVAL_MS,
    EVENT_OVERHEAD_BYTES,
    MAX_BATCH_BYTES,
    MAX_BATCH_COUNT,
    MAX_EVENT_SIZE,
)

Scheduler = Callable[[Callable[[], Any]], Any]

# Retry spacing for deferred admissions while a throttled flush is pending
RETRY_DELAY_SECONDS = 0.001


def _call_later(callback: Callable[[], Any]) -> Any:
    return asyncio.get_running_loop().call_later(RETRY_DELAY_SECONDS, callback)


def estimated_size(record: LogRecord) -> int:
    return len(record.message) + EVENT_OVERHEAD_BYTES


class BatchBuffer:
    """Append-only record buffer that decides when a flush is due."""

    def __init__(
        self,
        *,
        interval_ms: int = DEFAULT_INTERVAL_MS,
        max_event_size: int = MAX_EVENT_SIZE,
        max_count: int = MAX_BATCH_COUNT,
        max_bytes: int = MAX_BATCH_BYTES,
        clock: Callable[[], int] = now_ms,
        schedule: Scheduler | None = None,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self._interval_ms = interval_ms
        self._max_event_size = max_event_size
        self._max_count = max_count
        self._max_bytes = max_bytes
        self._clock = clock
        self._schedule = schedule or _call_later
        self._metrics = metrics
        self._records: list[LogRecord] = []
        self._deferred: list[LogRecord] = []
        self._size = 0
        self._last_periodic_check = clock()
        self._closed = False

    def __len__(self) -> int:
        return len(self._records)

    @property
    def size_estimate(self) -> int:
        return self._size

    @property
    def records(self) -> list[LogRecord]:
        """Snapshot of the buffered records in their current order."""
        return list(self._records)

    @property
    def deferred(self) -> list[LogRecord]:
        """Records waiting for room under the ceilings."""
        return list(self._deferred)

    @property
    def closed(self) -> bool:
        return self._closed

    def append(self, record: LogRecord) -> bool:
        """Admit a record; return True when the caller should flush."""
        if self._closed:
            return False
        if len(record.message) >= self._max_event_size:
            if self._metrics is not None:
                self._metrics.record_dropped()
            return False
        if self._would_overflow(record):
            self._defer(record)
            return True
        self._records.append(record)
        self._size += estimated_size(record)
        count_reached = len(self._records) >= self._max_count
        periodic_due = self._periodic_flush_due()
        return count_reached or periodic_due

    def order_for_transmission(self) -> None:
        # list.sort is stable: equal timestamps keep insertion order
        self._records.sort(key=lambda r: r.timestamp)

    def clear(self) -> None:
        self._records = []
        self._size = 0

    def take(self) -> list[LogRecord]:
        """Order, detach and clear the current batch."""
        self.order_for_transmission()
        batch = self._records
        self.clear()
        return batch

    def admit_deferred(self) -> int:
        """Move deferred records into the batch, oldest first, while they fit."""
        admitted = 0
        while self._deferred and not self._would_overflow(self._deferred[0]):
            record = self._deferred.pop(0)
            self._records.append(record)
            self._size += estimated_size(record)
            admitted += 1
        return admitted

    def close(self) -> int:
        """Stop admitting records; return how many buffered or deferred were discarded."""
        discarded = len(self._records) + len(self._deferred)
        self.clear()
        self._deferred = []
        self._closed = True
        return discarded

    def _defer(self, record: LogRecord) -> None:
        self._deferred.append(record)
        self._schedule(lambda: self._retry(record))

    def _retry(self, record: LogRecord) -> None:
        # gone when admit_deferred or close got to it first
        if not any(r is record for r in self._deferred):
            return
        if self._would_overflow(record):
            self._schedule(lambda: self._retry(record))
            return
        _remove_identity(self._deferred, record)
        self.append(record)

    def _would_overflow(self, record: LogRecord) -> bool:
        if len(self._records) >= self._max_count:
            return True
        return self._size + estimated_size(record) >= self._max_bytes

    def _periodic_flush_due(self) -> bool:
        now = self._clock()
        elapsed = now - self._last_periodic_check
        self._last_periodic_check = now
        return elapsed > self._interval_ms


def _remove_identity(records: list[LogRecord], record: LogRecord) -> None:
    for i, candidate in enumerate(records):
        if candidate is record:
            del records[i]
            return
