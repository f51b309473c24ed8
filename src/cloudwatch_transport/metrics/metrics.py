"""
Transport metrics with optional Prometheus export.

Counters are always tracked in memory so tests and ``health_check`` can read
them; Prometheus collectors are created only when metrics are enabled, in an
isolated registry to avoid global registration noise.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from prometheus_client import CollectorRegistry, Counter, Histogram


@dataclass
class TransportMetrics:
    """Captured runtime counters for quick assertions in tests."""

    records_shipped: int = 0
    records_dropped: int = 0
    flushes: int = 0
    flush_failures: int = 0
    token_conflicts: int = 0


class MetricsCollector:
    """Instance-scoped metrics collector; Prometheus calls are no-ops when disabled."""

    def __init__(self, *, enabled: bool = False) -> None:
        self._enabled = bool(enabled)
        self._state = TransportMetrics()

        self._c_shipped: Any | None = None
        self._c_dropped: Any | None = None
        self._c_flushes: Any | None = None
        self._c_conflicts: Any | None = None
        self._h_flush_latency: Any | None = None
        self._registry: CollectorRegistry | None = None

        if self._enabled:
            self._registry = CollectorRegistry()
            self._c_shipped = Counter(
                "cwtransport_records_shipped_total",
                "Total number of records accepted by CloudWatch Logs",
                registry=self._registry,
            )
            self._c_dropped = Counter(
                "cwtransport_records_dropped_total",
                "Records dropped at admission for exceeding the event size limit",
                registry=self._registry,
            )
            self._c_flushes = Counter(
                "cwtransport_flushes_total",
                "Flush attempts by outcome",
                ["outcome"],
                registry=self._registry,
            )
            self._c_conflicts = Counter(
                "cwtransport_sequence_token_conflicts_total",
                "Writes rejected for a stale sequence token",
                registry=self._registry,
            )
            self._h_flush_latency = Histogram(
                "cwtransport_flush_seconds",
                "Latency of a single PutLogEvents flush",
                buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
                registry=self._registry,
            )

    @property
    def is_enabled(self) -> bool:
        return self._enabled

    @property
    def registry(self) -> CollectorRegistry | None:
        return self._registry

    def record_dropped(self) -> None:
        self._state.records_dropped += 1
        if self._c_dropped is not None:
            self._c_dropped.inc()

    def record_flush(
        self,
        *,
        shipped: int,
        outcome: str,
        duration_seconds: float | None = None,
    ) -> None:
        """Record a finished flush; ``outcome`` is success, conflict or failure."""
        self._state.flushes += 1
        if outcome == "success":
            self._state.records_shipped += shipped
        elif outcome == "conflict":
            self._state.token_conflicts += 1
        else:
            self._state.flush_failures += 1
        if not self._enabled:
            return
        if self._c_flushes is not None:
            self._c_flushes.labels(outcome=outcome).inc()
        if outcome == "success" and self._c_shipped is not None:
            self._c_shipped.inc(shipped)
        if outcome == "conflict" and self._c_conflicts is not None:
            self._c_conflicts.inc()
        if duration_seconds is not None and self._h_flush_latency is not None:
            self._h_flush_latency.observe(duration_seconds)

    def snapshot(self) -> TransportMetrics:
        return replace(self._state)
