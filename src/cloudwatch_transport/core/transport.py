"""
CloudWatch Logs transport: startup, producer write path and shutdown.

Startup walks ``UNINITIALIZED -> GROUP_ENSURED -> STREAM_ENSURED ->
TOKEN_KNOWN -> READY``. Any failure on the way leaves the transport
``READY_DEGRADED``: records are still accepted and flushed later, and the
failure itself is shipped as a record through the error sink. Closing runs
one final flush, releases the boto3 client and is terminal.
"""

from __future__ import annotations

import types
from enum import Enum
from typing import Any, AsyncIterable, Iterable, Mapping

from ..metrics.metrics import MetricsCollector
from . import diagnostics
from .buffer import BatchBuffer
from .errors import TransportClosedError
from .flush import FlushCoordinator, FlushListener
from .record import normalize
from .settings import CloudWatchSettings, Settings
from .stream_client import RemoteStreamClient

RawInput = str | bytes | Mapping[str, Any]


class TransportState(str, Enum):
    UNINITIALIZED = "uninitialized"
    GROUP_ENSURED = "group_ensured"
    STREAM_ENSURED = "stream_ensured"
    TOKEN_KNOWN = "token_known"
    READY = "ready"
    READY_DEGRADED = "ready_degraded"
    CLOSED = "closed"


class CloudWatchTransport:
    """Buffers producer log lines and ships them to one CloudWatch log stream.

    Usage:
        async with CloudWatchTransport(
            {"logGroupName": "app", "logStreamName": "web-1"}
        ) as transport:
            await transport.write('{"time": 1700000000000, "msg": "hi"}')
    """

    name = "cloudwatch"

    def __init__(
        self,
        options: CloudWatchSettings | Mapping[str, Any] | None = None,
        *,
        client: Any = None,
        metrics: MetricsCollector | None = None,
        **kwargs: Any,
    ) -> None:
        self._settings = CloudWatchSettings.from_options(options, **kwargs)
        if metrics is None:
            metrics = MetricsCollector(enabled=_metrics_enabled())
        self._metrics = metrics
        self._buffer = BatchBuffer(
            interval_ms=self._settings.interval, metrics=metrics
        )
        self._client = RemoteStreamClient(self._settings, client=client)
        self._coordinator = FlushCoordinator(
            buffer=self._buffer,
            client=self._client,
            log_group_name=self._settings.log_group_name,
            log_stream_name=self._settings.log_stream_name,
            min_interval_ms=self._settings.flush_min_interval_ms,
            metrics=metrics,
        )
        self._state = TransportState.UNINITIALIZED

    @property
    def settings(self) -> CloudWatchSettings:
        return self._settings

    @property
    def state(self) -> TransportState:
        return self._state

    @property
    def buffer(self) -> BatchBuffer:
        return self._buffer

    @property
    def client(self) -> RemoteStreamClient:
        return self._client

    @property
    def coordinator(self) -> FlushCoordinator:
        return self._coordinator

    @property
    def metrics(self) -> MetricsCollector:
        return self._metrics

    def on_flushed(self, listener: FlushListener) -> None:
        """Call ``listener`` after every flush CloudWatch accepted."""
        self._coordinator.add_listener(listener)

    async def start(self) -> TransportState:
        """Ensure group and stream exist and fetch the upload token."""
        if self._state is not TransportState.UNINITIALIZED:
            return self._state
        group = self._settings.log_group_name
        stream = self._settings.log_stream_name
        try:
            await self._client.open()
            await self._client.ensure_group(group)
            self._state = TransportState.GROUP_ENSURED
            await self._client.ensure_stream(group, stream)
            self._state = TransportState.STREAM_ENSURED
            await self._client.refresh_token(group, stream)
            self._state = TransportState.TOKEN_KNOWN
        except Exception as exc:
            self._state = TransportState.READY_DEGRADED
            await self._coordinator.error_sink.report(
                "cloudwatch-transport initialization error", exc
            )
            return self._state
        self._state = TransportState.READY
        diagnostics.debug(
            "transport", "ready", log_group=group, log_stream=stream
        )
        return self._state

    async def write(self, raw: RawInput) -> bool:
        """Admit one producer line; return True if it triggered a flush.

        Shipping failures never surface here; they are reported as records
        in the stream itself.
        """
        if self._state is TransportState.CLOSED:
            raise TransportClosedError("transport is closed")
        if not self._buffer.append(normalize(raw)):
            return False
        await self._coordinator.flush()
        return True

    async def consume(self, source: AsyncIterable[RawInput] | Iterable[RawInput]) -> int:
        """Feed every line of ``source`` through ``write``; return lines admitted.

        Line terminators are stripped. Lines left empty are skipped, since
        CloudWatch rejects empty messages; whitespace-only lines ship as is.
        """
        count = 0
        if isinstance(source, AsyncIterable):
            async for item in source:
                count += await self._consume_one(item)
        else:
            for item in source:
                count += await self._consume_one(item)
        return count

    async def close(self) -> None:
        """Flush once more, release the client and stop accepting records."""
        if self._state is TransportState.CLOSED:
            return
        self._state = TransportState.CLOSED
        try:
            await self._coordinator.final_flush()
        finally:
            discarded = self._buffer.close()
            if discarded:
                diagnostics.warn(
                    "transport",
                    "records discarded at close",
                    count=discarded,
                    last_error=self._coordinator.last_error,
                )
            await self._client.close()

    async def stop(self) -> None:
        await self.close()

    async def health_check(self) -> bool:
        return (
            self._state is not TransportState.CLOSED
            and self._client.is_open
            and self._coordinator.last_error is None
        )

    async def __aenter__(self) -> CloudWatchTransport:
        await self.start()
        return self

    async def __aexit__(
        self,
        _exc_type: type[BaseException] | None,
        _exc: BaseException | None,
        _tb: types.TracebackType | None,
    ) -> None:
        await self.close()

    async def _consume_one(self, item: RawInput) -> int:
        if isinstance(item, str):
            item = item.rstrip("\r\n")
        elif isinstance(item, (bytes, bytearray)):
            item = bytes(item).rstrip(b"\r\n")
        if isinstance(item, (str, bytes)) and not item:
            return 0
        await self.write(item)
        return 1


def _metrics_enabled() -> bool:
    try:
        return bool(Settings().core.enable_metrics)
    except Exception:
        return False


async def build_transport(
    options: CloudWatchSettings | Mapping[str, Any] | None = None,
    **kwargs: Any,
) -> CloudWatchTransport:
    """Create and start a transport; startup failures leave it degraded."""
    transport = CloudWatchTransport(options, **kwargs)
    await transport.start()
    return transport
