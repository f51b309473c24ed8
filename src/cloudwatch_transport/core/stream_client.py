"""
CloudWatch Logs client that owns the stream's sequence token.

boto3 is synchronous, so every call runs in a worker thread via
``asyncio.to_thread``. The token itself is only read and written on the event
loop thread, around those awaits.
"""

from __future__ import annotations

import asyncio
from typing import Any, Sequence

import boto3

from . import diagnostics
from .errors import (
    StreamNotFoundError,
    TransportFailure,
    as_token_conflict,
    as_transport_failure,
    is_already_exists,
)
from .record import LogRecord
from .settings import CloudWatchSettings


class RemoteStreamClient:
    """Talks to CloudWatch Logs for one transport instance."""

    def __init__(
        self,
        settings: CloudWatchSettings,
        *,
        client: Any = None,
    ) -> None:
        self._settings = settings
        self._client: Any = client
        self._sequence_token: str | None = None

    @property
    def sequence_token(self) -> str | None:
        return self._sequence_token

    @property
    def is_open(self) -> bool:
        return self._client is not None

    async def open(self) -> None:
        """Create the boto3 ``logs`` client unless one was injected."""
        if self._client is not None:
            return
        kwargs: dict[str, Any] = dict(self._settings.credentials())
        if self._settings.region:
            kwargs["region_name"] = self._settings.region
        if self._settings.endpoint_url:
            kwargs["endpoint_url"] = self._settings.endpoint_url
        self._client = await asyncio.to_thread(boto3.client, "logs", **kwargs)

    async def close(self) -> None:
        client, self._client = self._client, None
        if client is None:
            return
        close = getattr(client, "close", None)
        if close is not None:
            await asyncio.to_thread(close)

    async def ensure_group(self, name: str) -> None:
        try:
            await self._call("create_log_group", logGroupName=name)
        except Exception as e:
            if is_already_exists(e):
                return
            raise

    async def ensure_stream(self, group: str, name: str) -> None:
        try:
            await self._call(
                "create_log_stream", logGroupName=group, logStreamName=name
            )
        except Exception as e:
            if is_already_exists(e):
                return
            raise

    async def refresh_token(self, group: str, name: str) -> str | None:
        """Adopt the stream's current upload token; None for an empty stream."""
        output = await self._call(
            "describe_log_streams",
            logGroupName=group,
            logStreamNamePrefix=name,
        )
        streams = output.get("logStreams") or []
        match = next((s for s in streams if s.get("logStreamName") == name), None)
        if match is None:
            raise StreamNotFoundError(group, name)
        self._sequence_token = match.get("uploadSequenceToken")
        return self._sequence_token

    async def put_batch(
        self, group: str, name: str, records: Sequence[LogRecord]
    ) -> bool:
        """Submit records in order; return False if the token had to be repaired.

        A stale-token rejection adopts the token the service expected and
        returns without resubmitting; the next flush uses the repaired token.
        """
        if not records:
            return True
        kwargs: dict[str, Any] = {
            "logGroupName": group,
            "logStreamName": name,
            "logEvents": [r.to_event() for r in records],
        }
        if self._sequence_token is not None:
            kwargs["sequenceToken"] = self._sequence_token
        try:
            output = await self._call("put_log_events", **kwargs)
        except Exception as e:
            conflict = as_token_conflict(e)
            if conflict is None:
                if isinstance(e, TransportFailure):
                    raise
                raise as_transport_failure(e, "PutLogEvents") from e
            self._sequence_token = conflict.expected_token
            diagnostics.warn(
                "stream-client",
                "sequence token conflict",
                code=conflict.code,
                expected_token=conflict.expected_token,
            )
            return False
        self._sequence_token = output.get("nextSequenceToken")
        rejected = output.get("rejectedLogEventsInfo")
        if rejected:
            diagnostics.warn(
                "stream-client",
                "log events rejected",
                log_group=group,
                log_stream=name,
                **rejected,
            )
        return True

    async def _call(self, operation: str, **kwargs: Any) -> dict[str, Any]:
        if self._client is None:
            raise TransportFailure(f"{operation} called before the client was opened")
        method = getattr(self._client, operation)
        result: dict[str, Any] = await asyncio.to_thread(method, **kwargs)
        return result
