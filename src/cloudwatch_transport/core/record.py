"""
Log records and the normalizer that builds them from raw producer input.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Mapping

from . import diagnostics
from .errors import TransportError
from .serialization import dumps_compact, try_loads


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


@dataclass(frozen=True)
class LogRecord:
    """A single CloudWatch log event."""

    timestamp: int
    message: str

    def to_event(self) -> dict[str, Any]:
        return {"timestamp": self.timestamp, "message": self.message}


def _time_field(value: Any) -> int | None:
    if not isinstance(value, Mapping):
        return None
    raw = value.get("time")
    # bool is an int subclass; a zero time counts as absent
    if isinstance(raw, bool) or not isinstance(raw, (int, float)) or not raw:
        return None
    return int(raw)


def normalize(raw: str | bytes | Mapping[str, Any]) -> LogRecord:
    """Turn one producer line (or parsed object) into a ``LogRecord``.

    The message is always the raw text exactly as received; only the
    ``time`` field is read from the parsed JSON. Input that is not JSON, or
    has no usable ``time``, is stamped with the ingestion time. A mapping
    that cannot be encoded as JSON still ships, as its ``str()`` text.
    """
    if isinstance(raw, Mapping):
        try:
            message = dumps_compact(dict(raw), lenient=True)
        except TransportError as e:
            diagnostics.warn("record", "mapping not JSON encodable", error=str(e.cause))
            message = str(raw)
        parsed: Any = raw
    else:
        if isinstance(raw, (bytes, bytearray)):
            message = bytes(raw).decode("utf-8", errors="replace")
        else:
            message = str(raw)
        parsed = try_loads(message)
    timestamp = _time_field(parsed)
    return LogRecord(
        timestamp=timestamp if timestamp is not None else now_ms(),
        message=message,
    )
