"""
Internal diagnostics for non-fatal transport errors.

Diagnostics are structured JSON lines written to stderr, separate from the
records shipped to CloudWatch. They are disabled unless
``core.internal_logging_enabled`` is set (``CWTRANSPORT_CORE__INTERNAL_LOGGING_ENABLED``).
The setting is read once and cached; tests reset the cache and swap the
writer.
"""

from __future__ import annotations

import sys
import time
from typing import Any, Callable

import orjson

Writer = Callable[[dict[str, Any]], None]

_internal_logging_enabled: bool | None = None


def _stderr_writer(payload: dict[str, Any]) -> None:
    data = orjson.dumps(payload, default=str)
    sys.stderr.buffer.write(data + b"\n")
    sys.stderr.buffer.flush()


_writer: Writer = _stderr_writer


def _enabled() -> bool:
    global _internal_logging_enabled
    if _internal_logging_enabled is None:
        try:
            from .settings import Settings

            _internal_logging_enabled = bool(
                Settings().core.internal_logging_enabled
            )
        except Exception:
            _internal_logging_enabled = False
    return _internal_logging_enabled


def set_enabled(enabled: bool) -> None:
    global _internal_logging_enabled
    _internal_logging_enabled = bool(enabled)


def set_writer_for_tests(writer: Writer) -> None:
    global _writer
    _writer = writer


def _reset_for_tests() -> None:
    global _internal_logging_enabled, _writer
    _internal_logging_enabled = None
    _writer = _stderr_writer


def _emit(level: str, component: str, message: str, fields: dict[str, Any]) -> None:
    if not _enabled():
        return
    payload: dict[str, Any] = {
        "ts": time.time(),
        "level": level,
        "component": component,
        "message": message,
    }
    payload.update(fields)
    try:
        _writer(payload)
    except Exception:
        # Diagnostics must never break the transport
        pass


def warn(component: str, message: str, **fields: Any) -> None:
    _emit("WARN", component, message, fields)


def debug(component: str, message: str, **fields: Any) -> None:
    _emit("DEBUG", component, message, fields)
