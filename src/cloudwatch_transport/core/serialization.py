"""
JSON helpers built on orjson.

Messages shipped to CloudWatch are text, so these helpers return ``str``
rather than the raw bytes orjson produces.
"""

from __future__ import annotations

from typing import Any, Mapping

import orjson

from .errors import TransportError


def _default(obj: Any) -> Any:
    """Serializer hook for types orjson does not handle natively."""
    if hasattr(obj, "model_dump"):
        return obj.model_dump(exclude_none=True)
    if isinstance(obj, BaseException):
        return str(obj)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def _lenient_default(obj: Any) -> Any:
    if isinstance(obj, (set, frozenset)):
        return list(obj)
    try:
        return _default(obj)
    except TypeError:
        return str(obj)


def dumps_compact(payload: Mapping[str, Any] | Any, *, lenient: bool = False) -> str:
    """Serialize to compact JSON text, keeping key insertion order.

    With ``lenient`` sets become arrays, scalar keys become strings and other
    unknown values fall back to ``str()``.
    """
    try:
        if lenient:
            data = orjson.dumps(
                payload, default=_lenient_default, option=orjson.OPT_NON_STR_KEYS
            )
        else:
            data = orjson.dumps(payload, default=_default)
        return data.decode("utf-8")
    except TypeError as e:
        raise TransportError("Serialization failed", cause=e) from e


def try_loads(text: str | bytes) -> Any | None:
    """Parse JSON, returning None instead of raising on malformed input."""
    try:
        return orjson.loads(text)
    except orjson.JSONDecodeError:
        return None
