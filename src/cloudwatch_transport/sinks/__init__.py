from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class BaseSink(Protocol):
    """Base async sink interface.

    Sinks emit producer log lines to an external destination. Implementations
    should be non-blocking and resilient; shipping errors must be contained
    and must not reach the producer.
    """

    async def start(self) -> None:  # Optional lifecycle hook
        ...

    async def stop(self) -> None:  # Optional lifecycle hook
        ...

    async def write(self, _entry: object) -> object:  # noqa: ARG002, D401
        """Write a single log line or structured entry to the destination."""
        ...


__all__ = ["BaseSink"]
