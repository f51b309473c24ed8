"""
Public entrypoints for cloudwatch-transport.

Buffers log lines from an application and ships them in ordered batches to an
AWS CloudWatch Logs stream.

    from cloudwatch_transport import build_transport

    transport = await build_transport(
        {"logGroupName": "my-app", "logStreamName": "web-1", "interval": 2000}
    )
    transport.on_flushed(lambda: print("flushed"))
    await transport.consume(lines)
    await transport.close()
"""

from __future__ import annotations

from ._version import __version__
from .core.errors import (
    ConfigurationError,
    StreamNotFoundError,
    TransportClosedError,
    TransportError,
    TransportFailure,
)
from .core.record import LogRecord, normalize
from .core.settings import CloudWatchSettings, Settings
from .core.transport import CloudWatchTransport, TransportState, build_transport
from .metrics.metrics import MetricsCollector

__all__ = [
    "CloudWatchSettings",
    "CloudWatchTransport",
    "ConfigurationError",
    "LogRecord",
    "MetricsCollector",
    "Settings",
    "StreamNotFoundError",
    "TransportClosedError",
    "TransportError",
    "TransportFailure",
    "TransportState",
    "VERSION",
    "__version__",
    "build_transport",
    "normalize",
]

VERSION = __version__
