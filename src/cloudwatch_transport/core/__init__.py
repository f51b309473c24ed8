"""
Core batching, flushing and CloudWatch write protocol.
"""

from .buffer import BatchBuffer
from .concurrency import SerialThrottle
from .errors import (
    ConfigurationError,
    SequenceTokenConflict,
    StreamNotFoundError,
    TransportClosedError,
    TransportError,
    TransportFailure,
)
from .flush import ErrorSink, FlushCoordinator
from .record import LogRecord, normalize
from .settings import CloudWatchSettings, CoreSettings, Settings
from .stream_client import RemoteStreamClient
from .transport import CloudWatchTransport, TransportState, build_transport

__all__ = [
    "BatchBuffer",
    "CloudWatchSettings",
    "CloudWatchTransport",
    "ConfigurationError",
    "CoreSettings",
    "ErrorSink",
    "FlushCoordinator",
    "LogRecord",
    "RemoteStreamClient",
    "SequenceTokenConflict",
    "SerialThrottle",
    "Settings",
    "StreamNotFoundError",
    "TransportClosedError",
    "TransportError",
    "TransportFailure",
    "TransportState",
    "build_transport",
    "normalize",
]
