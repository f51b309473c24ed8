"""
Root pytest configuration.

Registers markers, resets internal diagnostics between tests and provides a
fake boto3 ``logs`` client that raises real botocore errors.
"""

from __future__ import annotations

import threading
import time
from collections import defaultdict
from collections.abc import Generator
from typing import Any, Callable

import pytest
from botocore.exceptions import ClientError


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for test categorization."""
    config.addinivalue_line(
        "markers",
        "critical: Tests that must never fail - core functionality",
    )
    config.addinivalue_line(
        "markers",
        "property: Property-based tests (may be slow)",
    )


@pytest.fixture(autouse=True)
def reset_diagnostics_cache() -> Generator[None, None, None]:
    """Reset the diagnostics module before and after each test.

    The diagnostics module caches the ``internal_logging_enabled`` setting at
    first access; resetting keeps tests from inheriting each other's state.
    """
    import cloudwatch_transport.core.diagnostics as diag

    diag._reset_for_tests()
    yield
    diag._reset_for_tests()


def make_client_error(code: str, operation: str = "Op", **extra: Any) -> ClientError:
    response: dict[str, Any] = {"Error": {"Code": code, "Message": code}}
    response.update(extra)
    return ClientError(response, operation)  # type: ignore[arg-type]


class FakeLogsClient:
    """Stand-in for ``boto3.client("logs")`` recording every call.

    Outcomes queued per operation are consumed in order; an exception outcome
    is raised, a dict is returned. Without queued outcomes the fake behaves
    like an empty, healthy CloudWatch account.
    """

    def __init__(self, *, put_delay: float = 0.0) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.outcomes: dict[str, list[Any]] = defaultdict(list)
        self.streams: dict[str, str | None] = {}
        self.put_delay = put_delay
        self.put_starts: list[float] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.closed = False
        self._lock = threading.Lock()
        self._token_counter = 0

    def queue(self, operation: str, *outcomes: Any) -> None:
        self.outcomes[operation].extend(outcomes)

    def _next(self, operation: str) -> Any:
        queued = self.outcomes[operation]
        if not queued:
            return None
        outcome = queued.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    def calls_for(self, operation: str) -> list[dict[str, Any]]:
        return [kwargs for op, kwargs in self.calls if op == operation]

    def create_log_group(self, **kwargs: Any) -> dict[str, Any]:
        self.calls.append(("create_log_group", kwargs))
        return self._next("create_log_group") or {}

    def create_log_stream(self, **kwargs: Any) -> dict[str, Any]:
        self.calls.append(("create_log_stream", kwargs))
        result = self._next("create_log_stream") or {}
        self.streams.setdefault(kwargs["logStreamName"], None)
        return result

    def describe_log_streams(self, **kwargs: Any) -> dict[str, Any]:
        self.calls.append(("describe_log_streams", kwargs))
        queued = self._next("describe_log_streams")
        if queued is not None:
            return queued
        prefix = kwargs.get("logStreamNamePrefix", "")
        streams = []
        for name, token in sorted(self.streams.items()):
            if name.startswith(prefix):
                entry: dict[str, Any] = {"logStreamName": name}
                if token is not None:
                    entry["uploadSequenceToken"] = token
                streams.append(entry)
        return {"logStreams": streams}

    def put_log_events(self, **kwargs: Any) -> dict[str, Any]:
        with self._lock:
            self.calls.append(("put_log_events", kwargs))
            self.put_starts.append(time.monotonic())
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.put_delay:
                time.sleep(self.put_delay)
            queued = self._next("put_log_events")
            if queued is not None:
                return queued
            with self._lock:
                self._token_counter += 1
                token = f"token-{self._token_counter}"
            self.streams[kwargs["logStreamName"]] = token
            return {"nextSequenceToken": token}
        finally:
            with self._lock:
                self.in_flight -= 1

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_logs() -> FakeLogsClient:
    return FakeLogsClient()


@pytest.fixture
def client_error() -> Callable[..., ClientError]:
    return make_client_error


@pytest.fixture
def options() -> dict[str, Any]:
    return {
        "logGroupName": "test-group",
        "logStreamName": "test-stream",
        "remoteRegion": "us-east-1",
        "interval": 60_000,
        "flushMinIntervalMs": 0,
    }
