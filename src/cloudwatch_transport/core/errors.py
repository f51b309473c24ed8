"""
Error hierarchy for the CloudWatch transport.

Remote failures arrive from boto3 as ``botocore.exceptions.ClientError`` with
the service error code buried in the response. The helpers here read those
codes once so the rest of the package can branch on plain strings and raise
the typed errors below.
"""

from __future__ import annotations

from typing import Any

from botocore.exceptions import ClientError

ALREADY_EXISTS_CODE = "ResourceAlreadyExistsException"
TOKEN_CONFLICT_CODES = frozenset(
    {"InvalidSequenceTokenException", "DataAlreadyAcceptedException"}
)


class TransportError(Exception):
    """Base class for all transport errors."""

    def __init__(self, message: str, *, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause


class ConfigurationError(TransportError):
    """Options are missing or invalid."""


class StreamNotFoundError(TransportError):
    """The log stream does not exist when its token is looked up."""

    def __init__(self, group: str, stream: str) -> None:
        super().__init__(f"LogStream not found: {group}/{stream}")
        self.group = group
        self.stream = stream


class SequenceTokenConflict(TransportError):
    """A write was rejected because the held sequence token is stale."""

    def __init__(self, expected_token: str | None, *, code: str) -> None:
        super().__init__(f"{code}: expected sequence token {expected_token!r}")
        self.expected_token = expected_token
        self.code = code


class TransportFailure(TransportError):
    """Any remote failure that is not recovered locally."""

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, cause=cause)
        self.code = code


class TransportClosedError(TransportError):
    """Records were offered after the transport was closed."""


def error_code(exc: BaseException) -> str | None:
    """Return the AWS error code of a ``ClientError`` (None otherwise)."""
    if not isinstance(exc, ClientError):
        return None
    error: dict[str, Any] = exc.response.get("Error", {}) or {}
    code = error.get("Code")
    return str(code) if code else None


def expected_sequence_token(exc: ClientError) -> str | None:
    # botocore surfaces modeled exception members at the top level of the
    # response; older stubs nest them under "Error".
    token = exc.response.get("expectedSequenceToken")
    if token is None:
        token = (exc.response.get("Error", {}) or {}).get("expectedSequenceToken")
    return token


def is_already_exists(exc: BaseException) -> bool:
    return error_code(exc) == ALREADY_EXISTS_CODE


def as_token_conflict(exc: BaseException) -> SequenceTokenConflict | None:
    """Translate a rejected write into a conflict carrying the expected token."""
    code = error_code(exc)
    if code is None or code not in TOKEN_CONFLICT_CODES:
        return None
    assert isinstance(exc, ClientError)
    return SequenceTokenConflict(expected_sequence_token(exc), code=code)


def as_transport_failure(exc: BaseException, operation: str) -> TransportFailure:
    code = error_code(exc)
    detail = str(exc) or type(exc).__name__
    return TransportFailure(f"{operation} failed: {detail}", code=code, cause=exc)


__all__ = [
    "ALREADY_EXISTS_CODE",
    "TOKEN_CONFLICT_CODES",
    "ConfigurationError",
    "SequenceTokenConflict",
    "StreamNotFoundError",
    "TransportClosedError",
    "TransportError",
    "TransportFailure",
    "as_token_conflict",
    "as_transport_failure",
    "error_code",
    "expected_sequence_token",
    "is_already_exists",
]
