from __future__ import annotations

from botocore.exceptions import ClientError

from cloudwatch_transport.core.errors import (
    SequenceTokenConflict,
    TransportFailure,
    as_token_conflict,
    as_transport_failure,
    error_code,
    is_already_exists,
)


def _err(code: str, **extra) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": "m"}, **extra}, "Op")


def test_error_code_reads_client_errors_only() -> None:
    assert error_code(_err("Boom")) == "Boom"
    assert error_code(ValueError("x")) is None


def test_already_exists_detection() -> None:
    assert is_already_exists(_err("ResourceAlreadyExistsException"))
    assert not is_already_exists(_err("ResourceNotFoundException"))


def test_token_conflict_translation() -> None:
    conflict = as_token_conflict(
        _err("InvalidSequenceTokenException", expectedSequenceToken="abc")
    )
    assert isinstance(conflict, SequenceTokenConflict)
    assert conflict.expected_token == "abc"
    assert conflict.code == "InvalidSequenceTokenException"
    assert as_token_conflict(_err("ThrottlingException")) is None
    assert as_token_conflict(RuntimeError("x")) is None


def test_transport_failure_keeps_code_and_cause() -> None:
    cause = _err("ThrottlingException")
    failure = as_transport_failure(cause, "PutLogEvents")
    assert isinstance(failure, TransportFailure)
    assert failure.code == "ThrottlingException"
    assert failure.cause is cause
    assert failure.message.startswith("PutLogEvents failed:")
