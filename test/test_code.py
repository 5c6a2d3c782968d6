import grpc
import pytest

from gcloudrpc._protocol import http_status_for
from gcloudrpc.code import Code
from gcloudrpc.exceptions import TransportError

_statuses = [
    (Code.OK, 200, "OK"),
    (Code.CANCELLED, 499, "Client Closed Request"),
    (Code.UNKNOWN, 500, "Internal Server Error"),
    (Code.INVALID_ARGUMENT, 400, "Bad Request"),
    (Code.DEADLINE_EXCEEDED, 504, "Gateway Timeout"),
    (Code.NOT_FOUND, 404, "Not Found"),
    (Code.ALREADY_EXISTS, 409, "Conflict"),
    (Code.PERMISSION_DENIED, 403, "Forbidden"),
    (Code.RESOURCE_EXHAUSTED, 429, "Too Many Requests"),
    (Code.FAILED_PRECONDITION, 412, "Precondition Failed"),
    (Code.ABORTED, 409, "Conflict"),
    (Code.OUT_OF_RANGE, 400, "Bad Request"),
    (Code.UNIMPLEMENTED, 501, "Not Implemented"),
    (Code.INTERNAL, 500, "Internal Server Error"),
    (Code.UNAVAILABLE, 503, "Service Unavailable"),
    (Code.DATA_LOSS, 500, "Internal Server Error"),
    (Code.UNAUTHENTICATED, 401, "Unauthorized"),
]


@pytest.mark.parametrize(("code", "http_status", "reason"), _statuses)
def test_http_status_for(code: Code, http_status: int, reason: str) -> None:
    status = http_status_for(code)
    assert status.code == http_status
    assert status.reason == reason


@pytest.mark.parametrize(("code", "http_status", "reason"), _statuses)
def test_transport_error_carries_http_status(
    code: Code, http_status: int, reason: str
) -> None:
    error = TransportError(code, "boom")
    assert error.code == code
    assert error.http_status == http_status
    assert error.reason == reason
    assert error.message == "boom"
    assert str(error) == "boom"


def test_table_covers_every_code() -> None:
    assert {code for code, _, _ in _statuses} == set(Code)


def test_http_status_for_unknown_integer() -> None:
    assert http_status_for(42).code == 500


@pytest.mark.parametrize("status", list(grpc.StatusCode))
def test_from_grpc(status: grpc.StatusCode) -> None:
    code = Code.from_grpc(status)
    assert code.value == status.value[0]
    assert code.name == status.name


def test_from_grpc_fallbacks() -> None:
    assert Code.from_grpc(None) == Code.UNKNOWN
    assert Code.from_grpc(14) == Code.UNAVAILABLE
    assert Code.from_grpc(99) == Code.UNKNOWN
