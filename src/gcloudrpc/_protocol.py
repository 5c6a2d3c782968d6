from dataclasses import dataclass
from http import HTTPStatus

from .code import Code

SANDBOX_ENV_VAR = "GCLOUD_SANDBOX_ENV"

# Adapter-only fields, named in wire convention. Never sent to a stub.
PAGINATION_CONTROL_FIELDS = frozenset(
    {
        "auto_paginate",
        "auto_paginate_val",
        "max_api_calls",
        "max_results",
    }
)


# Define a custom class for HTTP Status to allow adding 499 status code
@dataclass(frozen=True)
class ExtendedHTTPStatus:
    code: int
    reason: str

    @staticmethod
    def from_http_status(status: HTTPStatus) -> "ExtendedHTTPStatus":
        return ExtendedHTTPStatus(code=status.value, reason=status.phrase)


# Dedupe statuses that are mapped multiple times
_BAD_REQUEST = ExtendedHTTPStatus.from_http_status(HTTPStatus.BAD_REQUEST)
_CONFLICT = ExtendedHTTPStatus.from_http_status(HTTPStatus.CONFLICT)
_INTERNAL_SERVER_ERROR = ExtendedHTTPStatus.from_http_status(
    HTTPStatus.INTERNAL_SERVER_ERROR
)

_code_to_http_status = {
    Code.OK: ExtendedHTTPStatus.from_http_status(HTTPStatus.OK),
    Code.CANCELLED: ExtendedHTTPStatus(499, "Client Closed Request"),
    Code.UNKNOWN: _INTERNAL_SERVER_ERROR,
    Code.INVALID_ARGUMENT: _BAD_REQUEST,
    Code.DEADLINE_EXCEEDED: ExtendedHTTPStatus.from_http_status(
        HTTPStatus.GATEWAY_TIMEOUT
    ),
    Code.NOT_FOUND: ExtendedHTTPStatus.from_http_status(HTTPStatus.NOT_FOUND),
    Code.ALREADY_EXISTS: _CONFLICT,
    Code.PERMISSION_DENIED: ExtendedHTTPStatus.from_http_status(HTTPStatus.FORBIDDEN),
    Code.RESOURCE_EXHAUSTED: ExtendedHTTPStatus.from_http_status(
        HTTPStatus.TOO_MANY_REQUESTS
    ),
    Code.FAILED_PRECONDITION: ExtendedHTTPStatus.from_http_status(
        HTTPStatus.PRECONDITION_FAILED
    ),
    Code.ABORTED: _CONFLICT,
    Code.OUT_OF_RANGE: _BAD_REQUEST,
    Code.UNIMPLEMENTED: ExtendedHTTPStatus.from_http_status(
        HTTPStatus.NOT_IMPLEMENTED
    ),
    Code.INTERNAL: _INTERNAL_SERVER_ERROR,
    Code.UNAVAILABLE: ExtendedHTTPStatus.from_http_status(
        HTTPStatus.SERVICE_UNAVAILABLE
    ),
    Code.DATA_LOSS: _INTERNAL_SERVER_ERROR,
    Code.UNAUTHENTICATED: ExtendedHTTPStatus.from_http_status(
        HTTPStatus.UNAUTHORIZED
    ),
}


def http_status_for(code: Code | int) -> ExtendedHTTPStatus:
    """Returns the HTTP status paired with a gRPC status code.

    Callers inspect the resulting status code on errors, so the table is
    fixed. Integers outside the table map to 500.
    """
    try:
        return _code_to_http_status[Code(code)]
    except ValueError:
        return _INTERNAL_SERVER_ERROR
