__all__ = [
    "AuthError",
    "ConfigurationError",
    "GcloudRpcException",
    "ProtocolError",
    "TransportError",
]


from ._protocol import http_status_for
from .code import Code


class GcloudRpcException(Exception):
    """Base class for every error raised by gcloudrpc.

    Errors that carry no transport status, such as a missing proto file, use
    Code.UNKNOWN.
    """

    def __init__(self, message: str, code: Code = Code.UNKNOWN) -> None:
        super().__init__(message)
        self._code = code
        self._message = message

    @property
    def code(self) -> Code:
        return self._code

    @property
    def message(self) -> str:
        return self._message


class ConfigurationError(GcloudRpcException):
    """A proto file or a service could not be located. Never retried."""


class AuthError(GcloudRpcException):
    """Exchanging the application credential for channel credentials failed.

    The underlying google.auth error is available as ``__cause__``.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message, Code.UNAUTHENTICATED)


class ProtocolError(GcloudRpcException):
    """An RPC method or a value could not be mapped onto the protocol."""


class TransportError(GcloudRpcException):
    """An RPC failed on the transport.

    Besides the gRPC status code, the error carries the HTTP status paired
    with it, which is what callers compare against.
    """

    def __init__(self, code: Code, message: str) -> None:
        super().__init__(message, code)
        status = http_status_for(code)
        self._http_status = status.code
        self._reason = status.reason

    @property
    def http_status(self) -> int:
        return self._http_status

    @property
    def reason(self) -> str:
        return self._reason
