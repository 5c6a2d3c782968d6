__all__ = ["Code"]


from enum import IntEnum

import grpc


class Code(IntEnum):
    """
    Enumeration of gRPC status codes, numbered as on the wire.
    """

    OK = 0
    """Not an error; returned on success."""

    CANCELLED = 1
    """RPC canceled, usually by the caller."""

    UNKNOWN = 2
    """Catch-all for errors of unclear origin and errors without a more appropriate code."""

    INVALID_ARGUMENT = 3
    """Request is invalid, regardless of system state."""

    DEADLINE_EXCEEDED = 4
    """Deadline expired before RPC could complete or before the client received the response."""

    NOT_FOUND = 5
    """User requested a resource (for example, an instance or a topic) that can't be found."""

    ALREADY_EXISTS = 6
    """Caller attempted to create a resource that already exists."""

    PERMISSION_DENIED = 7
    """Caller isn't authorized to perform the operation."""

    RESOURCE_EXHAUSTED = 8
    """Operation can't be completed because some resource is exhausted, such as a quota."""

    FAILED_PRECONDITION = 9
    """Operation can't be completed because the system isn't in the required state."""

    ABORTED = 10
    """The operation was aborted, often because of concurrency issues like a transaction abort."""

    OUT_OF_RANGE = 11
    """The operation was attempted past the valid range."""

    UNIMPLEMENTED = 12
    """The operation isn't implemented, supported, or enabled."""

    INTERNAL = 13
    """An invariant expected by the underlying system has been broken."""

    UNAVAILABLE = 14
    """The service is currently unavailable, usually transiently. Clients should back off and retry."""

    DATA_LOSS = 15
    """Unrecoverable data loss or corruption."""

    UNAUTHENTICATED = 16
    """Caller doesn't have valid authentication credentials for the operation."""

    @classmethod
    def from_grpc(cls, status: grpc.StatusCode | int | None) -> "Code":
        """Convert a grpc.StatusCode (or its integer value) to a Code."""
        if status is None:
            return cls.UNKNOWN
        if isinstance(status, grpc.StatusCode):
            status = status.value[0]
        try:
            return cls(int(status))
        except ValueError:
            return cls.UNKNOWN
