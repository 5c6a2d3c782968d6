"""Configuration objects for clients and individual RPC calls."""

from __future__ import annotations

import os
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from gcloudrpc._protocol import SANDBOX_ENV_VAR
from gcloudrpc.code import Code

if TYPE_CHECKING:
    from gcloudrpc.loader import ServiceDescriptor

PROJECT_ENV_VAR = "GOOGLE_CLOUD_PROJECT"
PROTO_ROOT_ENV_VAR = "GCLOUDRPC_PROTO_ROOT"
ENDPOINT_ENV_VAR = "GCLOUDRPC_ENDPOINT"


@dataclass
class RetryPolicy:
    """Configuration for automatic retry behavior.

    The defaults give three attempts with a fixed 100ms pause between them.

    Attributes:
        max_attempts: Maximum number of attempts (including initial)
        initial_backoff_ms: Backoff before the first retry in milliseconds
        max_backoff_ms: Maximum backoff in milliseconds
        backoff_multiplier: Multiplier applied to the backoff after each retry
        jitter: Fraction of the backoff to randomize, between 0 and 1
        retryable_codes: List of error codes that trigger retry
    """

    max_attempts: int = 3
    initial_backoff_ms: int = 100
    max_backoff_ms: int = 5000
    backoff_multiplier: float = 1.0
    jitter: float = 0.0
    retryable_codes: list[Code] | None = None

    def __post_init__(self) -> None:
        """Set default retryable codes if not provided."""
        if self.retryable_codes is None:
            self.retryable_codes = [Code.UNAVAILABLE]
        if self.max_attempts < 1:
            msg = "max_attempts must be at least 1"
            raise ValueError(msg)
        if not 0.0 <= self.jitter <= 1.0:
            msg = "jitter must be between 0 and 1"
            raise ValueError(msg)


@dataclass
class CallOptions:
    """Options passed to a stub for a single RPC.

    Attributes:
        deadline: Absolute deadline as a ``time.time()`` timestamp
        metadata: Additional metadata sent with the call
    """

    deadline: float | None = None
    metadata: Sequence[tuple[str, str]] = ()


@dataclass
class ClientConfig:
    """Options for a client talking to one or more Google APIs.

    Attributes:
        services: Service descriptors keyed by the name used in requests
        base_url: Default host for services without their own base URL
        project_id: Google Cloud project the client acts on
        scopes: OAuth scopes requested for the application credential
        custom_endpoint: Connect without TLS or auth, e.g. to an emulator
        proto_root: Extra directory searched for proto files
        user_agent: Primary user agent sent on every channel
        retry_policy: Retry policy applied to every request
        timeout_ms: Default timeout for requests in milliseconds
        sandboxed: Skip every network call and return a sentinel instead
    """

    services: Mapping[str, ServiceDescriptor] = field(default_factory=dict)
    base_url: str | None = None
    project_id: str | None = None
    scopes: Sequence[str] = ()
    custom_endpoint: bool = False
    proto_root: str | None = None
    user_agent: str = "gcloudrpc"
    retry_policy: RetryPolicy = field(default_factory=RetryPolicy)
    timeout_ms: int | None = None
    sandboxed: bool = False

    @classmethod
    def from_env(cls, **overrides) -> ClientConfig:
        """Builds a config from the environment. Keyword arguments take precedence."""
        values: dict = {
            "project_id": os.environ.get(PROJECT_ENV_VAR),
            "proto_root": os.environ.get(PROTO_ROOT_ENV_VAR),
            "sandboxed": bool(os.environ.get(SANDBOX_ENV_VAR)),
        }
        endpoint = os.environ.get(ENDPOINT_ENV_VAR)
        if endpoint:
            values["base_url"] = endpoint
            values["custom_endpoint"] = True
        values.update(overrides)
        return cls(**values)
