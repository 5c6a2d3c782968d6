"""RPC dispatch shared by every Google API client."""

from __future__ import annotations

import logging
import time
import types
from collections.abc import Callable, Mapping, MutableMapping
from dataclasses import dataclass, field
from typing import Any

import grpc
from typing_extensions import Self

from gcloudrpc._naming import strip_control_fields, to_wire_fields
from gcloudrpc.auth import AuthClient, DefaultAuthClient, get_grpc_credentials
from gcloudrpc.code import Code
from gcloudrpc.exceptions import (
    AuthError,
    ConfigurationError,
    ProtocolError,
    TransportError,
)
from gcloudrpc.loader import StubConstructor, load_stub
from gcloudrpc.options import CallOptions, ClientConfig
from gcloudrpc.retry import execute_with_retry

logger = logging.getLogger(__name__)

_PLUGIN_FAILURE = "Getting metadata from plugin failed"


class _Sandboxed:
    def __repr__(self) -> str:
        return "SANDBOXED"

    def __bool__(self) -> bool:
        return False


SANDBOXED = _Sandboxed()
"""Returned instead of a response when the client runs sandboxed."""


@dataclass(frozen=True)
class LogicalRequest:
    """A caller-facing RPC description, before translation to the wire.

    Attributes:
        service: Name of a configured service
        method: RPC name, in camelCase, snake_case or as declared in the proto
        fields: Request fields, keys in camelCase or snake_case
        timeout_ms: Timeout for the call in milliseconds
    """

    service: str
    method: str
    fields: Mapping[str, Any] = field(default_factory=dict)
    timeout_ms: int | None = None


class GrpcService:
    """Dispatches RPCs to the services of one Google API.

    Proto definitions of every configured service are loaded when the client
    is created. Stubs are created on first use and cached for the lifetime of
    the client, as are the channel credentials.

    Args:
        config: Client configuration, including the services to talk to.
        auth_client: Source of the application credential. Defaults to
            Application Default Credentials with the configured scopes.
        stub_cache: Mapping used to cache stubs by service name.
        loader: Turns a ServiceDescriptor into a StubConstructor.
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        auth_client: AuthClient | None = None,
        stub_cache: MutableMapping[str, Any] | None = None,
        loader: Callable[..., StubConstructor] = load_stub,
    ) -> None:
        self.config = config
        self.auth_client = auth_client or DefaultAuthClient(config.scopes)
        self._stubs = stub_cache if stub_cache is not None else {}
        self._credentials: grpc.ChannelCredentials | None = None

        self.protos: dict[str, StubConstructor] = {}
        if config.sandboxed:
            return
        for name, descriptor in config.services.items():
            self.protos[name] = loader(descriptor, config.proto_root)

    @property
    def stubs(self) -> Mapping[str, Any]:
        return types.MappingProxyType(self._stubs)

    async def request(
        self,
        service: str,
        method: str,
        fields: Mapping[str, Any] | None = None,
        *,
        timeout_ms: int | None = None,
    ) -> Any:
        """Makes an RPC, retrying it while the service is unavailable.

        Returns:
            The response with field names in wire convention, or SANDBOXED.

        Raises:
            TransportError: If the RPC fails, carrying the paired HTTP status.
            AuthError: If credentials cannot be obtained or refreshed.
            ConfigurationError: If the service is not configured.
            ProtocolError: If the service has no such method.
        """
        if timeout_ms is None:
            timeout_ms = self.config.timeout_ms
        logical_request = LogicalRequest(
            service=service,
            method=method,
            fields=fields or {},
            timeout_ms=timeout_ms,
        )
        return await execute_with_retry(
            lambda: self.dispatch(logical_request), self.config.retry_policy
        )

    async def dispatch(self, request: LogicalRequest) -> Any:
        """Makes a single attempt of an RPC."""
        if self.config.sandboxed:
            return SANDBOXED

        stub = self._get_or_create_stub(request.service)
        rpc = getattr(stub, request.method, None)
        if rpc is None:
            msg = f"Method {request.method} not found on service {request.service}"
            raise ProtocolError(msg)

        fields = strip_control_fields(to_wire_fields(request.fields))
        call_options = self._call_options(request)

        try:
            return await rpc(
                fields, deadline=call_options.deadline, metadata=call_options.metadata
            )
        except grpc.RpcError as e:
            details = e.details() or ""
            # gRPC reports a failing token refresh as UNAVAILABLE
            if _PLUGIN_FAILURE in details:
                raise AuthError(details) from e
            # Convert gRPC error to TransportError carrying the HTTP status
            code = Code.from_grpc(e.code())
            raise TransportError(code, details or code.name) from e

    async def close(self) -> None:
        """Close the channel of every cached stub."""
        for stub in self._stubs.values():
            close = getattr(stub, "close", None)
            if close is not None:
                await close()
        self._stubs.clear()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> None:
        await self.close()

    def _get_credentials(self) -> grpc.ChannelCredentials | None:
        # Custom endpoints such as emulators are reached without TLS or auth
        if self.config.custom_endpoint:
            return None
        if self._credentials is None:
            self._credentials = get_grpc_credentials(self.auth_client)
        return self._credentials

    def _get_or_create_stub(self, service: str) -> Any:
        # No await between the lookup and the insert, so a stub is only built once
        if service not in self._stubs:
            constructor = self.protos.get(service)
            if constructor is None:
                msg = f"Service {service} is not configured"
                raise ConfigurationError(msg)
            base_url = constructor.descriptor.base_url or self.config.base_url
            if self.config.custom_endpoint and self.config.base_url:
                base_url = self.config.base_url
            if not base_url:
                msg = f"No base URL configured for service {service}"
                raise ConfigurationError(msg)
            logger.debug("Creating stub for %s at %s", service, base_url)
            self._stubs[service] = constructor(
                base_url,
                self._get_credentials(),
                [("grpc.primary_user_agent", self.config.user_agent)],
            )
        return self._stubs[service]

    def _call_options(self, request: LogicalRequest) -> CallOptions:
        deadline = None
        if request.timeout_ms:
            deadline = time.time() + request.timeout_ms / 1000.0
        return CallOptions(deadline=deadline)
