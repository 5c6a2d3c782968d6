"""Runtime loading of proto service definitions into callable stubs."""

from __future__ import annotations

import logging
import sys
import time
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import grpc
import grpc.aio
from google.protobuf import json_format, message_factory
from google.protobuf.descriptor import MethodDescriptor, ServiceDescriptor as ProtoService

from gcloudrpc._naming import to_pascal
from gcloudrpc.exceptions import ConfigurationError, ProtocolError

logger = logging.getLogger(__name__)

_DEFAULT_PORT = 443


@dataclass(frozen=True)
class ServiceDescriptor:
    """Identifies a remote service and where its proto definition lives.

    Attributes:
        name: Name used to address the service in requests
        api_version: API version, used to derive the default proto path
        base_url: Host serving the API; falls back to the client's base URL
        proto_path: Proto file relative to a search root, e.g.
            ``google/pubsub/v1/pubsub.proto``
        service: Name of the service inside the proto file, defaults to ``name``
    """

    name: str
    api_version: str = "v1"
    base_url: str | None = None
    proto_path: str | None = None
    service: str | None = None

    @property
    def resolved_proto_path(self) -> str:
        if self.proto_path:
            return self.proto_path
        lowered = self.name.lower()
        return f"google/{lowered}/{self.api_version}/{lowered}.proto"

    @property
    def service_name(self) -> str:
        return self.service or self.name


class RpcMethod:
    """A single unary RPC taking and returning wire-convention dicts."""

    def __init__(self, descriptor: MethodDescriptor, multicallable: Any) -> None:
        self.descriptor = descriptor
        self._request_class = message_factory.GetMessageClass(descriptor.input_type)
        self._multicallable = multicallable

    @property
    def name(self) -> str:
        return self.descriptor.name

    async def __call__(
        self,
        fields: dict[str, Any],
        *,
        deadline: float | None = None,
        metadata: Sequence[tuple[str, str]] = (),
    ) -> dict[str, Any]:
        try:
            request = json_format.ParseDict(fields, self._request_class())
        except json_format.ParseError as e:
            msg = f"Invalid request for {self.descriptor.full_name}: {e}"
            raise ProtocolError(msg) from e

        timeout = None if deadline is None else max(deadline - time.time(), 0.0)
        response = await self._multicallable(
            request, timeout=timeout, metadata=tuple(metadata) or None
        )
        return json_format.MessageToDict(response, preserving_proto_field_name=True)


class ServiceStub:
    """A live stub for one service, bound to a channel.

    Each RPC of the service is an attribute, reachable by its proto name
    (``ListInstances``), in camelCase (``listInstances``) or in snake_case
    (``list_instances``).
    """

    def __init__(self, constructor: StubConstructor, channel: grpc.aio.Channel) -> None:
        self._constructor = constructor
        self._channel = channel
        self._stub = constructor.stub_class(channel)
        self._methods: dict[str, RpcMethod] = {}

    def __getattr__(self, name: str) -> RpcMethod:
        if name.startswith("_"):
            raise AttributeError(name)
        method_name = self._constructor.resolve_method(name)
        if method_name is None:
            msg = f"{self._constructor.service.full_name} has no method {name}"
            raise AttributeError(msg)
        if method_name not in self._methods:
            self._methods[method_name] = RpcMethod(
                self._constructor.service.methods_by_name[method_name],
                getattr(self._stub, method_name),
            )
        return self._methods[method_name]

    async def close(self) -> None:
        await self._channel.close()


class StubConstructor:
    """Creates stubs for a loaded service, bound to a base URL and credentials."""

    def __init__(
        self, descriptor: ServiceDescriptor, service: ProtoService, stub_class: type
    ) -> None:
        self.descriptor = descriptor
        self.service = service
        self.stub_class = stub_class

    @property
    def method_names(self) -> list[str]:
        return list(self.service.methods_by_name)

    def resolve_method(self, name: str) -> str | None:
        methods = self.service.methods_by_name
        for candidate in (name, to_pascal(name)):
            if candidate in methods:
                return candidate
        return None

    def __call__(
        self,
        base_url: str,
        credentials: grpc.ChannelCredentials | None,
        options: Sequence[tuple[str, Any]] = (),
    ) -> ServiceStub:
        """Opens a channel, without TLS when no credentials are given."""
        target = _target_from_url(base_url)
        logger.debug("Opening channel to %s for %s", target, self.service.full_name)
        if credentials is not None:
            channel = grpc.aio.secure_channel(
                target, credentials, options=list(options)
            )
        else:
            channel = grpc.aio.insecure_channel(target, options=list(options))
        return ServiceStub(self, channel)


def load_stub(
    descriptor: ServiceDescriptor, proto_root: str | None = None
) -> StubConstructor:
    """Loads the proto file of a service and returns its stub constructor.

    The file is looked up under ``proto_root`` first, then under every
    ``sys.path`` entry, which is where installed proto packages such as
    googleapis-common-protos live.

    Raises:
        ConfigurationError: If the proto file cannot be located or compiled.
        ProtocolError: If the file does not define the named service.
    """
    root, relative_path = locate_proto(descriptor.resolved_proto_path, proto_root)

    with _search_path(root):
        try:
            protos, services = grpc.protos_and_services(relative_path)
        except (ImportError, RuntimeError) as e:
            msg = f"Failed to load {relative_path}: {e}"
            raise ConfigurationError(msg) from e

    service = protos.DESCRIPTOR.services_by_name.get(descriptor.service_name)
    stub_class = getattr(services, f"{descriptor.service_name}Stub", None)
    if service is None or stub_class is None:
        msg = f"Service {descriptor.service_name} not found in {relative_path}"
        raise ProtocolError(msg)

    logger.debug("Loaded %s from %s", service.full_name, Path(root) / relative_path)
    return StubConstructor(descriptor, service, stub_class)


def locate_proto(proto_path: str, proto_root: str | None = None) -> tuple[str, str]:
    """Returns the search root containing ``proto_path`` and the path relative to it."""
    path = Path(proto_path)
    if path.is_absolute():
        if not path.is_file():
            msg = f"Proto file {proto_path} does not exist"
            raise ConfigurationError(msg)
        if proto_root and path.is_relative_to(proto_root):
            return str(proto_root), path.relative_to(proto_root).as_posix()
        return str(path.parent), path.name

    roots = [proto_root] if proto_root else []
    roots.extend(entry for entry in sys.path if entry)
    for root in roots:
        if (Path(root) / path).is_file():
            return str(root), path.as_posix()

    msg = f"Proto file {proto_path} not found under {proto_root or 'sys.path'}"
    raise ConfigurationError(msg)


@contextmanager
def _search_path(root: str) -> Iterator[None]:
    # grpc resolves proto files and their imports against sys.path
    if root in sys.path:
        yield
        return
    sys.path.insert(0, root)
    try:
        yield
    finally:
        sys.path.remove(root)


def _target_from_url(base_url: str) -> str:
    target = (
        base_url.replace("grpc://", "").replace("https://", "").replace("http://", "")
    )
    target = target.rstrip("/")
    if ":" not in target:
        target = f"{target}:{_DEFAULT_PORT}"
    return target
