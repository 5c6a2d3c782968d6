"""Conversion between plain Python values and google.protobuf.Struct.

Several Google APIs accept free-form payloads (log entry ``json_payload``,
Pub/Sub attributes pushed as structured data) typed as ``Struct``. These
helpers walk a generic value and build the protobuf representation.
"""

__all__ = [
    "convert_value",
    "is_buffer_like",
    "obj_to_arr",
    "obj_to_struct",
    "struct_to_obj",
    "value_to_python",
]


from collections.abc import Mapping
from typing import Any

from google.protobuf import struct_pb2

from .exceptions import ProtocolError

_BUFFER_IGNORED_KEYS = ("length", "parent")


def convert_value(value: Any) -> struct_pb2.Value:
    """Converts a generic value to a ``google.protobuf.Value``.

    Raises:
        ProtocolError: If the value's type has no structured representation.
    """
    match value:
        case None:
            return struct_pb2.Value(null_value=struct_pb2.NULL_VALUE)
        # bool is checked before int since it is a subclass
        case bool():
            return struct_pb2.Value(bool_value=value)
        case int() | float():
            return struct_pb2.Value(number_value=value)
        case str():
            return struct_pb2.Value(string_value=value)
        case list() | tuple():
            return struct_pb2.Value(
                list_value=struct_pb2.ListValue(values=[convert_value(v) for v in value])
            )
        case Mapping():
            if is_buffer_like(value):
                return convert_value(obj_to_arr(_buffer_items(value)))
            return struct_pb2.Value(struct_value=obj_to_struct(value))
        case _:
            raise ProtocolError(f"Value of type {type(value).__name__} not recognized.")


def obj_to_struct(obj: Mapping[str, Any]) -> struct_pb2.Struct:
    struct = struct_pb2.Struct()
    for key, value in obj.items():
        struct.fields[str(key)].CopyFrom(convert_value(value))
    return struct


def is_buffer_like(value: Any) -> bool:
    """Whether a mapping is a serialized byte array such as ``{1: 1, 2: 2}``.

    The keys, ignoring ``length`` and ``parent``, must be consecutive integers
    starting at 0 or 1, given as ints or digit strings.
    """
    if not isinstance(value, Mapping) or not value:
        return False

    indexes = []
    for key in value:
        if key in _BUFFER_IGNORED_KEYS:
            continue
        if isinstance(key, bool):
            return False
        if isinstance(key, str):
            if not key.isdigit():
                return False
            key = int(key)
        if not isinstance(key, int):
            return False
        indexes.append(key)

    if not indexes:
        return False
    indexes.sort()
    start = indexes[0]
    return start in (0, 1) and indexes == list(range(start, start + len(indexes)))


def obj_to_arr(obj: Mapping[Any, Any]) -> list[Any]:
    return list(obj.values())


def value_to_python(value: struct_pb2.Value) -> Any:
    kind = value.WhichOneof("kind")
    match kind:
        case "null_value" | None:
            return None
        case "bool_value":
            return value.bool_value
        case "number_value":
            return value.number_value
        case "string_value":
            return value.string_value
        case "list_value":
            return [value_to_python(v) for v in value.list_value.values]
        case "struct_value":
            return struct_to_obj(value.struct_value)
    raise ProtocolError(f"Value kind {kind} not recognized.")


def struct_to_obj(struct: struct_pb2.Struct) -> dict[str, Any]:
    return {key: value_to_python(value) for key, value in struct.fields.items()}


def _buffer_items(value: Mapping[Any, Any]) -> dict[int, Any]:
    items = {int(k): v for k, v in value.items() if k not in _BUFFER_IGNORED_KEYS}
    return dict(sorted(items.items()))
