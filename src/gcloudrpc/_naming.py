import re
from collections.abc import Mapping
from typing import Any

from ._protocol import PAGINATION_CONTROL_FIELDS

_ACRONYM_BOUNDARY = re.compile(r"([A-Z]+)([A-Z][a-z])")
_WORD_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")


def camel_to_snake(name: str) -> str:
    """Converts ``camelOption`` to ``camel_option``. Snake case passes through."""
    name = _ACRONYM_BOUNDARY.sub(r"\1_\2", name)
    return _WORD_BOUNDARY.sub(r"\1_\2", name).lower()


def snake_to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def to_pascal(name: str) -> str:
    """Name of an RPC as declared in a proto file, e.g. ``ListInstances``."""
    camel = snake_to_camel(name)
    return camel[:1].upper() + camel[1:]


def to_wire_fields(value: Any) -> Any:
    """Recursively translates mapping keys to the wire convention.

    Lists are walked element by element; any other value is returned as is.
    """
    match value:
        case Mapping():
            return {
                (camel_to_snake(k) if isinstance(k, str) else k): to_wire_fields(v)
                for k, v in value.items()
            }
        case list() | tuple():
            return [to_wire_fields(v) for v in value]
        case _:
            return value


def strip_control_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in fields.items() if k not in PAGINATION_CONTROL_FIELDS}
