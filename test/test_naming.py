from types import MappingProxyType

import pytest

from gcloudrpc._naming import (
    camel_to_snake,
    snake_to_camel,
    strip_control_fields,
    to_pascal,
    to_wire_fields,
)


@pytest.mark.parametrize(
    ("camel", "snake"),
    [
        ("camelOption", "camel_option"),
        ("pageToken", "page_token"),
        ("nextPageToken", "next_page_token"),
        ("serveNodes", "serve_nodes"),
        ("ackId", "ack_id"),
        ("parent", "parent"),
        ("already_snake", "already_snake"),
        ("httpRequest", "http_request"),
        ("HTTPRequest", "http_request"),
        ("int64Value", "int64_value"),
    ],
)
def test_camel_to_snake(camel: str, snake: str) -> None:
    assert camel_to_snake(camel) == snake


def test_snake_to_camel() -> None:
    assert snake_to_camel("page_token") == "pageToken"
    assert snake_to_camel("parent") == "parent"


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("listInstances", "ListInstances"),
        ("list_instances", "ListInstances"),
        ("ListInstances", "ListInstances"),
        ("publish", "Publish"),
    ],
)
def test_to_pascal(name: str, expected: str) -> None:
    assert to_pascal(name) == expected


def test_to_wire_fields_nested() -> None:
    fields = {
        "parent": "projects/p",
        "instanceId": "my-instance",
        "instance": {"displayName": "Mine", "labels": {"envName": "prod"}},
        "clusters": [{"serveNodes": 3, "defaultStorageType": 1}, "raw", 7],
        "rawBytes": b"\x00\x01",
        "count": 3,
        "enabled": True,
        "missing": None,
    }

    assert to_wire_fields(fields) == {
        "parent": "projects/p",
        "instance_id": "my-instance",
        "instance": {"display_name": "Mine", "labels": {"env_name": "prod"}},
        "clusters": [{"serve_nodes": 3, "default_storage_type": 1}, "raw", 7],
        "raw_bytes": b"\x00\x01",
        "count": 3,
        "enabled": True,
        "missing": None,
    }


def test_to_wire_fields_is_idempotent() -> None:
    fields = {"camelOption": {"innerValue": [{"deepKey": 1}]}, "plain": "x"}
    once = to_wire_fields(fields)
    assert to_wire_fields(once) == once


def test_to_wire_fields_round_trip_preserves_keys_and_values() -> None:
    fields = {"pageSize": 10, "filterExpr": "a=b", "topic": "t"}
    wire = to_wire_fields(fields)
    assert {snake_to_camel(k): v for k, v in wire.items()} == fields


def test_to_wire_fields_leaves_primitives() -> None:
    assert to_wire_fields("camelCase") == "camelCase"
    assert to_wire_fields(1.5) == 1.5
    assert to_wire_fields(None) is None


def test_to_wire_fields_does_not_mutate_input() -> None:
    fields = {"camelOption": {"innerValue": 1}}
    to_wire_fields(fields)
    assert fields == {"camelOption": {"innerValue": 1}}


def test_strip_control_fields() -> None:
    fields = {
        "parent": "projects/p",
        "page_token": "token",
        "page_size": 5,
        "auto_paginate": True,
        "auto_paginate_val": True,
        "max_api_calls": 2,
        "max_results": 10,
    }
    assert strip_control_fields(fields) == {
        "parent": "projects/p",
        "page_token": "token",
        "page_size": 5,
    }


def test_to_wire_fields_accepts_any_mapping() -> None:
    fields = MappingProxyType(
        {"pageToken": "t", "labels": MappingProxyType({"envName": 1})}
    )

    assert to_wire_fields(fields) == {"page_token": "t", "labels": {"env_name": 1}}
