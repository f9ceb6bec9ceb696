from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from uuid import UUID

import pytest
from boto3.dynamodb.types import Binary

from dynastore.keys import (
    from_dynamodb_value,
    is_missing_key_value,
    key_identity,
    to_dynamodb_value,
)


class Color(Enum):
    RED = "red"


class TestToDynamoDBValue:
    """Test conversion of Python values into boto3-compatible values."""

    @pytest.mark.parametrize("value", ["a", b"a", 1, Decimal("1.5"), True, None])
    def test_native_values_pass_through(self, value: object) -> None:
        assert to_dynamodb_value(value) is value

    def test_float_becomes_decimal(self) -> None:
        assert to_dynamodb_value(0.1) == Decimal("0.1")

    def test_containers_are_converted_recursively(self) -> None:
        value = {"prices": [1.5, 2], "tags": {"a"}, "nested": {"ratio": 0.5}}

        assert to_dynamodb_value(value) == {
            "prices": [Decimal("1.5"), 2],
            "tags": {"a"},
            "nested": {"ratio": Decimal("0.5")},
        }

    def test_empty_sets_become_empty_lists(self) -> None:
        assert to_dynamodb_value({"labels": set(), "frozen": frozenset()}) == {
            "labels": [],
            "frozen": [],
        }

    def test_other_values_use_json_encoding(self) -> None:
        uuid = UUID("12345678-1234-5678-1234-567812345678")

        assert to_dynamodb_value(uuid) == "12345678-1234-5678-1234-567812345678"
        assert to_dynamodb_value(Color.RED) == "red"
        assert to_dynamodb_value(datetime(2024, 1, 2, tzinfo=timezone.utc)) == (
            "2024-01-02T00:00:00Z"
        )


class TestFromDynamoDBValue:
    """Test conversion of values read by boto3."""

    def test_binary_is_unwrapped(self) -> None:
        value = from_dynamodb_value(Binary(b"raw"))

        assert type(value) is bytes
        assert value == b"raw"

    def test_nested_binaries_are_unwrapped(self) -> None:
        value = {"chunks": [Binary(b"a")], "digests": {Binary(b"d")}, "count": Decimal("2")}

        converted = from_dynamodb_value(value)

        assert converted == {"chunks": [b"a"], "digests": {b"d"}, "count": Decimal("2")}
        assert type(converted["chunks"][0]) is bytes
        assert all(type(digest) is bytes for digest in converted["digests"])


class TestKeyHelpers:
    """Test key presence and identity helpers."""

    @pytest.mark.parametrize("value", [None, "", b"", bytearray()])
    def test_missing_values(self, value: object) -> None:
        assert is_missing_key_value(value)

    @pytest.mark.parametrize("value", ["a", 0, b"a", Decimal("0")])
    def test_present_values(self, value: object) -> None:
        assert not is_missing_key_value(value)

    def test_key_identity_ignores_attribute_order(self) -> None:
        assert key_identity({"a": "1", "b": 2}) == key_identity({"b": 2, "a": "1"})

    def test_key_identity_normalizes_bytearray(self) -> None:
        assert key_identity({"a": bytearray(b"x")}) == key_identity({"a": b"x"})
