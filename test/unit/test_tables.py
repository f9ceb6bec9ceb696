"""Tests for table definitions and lifecycle results."""

import pydantic
import pytest

from dynastore.exceptions import InvalidTableDefinitionError
from dynastore.tables import (
    AttributeDefinition,
    AttributeType,
    KeySchemaElement,
    KeyType,
    TableAlreadyExists,
    TableCreated,
    TableDefinition,
    TableDeleted,
    TableNotPresent,
)


def _hash_element(name: str = "Id") -> KeySchemaElement:
    return KeySchemaElement(attribute_name=name, key_type=KeyType.HASH)


def _definition(
    name: str = "Id", attribute_type: AttributeType = AttributeType.STRING
) -> AttributeDefinition:
    return AttributeDefinition(attribute_name=name, attribute_type=attribute_type)


class TestTableDefinitionValidation:
    """Test the key invariants of TableDefinition."""

    def test_hash_key_only(self) -> None:
        definition = TableDefinition(
            table_name="Widgets",
            hash_key_schema_element=_hash_element(),
            hash_attribute_definition=_definition(),
        )

        assert definition.read_capacity_units == 5
        assert definition.write_capacity_units == 5
        assert definition.range_key_schema_element is None

    def test_hash_element_must_be_hash(self) -> None:
        with pytest.raises(InvalidTableDefinitionError, match="key type HASH"):
            TableDefinition(
                table_name="Widgets",
                hash_key_schema_element=KeySchemaElement(
                    attribute_name="Id", key_type=KeyType.RANGE
                ),
                hash_attribute_definition=_definition(),
            )

    def test_hash_element_and_definition_must_match(self) -> None:
        with pytest.raises(InvalidTableDefinitionError, match="different attributes"):
            TableDefinition(
                table_name="Widgets",
                hash_key_schema_element=_hash_element("Id"),
                hash_attribute_definition=_definition("Name"),
            )

    def test_range_element_without_definition(self) -> None:
        with pytest.raises(InvalidTableDefinitionError, match="provided together") as exc_info:
            TableDefinition(
                table_name="Orders",
                hash_key_schema_element=_hash_element("customer_id"),
                hash_attribute_definition=_definition("customer_id"),
                range_key_schema_element=KeySchemaElement(
                    attribute_name="order_id", key_type=KeyType.RANGE
                ),
            )

        assert exc_info.value.table_name == "Orders"

    def test_range_definition_without_element(self) -> None:
        with pytest.raises(InvalidTableDefinitionError, match="provided together"):
            TableDefinition(
                table_name="Orders",
                hash_key_schema_element=_hash_element("customer_id"),
                hash_attribute_definition=_definition("customer_id"),
                range_attribute_definition=_definition("order_id"),
            )

    def test_range_element_must_be_range(self) -> None:
        with pytest.raises(InvalidTableDefinitionError, match="key type RANGE"):
            TableDefinition(
                table_name="Orders",
                hash_key_schema_element=_hash_element("customer_id"),
                hash_attribute_definition=_definition("customer_id"),
                range_key_schema_element=_hash_element("order_id"),
                range_attribute_definition=_definition("order_id"),
            )

    def test_range_key_must_differ_from_hash_key(self) -> None:
        with pytest.raises(InvalidTableDefinitionError, match="different attributes"):
            TableDefinition.for_keys("Orders", hash_key="id", range_key="id")

    def test_invalid_capacity(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            TableDefinition.for_keys("Widgets", hash_key="Id", read_capacity_units=0)

    def test_invalid_table_name(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            TableDefinition.for_keys("W", hash_key="Id")

    def test_definition_is_frozen(self) -> None:
        definition = TableDefinition.for_keys("Widgets", hash_key="Id")
        with pytest.raises(pydantic.ValidationError):
            definition.table_name = "Other"  # type: ignore[misc]


class TestTableDefinitionRequests:
    """Test conversion of definitions into DynamoDB API requests."""

    def test_create_table_request_hash_key_only(self) -> None:
        definition = TableDefinition.for_keys(
            "Widgets", hash_key="Id", read_capacity_units=1, write_capacity_units=2
        )

        assert definition.to_create_table_request() == {
            "TableName": "Widgets",
            "KeySchema": [{"AttributeName": "Id", "KeyType": "HASH"}],
            "AttributeDefinitions": [{"AttributeName": "Id", "AttributeType": "S"}],
            "ProvisionedThroughput": {"ReadCapacityUnits": 1, "WriteCapacityUnits": 2},
        }

    def test_create_table_request_with_range_key(self) -> None:
        definition = TableDefinition.for_keys(
            "Orders",
            hash_key="customer_id",
            range_key="created_at",
            range_key_type=AttributeType.NUMBER,
        )

        assert definition.key_schema() == [
            {"AttributeName": "customer_id", "KeyType": "HASH"},
            {"AttributeName": "created_at", "KeyType": "RANGE"},
        ]
        assert definition.attribute_definitions() == [
            {"AttributeName": "customer_id", "AttributeType": "S"},
            {"AttributeName": "created_at", "AttributeType": "N"},
        ]

    def test_for_keys_accepts_type_codes(self) -> None:
        definition = TableDefinition.for_keys("Blobs", hash_key="digest", hash_key_type="B")
        assert definition.hash_attribute_definition.attribute_type is AttributeType.BINARY


class TestTableResults:
    """Test the tagged results of table lifecycle operations."""

    def test_changed_flags(self) -> None:
        assert TableCreated(table_name="Widgets", response={}).changed is True
        assert TableAlreadyExists(table_name="Widgets").changed is False
        assert TableDeleted(table_name="Widgets", response={}).changed is True
        assert TableNotPresent(table_name="Widgets").changed is False
