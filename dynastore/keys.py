"""Type aliases for DynamoDB key-related values.

Type aliases:
    KeyValue: The types allowed as hash key or range key values in DynamoDB.
        Includes str, bytes, bytearray, int, and Decimal.

    ItemKey: The key callers pass to a store. A single KeyValue for tables with
        a hash key only, or a (hash_value, range_value) tuple for tables that
        also have a range key.

    DynamoDBKey: A dictionary mapping attribute names to key values. This is the
        format required by boto3 operations like get_item, delete_item and
        batch_get_item.
        Example: {"user_id": "123", "timestamp": 1234567890}

    Item: A raw DynamoDB item as boto3's resource layer reads and writes it.
"""

from decimal import Decimal
from typing import Any, TypeAlias

from boto3.dynamodb.types import Binary
from pydantic_core import to_jsonable_python

KeyValue: TypeAlias = str | bytes | bytearray | int | Decimal
ItemKey: TypeAlias = KeyValue | tuple[KeyValue, KeyValue]
DynamoDBKey: TypeAlias = dict[str, KeyValue]
Item: TypeAlias = dict[str, Any]


def to_dynamodb_value(value: Any) -> Any:
    """Convert a Python value into a type boto3's serializer accepts.

    Native DynamoDB types pass through unchanged. Floats become Decimal (boto3
    rejects floats), empty sets become empty lists (DynamoDB has no empty set
    type), and anything else (UUIDs, enums, datetimes, models) is converted
    with pydantic's JSON-compatible encoding.
    """
    if value is None or isinstance(value, bool | int | Decimal | str | bytes | bytearray):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, list | tuple):
        return [to_dynamodb_value(v) for v in value]
    if isinstance(value, set | frozenset):
        if not value:
            return []
        return {to_dynamodb_value(v) for v in value}
    if isinstance(value, dict):
        return {str(k): to_dynamodb_value(v) for k, v in value.items()}
    return to_dynamodb_value(to_jsonable_python(value))


def from_dynamodb_value(value: Any) -> Any:
    """Convert a value read by boto3 back into plain Python types.

    boto3 wraps binary attributes in Binary; they are unwrapped to bytes so
    entities with bytes fields validate.
    """
    if isinstance(value, Binary):
        return value.value
    if isinstance(value, list):
        return [from_dynamodb_value(v) for v in value]
    if isinstance(value, set | frozenset):
        return {from_dynamodb_value(v) for v in value}
    if isinstance(value, dict):
        return {k: from_dynamodb_value(v) for k, v in value.items()}
    return value


def is_missing_key_value(value: object) -> bool:
    """Return True when a key attribute value is absent, None or empty."""
    if value is None:
        return True
    if isinstance(value, str | bytes | bytearray):
        return len(value) == 0
    return False


def key_identity(key: DynamoDBKey) -> tuple[tuple[str, Any], ...]:
    """Return a hashable identity for a DynamoDB key, used for de-duplication."""
    return tuple(
        (name, bytes(value) if isinstance(value, bytearray) else value)
        for name, value in sorted(key.items())
    )


__all__ = [
    "DynamoDBKey",
    "Item",
    "ItemKey",
    "KeyValue",
    "from_dynamodb_value",
    "is_missing_key_value",
    "key_identity",
    "to_dynamodb_value",
]
