"""Dynastore exceptions.

This module defines the exception hierarchy for the dynastore library.
All custom exceptions inherit from DynastoreError, allowing users to catch
all library-specific errors with a single except clause.

Exception categories:
- DynastoreError: Base exception for all dynastore errors
- OperationError: A store operation could not be carried out
    - ItemNotFoundError: Modify/delete targeted an item that does not exist
    - MissingKeyValueError: An entity or key lacks a hash/range value
    - UnprocessedKeysError: A batch get left keys unprocessed after every retry
- ValidationError: Invalid input detected before any request is sent
    - InvalidKeySchemaError: Table key schema or entity type is unusable
    - InvalidTableDefinitionError: Table definition invariants are violated
    - InvalidScanConditionError: Scan condition has the wrong number of values
    - InvalidBatchSizeError: Batch size is outside DynamoDB's limits

Note: Pydantic validation errors raised while (de)serializing entities are
intentionally not wrapped and will bubble up as pydantic.ValidationError.
DynamoDB API errors (e.g., ProvisionedThroughputExceededException,
ResourceNotFoundException) are also not wrapped and come directly from
boto3/botocore, so callers can apply their own retry policy.
"""

from typing import Any


class DynastoreError(Exception):
    """Base exception for all dynastore errors.

    Example:
        try:
            store.modify_item(widget)
        except DynastoreError as e:
            pass

    """


class OperationError(DynastoreError):
    """Base class for errors raised while carrying out a store operation."""


class ValidationError(DynastoreError):
    """Base class for invalid input detected before any request is sent.

    Not to be confused with pydantic.ValidationError, which is raised when an
    entity fails model validation and is never wrapped by this library.
    """


class ItemNotFoundError(OperationError):
    """Raised when modify_item or delete_item targets a key with no stored item.

    No write happens when this is raised. Use add_item to create-or-replace.

    Attributes:
        table_name: The table that was searched.
        key: The DynamoDB key that was not found.
        operation: The store operation that failed.

    Example:
        store.modify_item(Widget(id="missing", color="red"))
        Raises ItemNotFoundError: Item {'id': 'missing'} does not exist in table
        'Widgets' (modify_item)

    """

    def __init__(
        self,
        *,
        table_name: str,
        key: dict[str, Any],
        operation: str | None = None,
    ) -> None:
        self.table_name = table_name
        self.key = key
        self.operation = operation
        message = f"Item {key!r} does not exist in table '{table_name}'"
        if operation:
            message = f"{message} ({operation})"
        super().__init__(message)


class MissingKeyValueError(OperationError):
    """Raised when a hash or range key value is missing, None or empty.

    Every entity passed to a mutation, and every key passed to a read, must
    carry a value for each attribute of the table's key schema.

    Example:
        For a table with both hash and range key:

        store.get_item("pk_value")
        Raises MissingKeyValueError.

        store.get_item(("pk_value", "sk_value"))

    """

    def __init__(
        self,
        *,
        attribute: str | None = None,
        operation: str | None = None,
        table_name: str | None = None,
    ) -> None:
        self.attribute = attribute
        self.operation = operation
        self.table_name = table_name

        message = "Key value must be provided"
        if attribute:
            message = f"Key attribute '{attribute}' must have a value"
        if table_name:
            message = f"{message} for table '{table_name}'"
        if operation:
            message = f"{message} in {operation} operation"
        super().__init__(message)


class UnprocessedKeysError(OperationError):
    """Raised when DynamoDB keeps returning UnprocessedKeys for a batch get.

    Unprocessed keys are re-requested with exponential backoff. When keys are
    still unprocessed after the last allowed retry, the batch get fails.

    Attributes:
        table_name: The table being read.
        keys: The keys that were never processed.
        attempts: The number of BatchGetItem requests made.

    """

    def __init__(self, *, table_name: str, keys: list[dict[str, Any]], attempts: int) -> None:
        self.table_name = table_name
        self.keys = keys
        self.attempts = attempts
        super().__init__(
            f"{len(keys)} keys of table '{table_name}' were still unprocessed "
            f"after {attempts} batch get requests"
        )

class InvalidKeySchemaError(ValidationError):
    """Raised when a DynamoDB key schema is unusable.

    This occurs when the table's key schema doesn't contain a hash key, or
    when the entity type does not declare a field for one of the key
    attributes.

    Example:
        DataStore(client, "Widgets", Widget, key_schema=[
            {"AttributeName": "sort", "KeyType": "RANGE"},
        ])
        Raises InvalidKeySchemaError.

    """

    def __init__(self, message: str = "Invalid key schema: no hash key found") -> None:
        super().__init__(message)


class InvalidTableDefinitionError(ValidationError):
    """Raised when a TableDefinition violates its invariants.

    A range key schema element requires a matching range attribute
    definition and vice versa, and every key element must name the same
    attribute as its definition.

    Attributes:
        table_name: The name of the offending definition, if known.

    """

    def __init__(self, message: str, *, table_name: str | None = None) -> None:
        self.table_name = table_name
        if table_name:
            message = f"Invalid definition for table '{table_name}': {message}"
        super().__init__(message)


class InvalidScanConditionError(ValidationError):
    """Raised when a scan condition has the wrong number of comparison values.

    Attributes:
        operator: The scan operator name.
        expected: Human readable description of the accepted arity.
        count: The number of values provided.

    Example:
        ScanCondition("age", ScanOperator.BETWEEN, 18)
        Raises InvalidScanConditionError: BETWEEN requires exactly 2 values, got 1

    """

    def __init__(self, *, operator: str, expected: str, count: int) -> None:
        self.operator = operator
        self.expected = expected
        self.count = count
        super().__init__(f"{operator} requires {expected}, got {count}")


class InvalidBatchSizeError(ValidationError):
    """Raised when a batch size falls outside DynamoDB's per-request limits.

    Attributes:
        operation: The batch operation the size applies to.
        size: The rejected size.
        limit: DynamoDB's maximum for the operation.

    """

    def __init__(self, *, operation: str, size: int, limit: int) -> None:
        self.operation = operation
        self.size = size
        self.limit = limit
        super().__init__(f"{operation} batch size must be between 1 and {limit}, got {size}")


__all__ = [
    "DynastoreError",
    "InvalidBatchSizeError",
    "InvalidKeySchemaError",
    "InvalidScanConditionError",
    "InvalidTableDefinitionError",
    "ItemNotFoundError",
    "MissingKeyValueError",
    "OperationError",
    "UnprocessedKeysError",
    "ValidationError",
]
