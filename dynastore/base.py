"""Shared base functionality for dynastore stores.

This module provides the _DataStoreBase class, which contains the logic shared
between synchronous and asynchronous stores: parsing key schemas, building
DynamoDB keys, (de)serializing entities, partitioning batches, and building
scan requests. The sync and async stores only add the I/O.
"""

from collections.abc import Iterable, Iterator, Sequence
from typing import Any, Generic, TypeVar

from boto3.dynamodb.conditions import ConditionBase
from pydantic import BaseModel, TypeAdapter

from dynastore.conditions import (
    ScanCondition,
    ScanOperator,
    ScanOptions,
    build_filter_expression,
)
from dynastore.exceptions import (
    InvalidBatchSizeError,
    InvalidKeySchemaError,
    MissingKeyValueError,
)
from dynastore.fields import stored_field_names
from dynastore.keys import (
    DynamoDBKey,
    Item,
    ItemKey,
    from_dynamodb_value,
    is_missing_key_value,
    key_identity,
    to_dynamodb_value,
)

ItemT = TypeVar("ItemT")
KeyT = TypeVar("KeyT", bound=ItemKey)
ClientT = TypeVar("ClientT")
T = TypeVar("T")

MAX_BATCH_WRITE_SIZE = 25
MAX_BATCH_GET_SIZE = 100

KeySchema = Sequence[dict[str, str]]


def chunked(values: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    """Split values into consecutive chunks of at most size elements."""
    for start in range(0, len(values), size):
        yield values[start : start + size]


class _DataStoreBase(Generic[ItemT, KeyT, ClientT]):
    """Internal base class containing shared logic for sync and async stores.

    Subclasses must provide the I/O for every store operation. Key schema
    loading from the backend differs between sync and async stores, so it
    is done by the subclasses and handed to _set_key_schema().

    This class should not be subclassed directly. Use DataStore or
    AsyncDataStore instead.
    """

    def __init__(
        self,
        client: ClientT,
        table_name: str,
        item_type: type[ItemT],
        *,
        key_schema: KeySchema | None = None,
        batch_write_size: int = MAX_BATCH_WRITE_SIZE,
        batch_get_size: int = MAX_BATCH_GET_SIZE,
    ) -> None:
        if not 1 <= batch_write_size <= MAX_BATCH_WRITE_SIZE:
            raise InvalidBatchSizeError(
                operation="batch_store", size=batch_write_size, limit=MAX_BATCH_WRITE_SIZE
            )
        if not 1 <= batch_get_size <= MAX_BATCH_GET_SIZE:
            raise InvalidBatchSizeError(
                operation="batch_get", size=batch_get_size, limit=MAX_BATCH_GET_SIZE
            )

        self._client = client
        self.table_name = table_name
        self.item_type = item_type
        self.batch_write_size = batch_write_size
        self.batch_get_size = batch_get_size
        self._adapter: TypeAdapter[ItemT] = TypeAdapter(item_type)
        self._field_adapters: dict[str, TypeAdapter[Any]] = {}
        self._key_attributes: tuple[str, str | None] | None = None

        if key_schema is not None:
            self._set_key_schema(key_schema)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(table_name={self.table_name!r}, "
            f"item_type={self.item_type.__name__})"
        )

    @staticmethod
    def _parse_key_schema(*, key_schema: KeySchema) -> tuple[str, str | None]:
        """Parse a DynamoDB key schema into hash and range key attributes.

        Raises:
            InvalidKeySchemaError: If no hash key is present.

        """
        hash_key_attribute: str | None = None
        range_key_attribute: str | None = None

        for key_element in key_schema:
            if key_element["KeyType"] == "HASH":
                hash_key_attribute = key_element["AttributeName"]
            elif key_element["KeyType"] == "RANGE":
                range_key_attribute = key_element["AttributeName"]

        if hash_key_attribute is None:
            raise InvalidKeySchemaError()

        return hash_key_attribute, range_key_attribute

    def _set_key_schema(self, key_schema: KeySchema) -> None:
        """Parse the key schema and check the entity type can carry its key.

        Raises:
            InvalidKeySchemaError: If there is no hash key, or the entity type
                declares no field for one of the key attributes.

        """
        hash_key, range_key = self._parse_key_schema(key_schema=key_schema)

        fields = stored_field_names(self.item_type)
        if fields is not None:
            stored = set(fields.values())
            for attribute in (hash_key, range_key):
                if attribute is not None and attribute not in stored:
                    raise InvalidKeySchemaError(
                        f"{self.item_type.__name__} has no field stored as key "
                        f"attribute '{attribute}' of table '{self.table_name}'"
                    )

        self._key_attributes = (hash_key, range_key)

    @property
    def _key_schema_loaded(self) -> bool:
        return self._key_attributes is not None

    @property
    def hash_key_attribute(self) -> str:
        if self._key_attributes is None:
            raise RuntimeError(
                f"Key schema of table '{self.table_name}' was read before it was loaded"
            )
        return self._key_attributes[0]

    @property
    def range_key_attribute(self) -> str | None:
        if self._key_attributes is None:
            raise RuntimeError(
                f"Key schema of table '{self.table_name}' was read before it was loaded"
            )
        return self._key_attributes[1]

    def _key_attribute_names(self) -> list[str]:
        names = [self.hash_key_attribute]
        if self.range_key_attribute is not None:
            names.append(self.range_key_attribute)
        return names

    def _build_dynamodb_key(self, key: ItemKey, *, operation: str) -> DynamoDBKey:
        """Build a DynamoDB key from a caller-supplied key.

        Args:
            key: A hash key value, or a (hash, range) tuple for tables with a
                range key.
            operation: The store operation, for error messages.

        Raises:
            MissingKeyValueError: If a key value is missing or empty, or a range
                key is required but was not provided.

        """
        range_key_attribute = self.range_key_attribute
        if range_key_attribute is None:
            values: tuple[Any, ...] = (key,)
        elif isinstance(key, tuple) and len(key) == 2:
            values = key
        else:
            raise MissingKeyValueError(
                attribute=range_key_attribute, operation=operation, table_name=self.table_name
            )

        dynamodb_key: DynamoDBKey = {}
        for attribute, value in zip(self._key_attribute_names(), values, strict=True):
            if is_missing_key_value(value):
                raise MissingKeyValueError(
                    attribute=attribute, operation=operation, table_name=self.table_name
                )
            dynamodb_key[attribute] = to_dynamodb_value(value)
        return dynamodb_key

    def _dump_item(self, item: ItemT) -> Item:
        """Serialize an entity into a DynamoDB item.

        Decimal and int values are kept as numbers; floats become Decimal
        because boto3 rejects them.
        """
        return to_dynamodb_value(  # type: ignore[no-any-return]
            self._adapter.dump_python(item, by_alias=True)
        )

    def _item_key(self, item: Item, *, operation: str) -> DynamoDBKey:
        """Extract the DynamoDB key from a serialized entity.

        Raises:
            MissingKeyValueError: If the entity has no value for a key attribute.

        """
        key: DynamoDBKey = {}
        for attribute in self._key_attribute_names():
            value = item.get(attribute)
            if is_missing_key_value(value):
                raise MissingKeyValueError(
                    attribute=attribute, operation=operation, table_name=self.table_name
                )
            key[attribute] = value  # type: ignore[assignment]
        return key

    def _load_item(self, item: Item) -> ItemT:
        return self._adapter.validate_python(from_dynamodb_value(item))

    def _load_items(self, items: Iterable[Item]) -> list[ItemT]:
        return [self._load_item(item) for item in items]

    def _field_adapter(self, name: str, model: type[BaseModel]) -> TypeAdapter[Any]:
        adapter = self._field_adapters.get(name)
        if adapter is None:
            adapter = TypeAdapter(model.model_fields[name].rebuild_annotation())
            self._field_adapters[name] = adapter
        return adapter

    def _load_projected_item(self, item: Item) -> ItemT:
        """Load an item fetched with a projection.

        Each fetched attribute is validated against its field. Fields that were
        not fetched keep their default, or stay unset when they have none.
        Entity types other than pydantic models are validated as a whole.
        """
        model = self.item_type
        if not (isinstance(model, type) and issubclass(model, BaseModel)):
            return self._load_item(item)

        values: dict[str, Any] = {}
        for name, info in model.model_fields.items():
            stored = info.alias or name
            if stored in item:
                values[name] = self._field_adapter(name, model).validate_python(
                    from_dynamodb_value(item[stored])
                )
        return model.model_construct(**values)  # type: ignore[return-value]

    def _load_scan_results(
        self, items: Iterable[Item], options: ScanOptions | None
    ) -> list[ItemT]:
        if options is not None and options.projection:
            return [self._load_projected_item(item) for item in items]
        return self._load_items(items)

    def _unique_keys(self, keys: Iterable[ItemKey], *, operation: str) -> list[DynamoDBKey]:
        """Build DynamoDB keys, dropping duplicates while preserving order.

        DynamoDB rejects batch requests that name the same key twice.
        """
        unique: dict[tuple[tuple[str, Any], ...], DynamoDBKey] = {}
        for key in keys:
            dynamodb_key = self._build_dynamodb_key(key, operation=operation)
            unique.setdefault(key_identity(dynamodb_key), dynamodb_key)
        return list(unique.values())

    def _prepare_batch_items(self, items: Iterable[ItemT], *, operation: str) -> list[Item]:
        """Serialize entities for a batch write. The last entity wins for repeated keys."""
        prepared: dict[tuple[tuple[str, Any], ...], Item] = {}
        for item in items:
            dumped = self._dump_item(item)
            identity = key_identity(self._item_key(dumped, operation=operation))
            prepared.pop(identity, None)
            prepared[identity] = dumped
        return list(prepared.values())

    def _all_items_condition(self) -> ScanCondition:
        return ScanCondition(self.hash_key_attribute, ScanOperator.IS_NOT_NULL)

    def _build_scan_kwargs(
        self,
        conditions: Iterable[ScanCondition],
        options: ScanOptions | None,
    ) -> dict[str, Any]:
        """Build the keyword arguments for a client scan."""
        filter_expression: ConditionBase | None = build_filter_expression(conditions)
        options = options or ScanOptions()

        projection: list[str] | None = None
        if options.projection:
            projection = list(dict.fromkeys([*self._key_attribute_names(), *options.projection]))

        return {
            "filter_expression": filter_expression,
            "projection": projection,
            "index_name": options.index_name,
            "consistent_read": options.consistent_read,
            "page_size": options.page_size,
            "limit": options.limit,
        }


__all__ = [
    "MAX_BATCH_GET_SIZE",
    "MAX_BATCH_WRITE_SIZE",
    "KeySchema",
    "_DataStoreBase",
    "chunked",
]
