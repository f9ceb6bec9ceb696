"""Dynastore stores and table management.

This module provides the primary public API:

- `DataStore` for typed CRUD, batch and scan operations on one table
- `TableManager` for idempotent table creation and deletion

Both are thin, stateless layers over a `StoreClient`. Every call is a
single round trip (or one round trip per batch) to DynamoDB.
"""

import logging
from collections.abc import Iterable, Sequence
from typing import Any, Generic

from dynastore.base import (
    MAX_BATCH_GET_SIZE,
    MAX_BATCH_WRITE_SIZE,
    ItemT,
    KeySchema,
    KeyT,
    _DataStoreBase,
    chunked,
)
from dynastore.client import StoreClient
from dynastore.conditions import ScanCondition, ScanOptions
from dynastore.exceptions import ItemNotFoundError
from dynastore.tables import (
    CreateTableResult,
    DeleteTableResult,
    TableAlreadyExists,
    TableCreated,
    TableDefinition,
    TableDeleted,
    TableNotPresent,
)

logger = logging.getLogger(__name__)


class DataStore(_DataStoreBase[ItemT, KeyT, StoreClient], Generic[ItemT, KeyT]):
    """Typed persistence operations for one entity type over one table.

    Entities are Pydantic models (or any type a pydantic TypeAdapter can
    validate and dump) that declare a field for each attribute of the
    table's key schema. Keys are the hash key value, or a (hash, range)
    tuple for tables with a range key.

    Point reads are strongly consistent. modify_item and delete_item only
    act on items that already exist, using a conditional write so the
    existence check and the write are atomic.

    Example:
        class Widget(BaseModel):
            id: str
            color: str

        store = DataStore[Widget, str](client, "Widgets", Widget)
        store.add_item(Widget(id="w1", color="red"))
        store.get_item("w1")
        store.search_items([attr(Widget).color == "red"])

    """

    def __init__(
        self,
        client: StoreClient,
        table_name: str,
        item_type: type[ItemT],
        *,
        key_schema: KeySchema | None = None,
        batch_write_size: int = MAX_BATCH_WRITE_SIZE,
        batch_get_size: int = MAX_BATCH_GET_SIZE,
    ) -> None:
        """Create a store.

        Args:
            client: The backing store client.
            table_name: The DynamoDB table holding the entities.
            item_type: The entity type.
            key_schema: The table's key schema. Read once from DescribeTable
                on first use when omitted.
            batch_write_size: Maximum entities per batch write request (1-25).
            batch_get_size: Maximum keys per batch get request (1-100).

        Raises:
            InvalidBatchSizeError: If a batch size is out of range.
            InvalidKeySchemaError: If key_schema has no hash key or item_type
                has no field for a key attribute.

        """
        super().__init__(
            client,
            table_name,
            item_type,
            key_schema=key_schema,
            batch_write_size=batch_write_size,
            batch_get_size=batch_get_size,
        )

    def _load_key_schema(self) -> None:
        """Load the key schema from the table description if not loaded yet."""
        if not self._key_schema_loaded:
            description = self._client.describe_table(self.table_name)
            self._set_key_schema(description["Table"]["KeySchema"])

    def add_item(self, item: ItemT) -> None:
        """Create or replace an entity. No existence check is made.

        Raises:
            MissingKeyValueError: If the entity has no key value.

        """
        self._load_key_schema()
        dumped = self._dump_item(item)
        key = self._item_key(dumped, operation="add_item")

        logger.debug(f"Putting item {key} into {self.table_name}")
        self._client.put_item(self.table_name, dumped)

    def batch_store(self, items: Iterable[ItemT]) -> None:
        """Create or replace many entities with batch writes.

        Entities are split into batches of at most batch_write_size. The first
        failing batch aborts the operation and its error propagates; later
        batches are not submitted. When several entities share a key, the
        last one is stored.

        Raises:
            MissingKeyValueError: If an entity has no key value. Nothing is
                written in that case.

        """
        items = list(items)
        if not items:
            return
        self._load_key_schema()
        prepared = self._prepare_batch_items(items, operation="batch_store")
        key_attributes = self._key_attribute_names()

        for batch in chunked(prepared, self.batch_write_size):
            logger.debug(f"Batch writing {len(batch)} items into {self.table_name}")
            self._client.put_batch(self.table_name, batch, key_attributes=key_attributes)

    def get_all(self) -> list[ItemT]:
        """Return every entity in the table.

        This scans the whole table and costs O(table size) read capacity.
        Only use it on small tables or for diagnostics.
        """
        self._load_key_schema()
        logger.debug(f"Scanning all items of {self.table_name}")
        items = self._client.scan(
            self.table_name, **self._build_scan_kwargs([self._all_items_condition()], None)
        )
        return self._load_items(items)

    def get_item(self, key: KeyT) -> ItemT | None:
        """Get an entity by key with a strongly consistent read.

        Returns:
            The entity if found, None otherwise.

        Raises:
            MissingKeyValueError: If the key is missing a value.

        """
        self._load_key_schema()
        dynamodb_key = self._build_dynamodb_key(key, operation="get_item")
        item = self._client.get_item(self.table_name, dynamodb_key, consistent_read=True)
        if item is None:
            return None
        return self._load_item(item)

    def batch_get(self, keys: Iterable[KeyT]) -> list[ItemT]:
        """Get the entities stored under the given keys.

        Keys are de-duplicated and requested in batches of at most
        batch_get_size. Keys with no stored entity are omitted from the
        result, which is in no particular order.
        """
        keys = list(keys)
        if not keys:
            return []
        self._load_key_schema()
        unique_keys = self._unique_keys(keys, operation="batch_get")

        found: list[ItemT] = []
        for batch in chunked(unique_keys, self.batch_get_size):
            logger.debug(f"Batch getting {len(batch)} keys from {self.table_name}")
            items = self._client.get_batch(self.table_name, batch, consistent_read=True)
            found.extend(self._load_items(items))
        return found

    def modify_item(self, item: ItemT) -> None:
        """Replace an existing entity.

        The whole item is overwritten with the given entity (last writer
        wins).

        Raises:
            ItemNotFoundError: If no entity with the same key exists. Nothing
                is written in that case.
            MissingKeyValueError: If the entity has no key value.

        """
        self._load_key_schema()
        dumped = self._dump_item(item)
        key = self._item_key(dumped, operation="modify_item")

        logger.debug(f"Replacing item {key} in {self.table_name}")
        if not self._client.put_item(
            self.table_name, dumped, require_existing_key=self.hash_key_attribute
        ):
            raise ItemNotFoundError(table_name=self.table_name, key=key, operation="modify_item")

    def delete_item(self, item: ItemT) -> None:
        """Delete an existing entity.

        Raises:
            ItemNotFoundError: If no entity with the same key exists.
            MissingKeyValueError: If the entity has no key value.

        """
        self._load_key_schema()
        key = self._item_key(self._dump_item(item), operation="delete_item")

        logger.debug(f"Deleting item {key} from {self.table_name}")
        if not self._client.delete_item(
            self.table_name, key, require_existing_key=self.hash_key_attribute
        ):
            raise ItemNotFoundError(table_name=self.table_name, key=key, operation="delete_item")

    def search_items(
        self,
        conditions: Sequence[ScanCondition],
        options: ScanOptions | None = None,
    ) -> list[ItemT]:
        """Return the entities matching all conditions.

        This scans the whole table, like get_all(), and filters items on the
        DynamoDB side. An empty condition list matches every item.

        Args:
            conditions: Predicates combined with a logical AND.
            options: Optional scan options (limit, projection, index...).

        Example:
            store.search_items([ScanCondition("color", ScanOperator.EQ, "red")])
            store.search_items(
                [attr(Widget).size > 3],
                ScanOptions(limit=10),
            )

        """
        self._load_key_schema()
        logger.debug(f"Scanning {self.table_name} with {len(conditions)} conditions")
        items = self._client.scan(self.table_name, **self._build_scan_kwargs(conditions, options))
        return self._load_scan_results(items, options)


class TableManager:
    """Idempotent administration of DynamoDB tables.

    create_table and delete_table check whether the table exists first, so
    they can safely be called repeatedly (for example from provisioning
    scripts) without interpreting backend-specific error codes.

    Example:
        manager = TableManager(client)
        result = manager.create_table(TableDefinition.for_keys("Widgets", hash_key="id"))
        if result.changed:
            manager.wait_until_exists("Widgets")

    """

    def __init__(self, client: StoreClient) -> None:
        self._client = client

    def table_exists(self, table_name: str) -> bool:
        """Return whether the table is listed by ListTables."""
        return table_name in self._client.list_tables()

    def create_table(self, definition: TableDefinition) -> CreateTableResult:
        """Create the table unless it already exists.

        Returns:
            TableCreated with the CreateTable response, or TableAlreadyExists
            if a table with the same name exists. The existing table is left
            unchanged.

        """
        table_name = definition.table_name
        if self.table_exists(table_name):
            logger.debug(f"Table {table_name} already exists, not creating it")
            return TableAlreadyExists(table_name=table_name)

        response = self._client.create_table(definition.to_create_table_request())
        logger.info(f"Created table {table_name}")
        return TableCreated(table_name=table_name, response=response)

    def delete_table(self, table_name: str) -> DeleteTableResult:
        """Delete the table if it exists.

        Returns:
            TableDeleted with the DeleteTable response, or TableNotPresent if
            there is no such table.

        """
        if not self.table_exists(table_name):
            logger.debug(f"Table {table_name} does not exist, not deleting it")
            return TableNotPresent(table_name=table_name)

        response = self._client.delete_table(table_name)
        logger.info(f"Deleted table {table_name}")
        return TableDeleted(table_name=table_name, response=response)

    def describe_table(self, table_name: str) -> dict[str, Any]:
        """Return the table description.

        Raises:
            botocore.exceptions.ClientError: ResourceNotFoundException if the
                table does not exist.

        """
        return self._client.describe_table(table_name)["Table"]  # type: ignore[no-any-return]

    def wait_until_exists(self, table_name: str) -> None:
        self._client.wait_until_exists(table_name)

    def wait_until_not_exists(self, table_name: str) -> None:
        self._client.wait_until_not_exists(table_name)


__all__ = [
    "DataStore",
    "TableManager",
]
