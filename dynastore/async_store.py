"""Async dynastore stores and table management.

This module provides async versions of the primary public API:

- `AsyncDataStore` for typed CRUD, batch and scan operations on one table
- `AsyncTableManager` for idempotent table creation and deletion

Every operation suspends while waiting on DynamoDB. Cancelling the awaiting
task cancels the in-flight request; stores keep no partial state to clean up.
"""

import logging
from collections.abc import Iterable, Sequence
from typing import Any, Generic

from dynastore.async_client import AsyncStoreClient
from dynastore.base import (
    MAX_BATCH_GET_SIZE,
    MAX_BATCH_WRITE_SIZE,
    ItemT,
    KeySchema,
    KeyT,
    _DataStoreBase,
    chunked,
)
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


class AsyncDataStore(_DataStoreBase[ItemT, KeyT, AsyncStoreClient], Generic[ItemT, KeyT]):
    """Async typed persistence operations for one entity type over one table.

    See DataStore for the semantics of each operation.

    Example:
        store = AsyncDataStore[Widget, str](client, "Widgets", Widget)
        await store.add_item(Widget(id="w1", color="red"))
        widget = await store.get_item("w1")

    """

    def __init__(
        self,
        client: AsyncStoreClient,
        table_name: str,
        item_type: type[ItemT],
        *,
        key_schema: KeySchema | None = None,
        batch_write_size: int = MAX_BATCH_WRITE_SIZE,
        batch_get_size: int = MAX_BATCH_GET_SIZE,
    ) -> None:
        super().__init__(
            client,
            table_name,
            item_type,
            key_schema=key_schema,
            batch_write_size=batch_write_size,
            batch_get_size=batch_get_size,
        )

    async def _load_key_schema(self) -> None:
        """Load and cache the key schema from the table description."""
        if not self._key_schema_loaded:
            description = await self._client.describe_table(self.table_name)
            self._set_key_schema(description["Table"]["KeySchema"])

    async def add_item(self, item: ItemT) -> None:
        """Create or replace an entity. No existence check is made."""
        await self._load_key_schema()
        dumped = self._dump_item(item)
        key = self._item_key(dumped, operation="add_item")

        logger.debug(f"Putting item {key} into {self.table_name}")
        await self._client.put_item(self.table_name, dumped)

    async def batch_store(self, items: Iterable[ItemT]) -> None:
        """Create or replace many entities, one batch write per batch_write_size entities.

        Batches are submitted one after the other; the first failure aborts
        the remaining batches.
        """
        items = list(items)
        if not items:
            return
        await self._load_key_schema()
        prepared = self._prepare_batch_items(items, operation="batch_store")
        key_attributes = self._key_attribute_names()

        for batch in chunked(prepared, self.batch_write_size):
            logger.debug(f"Batch writing {len(batch)} items into {self.table_name}")
            await self._client.put_batch(self.table_name, batch, key_attributes=key_attributes)

    async def get_all(self) -> list[ItemT]:
        """Return every entity in the table. Costs a full table scan."""
        await self._load_key_schema()
        logger.debug(f"Scanning all items of {self.table_name}")
        items = await self._client.scan(
            self.table_name, **self._build_scan_kwargs([self._all_items_condition()], None)
        )
        return self._load_items(items)

    async def get_item(self, key: KeyT) -> ItemT | None:
        """Get an entity by key with a strongly consistent read, or None if absent."""
        await self._load_key_schema()
        dynamodb_key = self._build_dynamodb_key(key, operation="get_item")
        item = await self._client.get_item(self.table_name, dynamodb_key, consistent_read=True)
        if item is None:
            return None
        return self._load_item(item)

    async def batch_get(self, keys: Iterable[KeyT]) -> list[ItemT]:
        """Get the entities stored under the given keys, omitting missing ones."""
        keys = list(keys)
        if not keys:
            return []
        await self._load_key_schema()
        unique_keys = self._unique_keys(keys, operation="batch_get")

        found: list[ItemT] = []
        for batch in chunked(unique_keys, self.batch_get_size):
            logger.debug(f"Batch getting {len(batch)} keys from {self.table_name}")
            items = await self._client.get_batch(self.table_name, batch, consistent_read=True)
            found.extend(self._load_items(items))
        return found

    async def modify_item(self, item: ItemT) -> None:
        """Replace an existing entity.

        Raises:
            ItemNotFoundError: If no entity with the same key exists.

        """
        await self._load_key_schema()
        dumped = self._dump_item(item)
        key = self._item_key(dumped, operation="modify_item")

        logger.debug(f"Replacing item {key} in {self.table_name}")
        if not await self._client.put_item(
            self.table_name, dumped, require_existing_key=self.hash_key_attribute
        ):
            raise ItemNotFoundError(table_name=self.table_name, key=key, operation="modify_item")

    async def delete_item(self, item: ItemT) -> None:
        """Delete an existing entity.

        Raises:
            ItemNotFoundError: If no entity with the same key exists.

        """
        await self._load_key_schema()
        key = self._item_key(self._dump_item(item), operation="delete_item")

        logger.debug(f"Deleting item {key} from {self.table_name}")
        if not await self._client.delete_item(
            self.table_name, key, require_existing_key=self.hash_key_attribute
        ):
            raise ItemNotFoundError(table_name=self.table_name, key=key, operation="delete_item")

    async def search_items(
        self,
        conditions: Sequence[ScanCondition],
        options: ScanOptions | None = None,
    ) -> list[ItemT]:
        """Return the entities matching all conditions. Costs a full table scan."""
        await self._load_key_schema()
        logger.debug(f"Scanning {self.table_name} with {len(conditions)} conditions")
        items = await self._client.scan(
            self.table_name, **self._build_scan_kwargs(conditions, options)
        )
        return self._load_scan_results(items, options)


class AsyncTableManager:
    """Async idempotent administration of DynamoDB tables.

    Example:
        manager = AsyncTableManager(client)
        result = await manager.create_table(definition)

    """

    def __init__(self, client: AsyncStoreClient) -> None:
        self._client = client

    async def table_exists(self, table_name: str) -> bool:
        return table_name in await self._client.list_tables()

    async def create_table(self, definition: TableDefinition) -> CreateTableResult:
        """Create the table unless it already exists."""
        table_name = definition.table_name
        if await self.table_exists(table_name):
            logger.debug(f"Table {table_name} already exists, not creating it")
            return TableAlreadyExists(table_name=table_name)

        response = await self._client.create_table(definition.to_create_table_request())
        logger.info(f"Created table {table_name}")
        return TableCreated(table_name=table_name, response=response)

    async def delete_table(self, table_name: str) -> DeleteTableResult:
        """Delete the table if it exists."""
        if not await self.table_exists(table_name):
            logger.debug(f"Table {table_name} does not exist, not deleting it")
            return TableNotPresent(table_name=table_name)

        response = await self._client.delete_table(table_name)
        logger.info(f"Deleted table {table_name}")
        return TableDeleted(table_name=table_name, response=response)

    async def describe_table(self, table_name: str) -> dict[str, Any]:
        description = await self._client.describe_table(table_name)
        return description["Table"]  # type: ignore[no-any-return]

    async def wait_until_exists(self, table_name: str) -> None:
        await self._client.wait_until_exists(table_name)

    async def wait_until_not_exists(self, table_name: str) -> None:
        await self._client.wait_until_not_exists(table_name)


__all__ = [
    "AsyncDataStore",
    "AsyncTableManager",
]
