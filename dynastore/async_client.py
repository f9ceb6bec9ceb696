"""Async backing store client capability and its aioboto3 implementation.

Mirrors dynastore.client for asyncio applications. Every operation suspends
while waiting on DynamoDB; cancelling the awaiting task cancels the in-flight
aiobotocore request.
"""

import asyncio
import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Protocol

from boto3.dynamodb.conditions import ConditionBase
from botocore.exceptions import ClientError

from dynastore.client import (
    UNPROCESSED_KEYS_MAX_RETRIES,
    build_scan_kwargs,
    existence_condition,
    is_conditional_check_failure,
    unprocessed_keys_delay,
)
from dynastore.exceptions import UnprocessedKeysError
from dynastore.keys import DynamoDBKey, Item

if TYPE_CHECKING:
    from types_aiobotocore_dynamodb.service_resource import DynamoDBServiceResource, Table
else:
    DynamoDBServiceResource = Any
    Table = Any

logger = logging.getLogger(__name__)


class AsyncStoreClient(Protocol):
    """Capability an asynchronous store needs from the backing key-value database."""

    async def put_item(
        self, table_name: str, item: Item, *, require_existing_key: str | None = None
    ) -> bool: ...

    async def put_batch(
        self, table_name: str, items: Sequence[Item], *, key_attributes: Sequence[str]
    ) -> None: ...

    async def get_item(
        self, table_name: str, key: DynamoDBKey, *, consistent_read: bool = True
    ) -> Item | None: ...

    async def get_batch(
        self, table_name: str, keys: Sequence[DynamoDBKey], *, consistent_read: bool = True
    ) -> list[Item]: ...

    async def delete_item(
        self, table_name: str, key: DynamoDBKey, *, require_existing_key: str | None = None
    ) -> bool: ...

    async def scan(
        self,
        table_name: str,
        *,
        filter_expression: ConditionBase | None = None,
        projection: Sequence[str] | None = None,
        index_name: str | None = None,
        consistent_read: bool = False,
        page_size: int | None = None,
        limit: int | None = None,
    ) -> list[Item]: ...

    async def list_tables(self) -> list[str]: ...

    async def create_table(self, request: dict[str, Any]) -> dict[str, Any]: ...

    async def delete_table(self, table_name: str) -> dict[str, Any]: ...

    async def describe_table(self, table_name: str) -> dict[str, Any]: ...

    async def wait_until_exists(self, table_name: str) -> None: ...

    async def wait_until_not_exists(self, table_name: str) -> None: ...


class AioBoto3StoreClient:
    """AsyncStoreClient backed by an aioboto3 DynamoDB service resource.

    The resource is owned by the caller and must stay open while the client
    is in use.

    Example:
        session = aioboto3.Session()
        async with session.resource("dynamodb") as resource:
            store = AsyncDataStore(AioBoto3StoreClient(resource), "Widgets", Widget)
            await store.add_item(Widget(id="w1", color="red"))

    """

    def __init__(
        self,
        resource: DynamoDBServiceResource,
        *,
        max_unprocessed_retries: int = UNPROCESSED_KEYS_MAX_RETRIES,
    ) -> None:
        self._resource = resource
        self.max_unprocessed_retries = max_unprocessed_retries

    async def _table(self, table_name: str) -> Table:
        return await self._resource.Table(table_name)

    async def put_item(
        self, table_name: str, item: Item, *, require_existing_key: str | None = None
    ) -> bool:
        table = await self._table(table_name)
        try:
            await table.put_item(Item=item, **existence_condition(require_existing_key))
        except ClientError as error:
            if require_existing_key is not None and is_conditional_check_failure(error):
                return False
            raise
        return True

    async def put_batch(
        self, table_name: str, items: Sequence[Item], *, key_attributes: Sequence[str]
    ) -> None:
        table = await self._table(table_name)
        async with table.batch_writer(overwrite_by_pkeys=list(key_attributes)) as writer:
            for item in items:
                await writer.put_item(Item=item)

    async def get_item(
        self, table_name: str, key: DynamoDBKey, *, consistent_read: bool = True
    ) -> Item | None:
        table = await self._table(table_name)
        response = await table.get_item(Key=key, ConsistentRead=consistent_read)
        return response.get("Item")

    async def get_batch(
        self, table_name: str, keys: Sequence[DynamoDBKey], *, consistent_read: bool = True
    ) -> list[Item]:
        items: list[Item] = []
        request_items: dict[str, Any] = {
            table_name: {"Keys": list(keys), "ConsistentRead": consistent_read}
        }
        attempt = 0
        while request_items:
            response = await self._resource.batch_get_item(RequestItems=request_items)
            items.extend(response.get("Responses", {}).get(table_name, []))
            request_items = response.get("UnprocessedKeys") or {}
            if request_items:
                if attempt >= self.max_unprocessed_retries:
                    raise UnprocessedKeysError(
                        table_name=table_name,
                        keys=request_items.get(table_name, {}).get("Keys", []),
                        attempts=attempt + 1,
                    )
                delay = unprocessed_keys_delay(attempt)
                logger.debug(f"Retrying unprocessed keys on {table_name} in {delay:.2f}s")
                await asyncio.sleep(delay)
                attempt += 1
        return items

    async def delete_item(
        self, table_name: str, key: DynamoDBKey, *, require_existing_key: str | None = None
    ) -> bool:
        table = await self._table(table_name)
        try:
            await table.delete_item(Key=key, **existence_condition(require_existing_key))
        except ClientError as error:
            if require_existing_key is not None and is_conditional_check_failure(error):
                return False
            raise
        return True

    async def scan(
        self,
        table_name: str,
        *,
        filter_expression: ConditionBase | None = None,
        projection: Sequence[str] | None = None,
        index_name: str | None = None,
        consistent_read: bool = False,
        page_size: int | None = None,
        limit: int | None = None,
    ) -> list[Item]:
        table = await self._table(table_name)
        scan_kwargs = build_scan_kwargs(
            filter_expression=filter_expression,
            projection=projection,
            index_name=index_name,
            consistent_read=consistent_read,
            page_size=page_size,
        )

        items: list[Item] = []
        while True:
            response = await table.scan(**scan_kwargs)
            items.extend(response.get("Items", []))
            last_evaluated_key = response.get("LastEvaluatedKey")
            if last_evaluated_key is None or (limit is not None and len(items) >= limit):
                break
            scan_kwargs["ExclusiveStartKey"] = last_evaluated_key

        return items if limit is None else items[:limit]

    async def list_tables(self) -> list[str]:
        paginator = self._resource.meta.client.get_paginator("list_tables")
        names: list[str] = []
        async for page in paginator.paginate():
            names.extend(page.get("TableNames", []))
        return names

    async def create_table(self, request: dict[str, Any]) -> dict[str, Any]:
        response = await self._resource.meta.client.create_table(**request)
        return response  # type: ignore[return-value]

    async def delete_table(self, table_name: str) -> dict[str, Any]:
        response = await self._resource.meta.client.delete_table(TableName=table_name)
        return response  # type: ignore[return-value]

    async def describe_table(self, table_name: str) -> dict[str, Any]:
        response = await self._resource.meta.client.describe_table(TableName=table_name)
        return response  # type: ignore[return-value]

    async def wait_until_exists(self, table_name: str) -> None:
        waiter = self._resource.meta.client.get_waiter("table_exists")
        await waiter.wait(TableName=table_name)

    async def wait_until_not_exists(self, table_name: str) -> None:
        waiter = self._resource.meta.client.get_waiter("table_not_exists")
        await waiter.wait(TableName=table_name)


__all__ = [
    "AioBoto3StoreClient",
    "AsyncStoreClient",
]
