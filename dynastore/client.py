"""Backing store client capability and its boto3 implementation.

Stores and table managers never talk to boto3 directly. They depend on the
narrow StoreClient capability defined here, which issues logical operations
against a DynamoDB service resource:

- single-item put, get and delete (with an optional "key must exist" guard)
- batch put and batch get
- filtered scans
- table administration (list, create, delete, describe, wait)

Retries for connectivity and throttling errors are configured on the boto3
resource itself (see DynastoreSettings). Errors raised by boto3/botocore are
not wrapped, with one exception: a failed "key must exist" guard is reported
as a False return value so the store can raise ItemNotFoundError.
"""

import logging
import time
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Protocol

from boto3.dynamodb.conditions import Attr, ConditionBase
from botocore.exceptions import ClientError

from dynastore.exceptions import UnprocessedKeysError
from dynastore.keys import DynamoDBKey, Item

if TYPE_CHECKING:
    from mypy_boto3_dynamodb.service_resource import DynamoDBServiceResource, Table

    from dynastore.config import DynastoreSettings
else:
    DynamoDBServiceResource = Any
    Table = Any

logger = logging.getLogger(__name__)

CONDITIONAL_CHECK_FAILED = "ConditionalCheckFailedException"
UNPROCESSED_KEYS_BASE_DELAY = 0.05
UNPROCESSED_KEYS_MAX_DELAY = 2.0
UNPROCESSED_KEYS_MAX_RETRIES = 8


class StoreClient(Protocol):
    """Capability a synchronous store needs from the backing key-value database."""

    def put_item(
        self, table_name: str, item: Item, *, require_existing_key: str | None = None
    ) -> bool: ...

    def put_batch(
        self, table_name: str, items: Sequence[Item], *, key_attributes: Sequence[str]
    ) -> None: ...

    def get_item(
        self, table_name: str, key: DynamoDBKey, *, consistent_read: bool = True
    ) -> Item | None: ...

    def get_batch(
        self, table_name: str, keys: Sequence[DynamoDBKey], *, consistent_read: bool = True
    ) -> list[Item]: ...

    def delete_item(
        self, table_name: str, key: DynamoDBKey, *, require_existing_key: str | None = None
    ) -> bool: ...

    def scan(
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

    def list_tables(self) -> list[str]: ...

    def create_table(self, request: dict[str, Any]) -> dict[str, Any]: ...

    def delete_table(self, table_name: str) -> dict[str, Any]: ...

    def describe_table(self, table_name: str) -> dict[str, Any]: ...

    def wait_until_exists(self, table_name: str) -> None: ...

    def wait_until_not_exists(self, table_name: str) -> None: ...


def is_conditional_check_failure(error: ClientError) -> bool:
    return error.response.get("Error", {}).get("Code") == CONDITIONAL_CHECK_FAILED


def unprocessed_keys_delay(attempt: int) -> float:
    """Exponential backoff before re-requesting unprocessed batch keys."""
    return min(UNPROCESSED_KEYS_BASE_DELAY * (2**attempt), UNPROCESSED_KEYS_MAX_DELAY)


def build_scan_kwargs(
    *,
    filter_expression: ConditionBase | None,
    projection: Sequence[str] | None,
    index_name: str | None,
    consistent_read: bool,
    page_size: int | None,
) -> dict[str, Any]:
    """Build the keyword arguments shared by every page of a scan."""
    scan_kwargs: dict[str, Any] = {}
    if consistent_read:
        scan_kwargs["ConsistentRead"] = True
    if filter_expression is not None:
        scan_kwargs["FilterExpression"] = filter_expression
    if projection:
        # Placeholders avoid clashes with DynamoDB reserved words such as "name".
        names = {f"#p{index}": attribute for index, attribute in enumerate(projection)}
        scan_kwargs["ProjectionExpression"] = ", ".join(names)
        scan_kwargs["ExpressionAttributeNames"] = names
    if index_name is not None:
        scan_kwargs["IndexName"] = index_name
    if page_size is not None:
        scan_kwargs["Limit"] = page_size
    return scan_kwargs


def existence_condition(require_existing_key: str | None) -> dict[str, Any]:
    if require_existing_key is None:
        return {}
    return {"ConditionExpression": Attr(require_existing_key).exists()}


class Boto3StoreClient:
    """StoreClient backed by a boto3 DynamoDB service resource.

    Example:
        client = Boto3StoreClient(boto3.resource("dynamodb"))
        store = DataStore(client, "Widgets", Widget)

    """

    def __init__(
        self,
        resource: DynamoDBServiceResource,
        *,
        max_unprocessed_retries: int = UNPROCESSED_KEYS_MAX_RETRIES,
    ) -> None:
        self._resource = resource
        self.max_unprocessed_retries = max_unprocessed_retries

    @classmethod
    def from_settings(cls, settings: "DynastoreSettings") -> "Boto3StoreClient":
        return cls(settings.create_resource(), max_unprocessed_retries=settings.max_retries)

    def _table(self, table_name: str) -> Table:
        return self._resource.Table(table_name)

    def put_item(
        self, table_name: str, item: Item, *, require_existing_key: str | None = None
    ) -> bool:
        """Write an item, optionally only if an item with its key already exists.

        Returns:
            False if require_existing_key was given and no item with the key
            exists, True otherwise.

        """
        try:
            self._table(table_name).put_item(
                Item=item, **existence_condition(require_existing_key)
            )
        except ClientError as error:
            if require_existing_key is not None and is_conditional_check_failure(error):
                return False
            raise
        return True

    def put_batch(
        self, table_name: str, items: Sequence[Item], *, key_attributes: Sequence[str]
    ) -> None:
        """Write items with boto3's batch writer, resending unprocessed items."""
        with self._table(table_name).batch_writer(
            overwrite_by_pkeys=list(key_attributes)
        ) as writer:
            for item in items:
                writer.put_item(Item=item)

    def get_item(
        self, table_name: str, key: DynamoDBKey, *, consistent_read: bool = True
    ) -> Item | None:
        response = self._table(table_name).get_item(Key=key, ConsistentRead=consistent_read)
        return response.get("Item")

    def get_batch(
        self, table_name: str, keys: Sequence[DynamoDBKey], *, consistent_read: bool = True
    ) -> list[Item]:
        """Read items by key, re-requesting keys DynamoDB left unprocessed.

        Keys that match no item are omitted from the result.

        Raises:
            UnprocessedKeysError: If keys are still unprocessed after
                max_unprocessed_retries retries.

        """
        items: list[Item] = []
        request_items: dict[str, Any] = {
            table_name: {"Keys": list(keys), "ConsistentRead": consistent_read}
        }
        attempt = 0
        while request_items:
            response = self._resource.batch_get_item(RequestItems=request_items)
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
                time.sleep(delay)
                attempt += 1
        return items

    def delete_item(
        self, table_name: str, key: DynamoDBKey, *, require_existing_key: str | None = None
    ) -> bool:
        """Delete an item, optionally only if it exists.

        Returns:
            False if require_existing_key was given and no item with the key
            exists, True otherwise.

        """
        try:
            self._table(table_name).delete_item(
                Key=key, **existence_condition(require_existing_key)
            )
        except ClientError as error:
            if require_existing_key is not None and is_conditional_check_failure(error):
                return False
            raise
        return True

    def scan(
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
        """Scan the whole table, following pagination until exhausted or limit is reached."""
        table = self._table(table_name)
        scan_kwargs = build_scan_kwargs(
            filter_expression=filter_expression,
            projection=projection,
            index_name=index_name,
            consistent_read=consistent_read,
            page_size=page_size,
        )

        items: list[Item] = []
        while True:
            response = table.scan(**scan_kwargs)
            items.extend(response.get("Items", []))
            last_evaluated_key = response.get("LastEvaluatedKey")
            if last_evaluated_key is None or (limit is not None and len(items) >= limit):
                break
            scan_kwargs["ExclusiveStartKey"] = last_evaluated_key

        return items if limit is None else items[:limit]

    def list_tables(self) -> list[str]:
        paginator = self._resource.meta.client.get_paginator("list_tables")
        names: list[str] = []
        for page in paginator.paginate():
            names.extend(page.get("TableNames", []))
        return names

    def create_table(self, request: dict[str, Any]) -> dict[str, Any]:
        response = self._resource.meta.client.create_table(**request)
        return response  # type: ignore[return-value]

    def delete_table(self, table_name: str) -> dict[str, Any]:
        response = self._resource.meta.client.delete_table(TableName=table_name)
        return response  # type: ignore[return-value]

    def describe_table(self, table_name: str) -> dict[str, Any]:
        response = self._resource.meta.client.describe_table(TableName=table_name)
        return response  # type: ignore[return-value]

    def wait_until_exists(self, table_name: str) -> None:
        self._resource.meta.client.get_waiter("table_exists").wait(TableName=table_name)

    def wait_until_not_exists(self, table_name: str) -> None:
        self._resource.meta.client.get_waiter("table_not_exists").wait(TableName=table_name)


__all__ = [
    "Boto3StoreClient",
    "StoreClient",
    "build_scan_kwargs",
    "existence_condition",
    "is_conditional_check_failure",
    "unprocessed_keys_delay",
]
