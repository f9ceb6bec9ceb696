"""Typed DynamoDB persistence: stores, scan conditions and table lifecycle."""

from dynastore.async_client import AioBoto3StoreClient, AsyncStoreClient
from dynastore.async_store import AsyncDataStore, AsyncTableManager
from dynastore.client import Boto3StoreClient, StoreClient
from dynastore.conditions import ScanCondition, ScanOperator, ScanOptions
from dynastore.config import DynastoreSettings
from dynastore.exceptions import (
    DynastoreError,
    InvalidBatchSizeError,
    InvalidKeySchemaError,
    InvalidScanConditionError,
    InvalidTableDefinitionError,
    ItemNotFoundError,
    MissingKeyValueError,
    OperationError,
    UnprocessedKeysError,
    ValidationError,
)
from dynastore.fields import attr
from dynastore.keys import DynamoDBKey, ItemKey, KeyValue
from dynastore.sync_store import DataStore, TableManager
from dynastore.tables import (
    AttributeDefinition,
    AttributeType,
    CreateTableResult,
    DeleteTableResult,
    KeySchemaElement,
    KeyType,
    TableAlreadyExists,
    TableCreated,
    TableDefinition,
    TableDeleted,
    TableNotPresent,
)

__all__ = [
    "AioBoto3StoreClient",
    "AsyncDataStore",
    "AsyncStoreClient",
    "AsyncTableManager",
    "AttributeDefinition",
    "AttributeType",
    "Boto3StoreClient",
    "CreateTableResult",
    "DataStore",
    "DeleteTableResult",
    "DynamoDBKey",
    "DynastoreError",
    "DynastoreSettings",
    "InvalidBatchSizeError",
    "InvalidKeySchemaError",
    "InvalidScanConditionError",
    "InvalidTableDefinitionError",
    "ItemKey",
    "ItemNotFoundError",
    "KeySchemaElement",
    "KeyType",
    "KeyValue",
    "MissingKeyValueError",
    "OperationError",
    "ScanCondition",
    "ScanOperator",
    "ScanOptions",
    "StoreClient",
    "TableAlreadyExists",
    "TableCreated",
    "TableDefinition",
    "TableDeleted",
    "TableManager",
    "TableNotPresent",
    "UnprocessedKeysError",
    "ValidationError",
    "attr",
]
