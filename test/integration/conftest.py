from collections.abc import AsyncGenerator, Generator

import boto3
from moto import mock_aws
from moto.server import ThreadedMotoServer
from mypy_boto3_dynamodb.service_resource import DynamoDBServiceResource
from pytest import fixture
from pytest_asyncio import fixture as async_fixture

from dynastore.async_client import AioBoto3StoreClient
from dynastore.async_store import AsyncTableManager
from dynastore.client import Boto3StoreClient
from dynastore.config import DynastoreSettings
from dynastore.sync_store import TableManager
from dynastore.tables import AttributeType, TableDefinition

WIDGETS = TableDefinition.for_keys("Widgets", hash_key="Id")
ORDERS = TableDefinition.for_keys(
    "Orders", hash_key="customer_id", range_key="order_id", range_key_type=AttributeType.STRING
)
BLOBS = TableDefinition.for_keys("Blobs", hash_key="Digest", hash_key_type=AttributeType.BINARY)


@fixture
def dynamodb(aws_credentials: None) -> Generator[DynamoDBServiceResource, None, None]:
    with mock_aws():
        yield boto3.resource("dynamodb", region_name="us-east-1")


@fixture
def client(dynamodb: DynamoDBServiceResource) -> Boto3StoreClient:
    return Boto3StoreClient(dynamodb)


@fixture
def manager(client: Boto3StoreClient) -> TableManager:
    return TableManager(client)


@fixture
def widgets_table(manager: TableManager) -> str:
    manager.create_table(WIDGETS)
    manager.wait_until_exists(WIDGETS.table_name)
    return WIDGETS.table_name


@fixture
def orders_table(manager: TableManager) -> str:
    manager.create_table(ORDERS)
    manager.wait_until_exists(ORDERS.table_name)
    return ORDERS.table_name


@fixture
def blobs_table(manager: TableManager) -> str:
    manager.create_table(BLOBS)
    manager.wait_until_exists(BLOBS.table_name)
    return BLOBS.table_name


# =============================================================================
# Async fixtures (aioboto3 against a moto server)
# =============================================================================


@fixture(scope="session")
def moto_endpoint(aws_credentials: None) -> Generator[str, None, None]:
    server = ThreadedMotoServer(ip_address="127.0.0.1", port=0, verbose=False)
    server.start()
    host, port = server.get_host_and_port()
    yield f"http://{host}:{port}"
    server.stop()


@async_fixture
async def async_client(moto_endpoint: str) -> AsyncGenerator[AioBoto3StoreClient, None]:
    settings = DynastoreSettings(region_name="us-east-1", endpoint_url=moto_endpoint)
    async with settings.async_resource() as resource:
        yield AioBoto3StoreClient(resource)


@async_fixture
async def async_manager(async_client: AioBoto3StoreClient) -> AsyncTableManager:
    return AsyncTableManager(async_client)


@async_fixture
async def async_widgets_table(async_manager: AsyncTableManager) -> AsyncGenerator[str, None]:
    await async_manager.create_table(WIDGETS)
    await async_manager.wait_until_exists(WIDGETS.table_name)
    yield WIDGETS.table_name
    await async_manager.delete_table(WIDGETS.table_name)


@async_fixture
async def async_blobs_table(async_manager: AsyncTableManager) -> AsyncGenerator[str, None]:
    await async_manager.create_table(BLOBS)
    await async_manager.wait_until_exists(BLOBS.table_name)
    yield BLOBS.table_name
    await async_manager.delete_table(BLOBS.table_name)
