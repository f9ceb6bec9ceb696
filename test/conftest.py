"""Shared test fixtures.

This module provides:
- Fake AWS credentials so boto3 and moto never reach real AWS
- Mock store clients for unit tests
"""

from os import environ
from unittest.mock import AsyncMock, MagicMock

from entities import WIDGET_KEY_SCHEMA
from pytest import fixture

# =============================================================================
# AWS Credentials Fixture (session-scoped)
# =============================================================================


@fixture(scope="session", autouse=True)
def aws_credentials() -> None:
    """Set up fake AWS credentials for moto."""
    environ["AWS_ACCESS_KEY_ID"] = "testing"
    environ["AWS_SECRET_ACCESS_KEY"] = "testing"  # noqa: S105
    environ["AWS_SECURITY_TOKEN"] = "testing"  # noqa: S105
    environ["AWS_SESSION_TOKEN"] = "testing"  # noqa: S105
    environ["AWS_DEFAULT_REGION"] = "us-east-1"


# =============================================================================
# Mock clients
# =============================================================================


@fixture
def mock_client() -> MagicMock:
    """A synchronous StoreClient mock whose writes succeed."""
    client = MagicMock()
    client.put_item.return_value = True
    client.delete_item.return_value = True
    client.get_item.return_value = None
    client.get_batch.return_value = []
    client.scan.return_value = []
    client.list_tables.return_value = []
    client.describe_table.return_value = {"Table": {"KeySchema": WIDGET_KEY_SCHEMA}}
    return client


@fixture
def mock_async_client() -> AsyncMock:
    """An asynchronous StoreClient mock whose writes succeed."""
    client = AsyncMock()
    client.put_item.return_value = True
    client.delete_item.return_value = True
    client.get_item.return_value = None
    client.get_batch.return_value = []
    client.scan.return_value = []
    client.list_tables.return_value = []
    client.describe_table.return_value = {"Table": {"KeySchema": WIDGET_KEY_SCHEMA}}
    return client
