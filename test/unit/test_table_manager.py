"""Unit tests for TableManager against a mocked StoreClient."""

from unittest.mock import MagicMock

from dynastore.sync_store import TableManager
from dynastore.tables import (
    TableAlreadyExists,
    TableCreated,
    TableDefinition,
    TableDeleted,
    TableNotPresent,
)


class TestCreateTable:
    """Test idempotent table creation."""

    def test_creates_missing_table(self, mock_client: MagicMock) -> None:
        mock_client.create_table.return_value = {"TableDescription": {"TableName": "Widgets"}}
        definition = TableDefinition.for_keys("Widgets", hash_key="Id")

        result = TableManager(mock_client).create_table(definition)

        assert isinstance(result, TableCreated)
        assert result.changed
        assert result.response == {"TableDescription": {"TableName": "Widgets"}}
        mock_client.create_table.assert_called_once_with(definition.to_create_table_request())

    def test_existing_table_is_left_alone(self, mock_client: MagicMock) -> None:
        mock_client.list_tables.return_value = ["Other", "Widgets"]

        result = TableManager(mock_client).create_table(
            TableDefinition.for_keys("Widgets", hash_key="Id")
        )

        assert result == TableAlreadyExists(table_name="Widgets")
        assert not result.changed
        mock_client.create_table.assert_not_called()


class TestDeleteTable:
    """Test idempotent table deletion."""

    def test_deletes_existing_table(self, mock_client: MagicMock) -> None:
        mock_client.list_tables.return_value = ["Widgets"]
        mock_client.delete_table.return_value = {"TableDescription": {"TableName": "Widgets"}}

        result = TableManager(mock_client).delete_table("Widgets")

        assert isinstance(result, TableDeleted)
        assert result.changed
        mock_client.delete_table.assert_called_once_with("Widgets")

    def test_missing_table_is_not_an_error(self, mock_client: MagicMock) -> None:
        result = TableManager(mock_client).delete_table("Widgets")

        assert result == TableNotPresent(table_name="Widgets")
        mock_client.delete_table.assert_not_called()


class TestTableQueries:
    """Test table existence, description and waiters."""

    def test_table_exists(self, mock_client: MagicMock) -> None:
        mock_client.list_tables.return_value = ["Widgets"]
        manager = TableManager(mock_client)

        assert manager.table_exists("Widgets")
        assert not manager.table_exists("Orders")

    def test_describe_table_returns_table_description(self, mock_client: MagicMock) -> None:
        description = TableManager(mock_client).describe_table("Widgets")

        assert description == {"KeySchema": [{"AttributeName": "Id", "KeyType": "HASH"}]}

    def test_waiters_delegate_to_client(self, mock_client: MagicMock) -> None:
        manager = TableManager(mock_client)

        manager.wait_until_exists("Widgets")
        manager.wait_until_not_exists("Widgets")

        mock_client.wait_until_exists.assert_called_once_with("Widgets")
        mock_client.wait_until_not_exists.assert_called_once_with("Widgets")
