"""
Tests for canonical data models.
"""

import pytest

from granite.classifier import StatementKind
from granite.exceptions import BackendError, InvalidConnectionError, UnsupportedDriverError, UnsupportedProviderError
from granite.models import (
    ColumnInfo,
    Connection,
    Driver,
    ListObjectsResult,
    ObjectDetails,
    QueryResult,
    StorageObject,
    StorageProvider,
)


class TestQueryResult:
    """Tests for the one-kind-per-result invariant and payload parsing."""

    def test_rows_payload(self):
        result = QueryResult.from_response(
            {"columns": ["id"], "rows": [{"id": 1}, {"id": 2}]}, StatementKind.READ
        )
        assert result.kind == "rows"
        assert result.columns == ["id"]
        assert result.row_count == 2
        assert result.rows_affected is None

    def test_empty_read_payload_is_empty_result_set(self):
        result = QueryResult.from_response({}, StatementKind.READ)
        assert result.kind == "rows"
        assert result.rows == []
        assert result.columns == []

    def test_columns_derived_from_rows(self):
        result = QueryResult.from_response({"rows": [{"a": 1, "b": 2}]}, StatementKind.READ)
        assert result.columns == ["a", "b"]

    def test_write_payload_spellings(self):
        assert QueryResult.from_response({"rowsAffected": 3}, StatementKind.WRITE).rows_affected == 3
        assert QueryResult.from_response({"rows_affected": 4}, StatementKind.WRITE).rows_affected == 4
        assert QueryResult.from_response(None, StatementKind.WRITE).rows_affected == 0

    def test_error_payload(self):
        result = QueryResult.from_response({"error": "syntax error"}, StatementKind.READ)
        assert result.kind == "error"
        assert not result.ok
        assert result.rows is None
        assert result.to_dict() == {"error": "syntax error"}

    def test_only_one_kind_may_be_populated(self):
        with pytest.raises(ValueError):
            QueryResult(rows=[], rows_affected=1)
        with pytest.raises(ValueError):
            QueryResult(rows_affected=1, error="boom")

    def test_to_dict(self):
        assert QueryResult.affected(2).to_dict() == {"rowsAffected": 2}
        assert QueryResult.rows_result(["a"], [{"a": 1}]).to_dict() == {"columns": ["a"], "rows": [{"a": 1}]}

    @pytest.mark.parametrize("payload", [
        ["not", "an", "object"],
        "rows",
        {"rows": {"id": 1}},
        {"rows": [["id", 1]]},
        {"rows": [], "columns": "id"},
    ])
    def test_malformed_read_payload_is_a_backend_error(self, payload):
        with pytest.raises(BackendError):
            QueryResult.from_response(payload, StatementKind.READ)

    def test_malformed_write_payload_is_a_backend_error(self):
        with pytest.raises(BackendError):
            QueryResult.from_response([1], StatementKind.WRITE)
        with pytest.raises(BackendError):
            QueryResult.from_response({"rowsAffected": "many"}, StatementKind.WRITE)


class TestEnums:
    """Tests for driver and provider identifiers."""

    def test_driver_parse(self):
        assert Driver.parse("SQLServer") == Driver.SQLSERVER
        with pytest.raises(UnsupportedDriverError):
            Driver.parse("mongodb")

    def test_provider_parse(self):
        assert StorageProvider.parse("azure-blob") == StorageProvider.AZURE_BLOB
        with pytest.raises(UnsupportedProviderError):
            StorageProvider.parse("gcs")


class TestConnection:
    """Tests for the SQL-or-storage connection record."""

    def test_sql_connection(self):
        conn = Connection.from_dict({
            "id": "pg",
            "name": "Postgres",
            "sql": {"driver": "postgres", "dsn": "postgres://u:p@h/db"},
            "createdAt": "2024-01-01T00:00:00Z",
        })
        assert conn.is_sql
        assert conn.driver == Driver.POSTGRES
        assert conn.provider is None
        assert conn.to_dict()["sql"] == {"driver": "postgres", "dsn": "postgres://u:p@h/db"}

    def test_s3_connection(self):
        conn = Connection.from_dict({
            "id": "s3",
            "name": "Bucket",
            "amazonS3": {"region": "us-east-1", "accessKeyId": "AK", "secretAccessKey": "SK"},
        })
        assert conn.is_storage
        assert conn.provider == StorageProvider.S3
        assert conn.amazon_s3.access_key_id == "AK"

    def test_azure_connection_requires_a_credential(self):
        with pytest.raises(InvalidConnectionError):
            Connection.from_dict({"id": "az", "name": "Blob", "azureBlob": {"accountName": "acct"}})

    def test_exactly_one_configuration(self):
        with pytest.raises(InvalidConnectionError):
            Connection.from_dict({"id": "x", "name": "none"})
        with pytest.raises(InvalidConnectionError):
            Connection.from_dict({
                "id": "x",
                "name": "both",
                "sql": {"driver": "sqlite", "dsn": "file:app.db"},
                "amazonS3": {"region": "r", "accessKeyId": "a", "secretAccessKey": "s"},
            })

    def test_unknown_driver_is_rejected(self):
        with pytest.raises(UnsupportedDriverError):
            Connection.from_dict({"id": "x", "name": "x", "sql": {"driver": "db2", "dsn": "x"}})


class TestStorageModels:
    """Tests for listing and object metadata shapes."""

    def test_folders_from_prefixes(self):
        page = ListObjectsResult.from_dict({
            "objects": [{"key": "photos/a.jpg", "size": 5}],
            "prefixes": ["photos/vacation/"],
            "isTruncated": False,
        })
        folder = page.folders()[0]
        assert folder == StorageObject(key="photos/vacation/", name="vacation", size=0, is_folder=True)
        assert [e.key for e in page.entries()] == ["photos/vacation/", "photos/a.jpg"]
        assert page.continuation_token is None

    def test_object_name_and_folder_marker_fallbacks(self):
        marker = StorageObject.from_dict({"key": "docs/"})
        assert marker.is_folder
        assert marker.name == "docs"
        assert StorageObject.from_dict({"key": "docs/a.txt"}).name == "a.txt"

    def test_object_details_provider_fields(self):
        s3 = ObjectDetails.from_dict({"key": "a", "storageClass": "STANDARD", "versionId": "v1"})
        assert s3.provider_fields() == {"storageClass": "STANDARD", "versionId": "v1"}
        azure = ObjectDetails.from_dict({"key": "a", "accessTier": "Hot", "blobType": "BlockBlob"})
        assert azure.provider_fields() == {"accessTier": "Hot", "blobType": "BlockBlob"}

    def test_column_info_wire_keys(self):
        column = ColumnInfo.from_dict({"name": "id", "type": "int", "nullable": False, "primaryKey": True})
        assert column.primary_key
        assert column.to_dict()["primaryKey"] is True
