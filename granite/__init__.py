"""
Granite Python Client

Client for the Granite backend: SQL across PostgreSQL, MySQL, SQLite,
SQL Server, Oracle and Redis, and object storage on S3 and Azure Blob.

Example:
    import asyncio
    from granite import GraniteClient, SQLClient, StorageClient

    async def main():
        async with GraniteClient(url="http://localhost:7777") as client:
            sql = SQLClient(client)
            result = await sql.execute_sql("my-postgres", "SELECT * FROM orders")
            print(result.rows)

            storage = StorageClient(client, "my-s3")
            await storage.delete_prefix("photos-bucket", "2023/")

    asyncio.run(main())
"""

__version__ = "1.0.0"

from .adapters import get_adapter, list_adapters, supports_create_database
from .cancellation import CancellationToken
from .classifier import StatementKind, classify, is_read_query, split_statements
from .client import GraniteClient
from .config import Settings, settings
from .exceptions import (
    GraniteError,
    ConfigurationError,
    UnsupportedDriverError,
    UnsupportedProviderError,
    InvalidConnectionError,
    InvalidPrefixError,
    CapabilityNotSupportedError,
    BackendError,
    NotFoundError,
    ConnectionError,
    TimeoutError,
    OperationCancelledError
)
from .models import (
    ColumnInfo,
    Connection,
    Container,
    Driver,
    ListObjectsResult,
    ObjectDetails,
    QueryResult,
    SchemaInfo,
    StorageObject,
    StorageProvider,
    TableView
)
from .schema_introspection import SchemaIntrospector, build_schema
from .sql import SQLClient
from .storage import StorageClient

__all__ = [
    "GraniteClient",
    "SQLClient",
    "StorageClient",
    "SchemaIntrospector",
    "build_schema",
    "CancellationToken",
    "Settings",
    "settings",
    # Adapters
    "get_adapter",
    "list_adapters",
    "supports_create_database",
    # Classification
    "StatementKind",
    "classify",
    "is_read_query",
    "split_statements",
    # Models
    "ColumnInfo",
    "Connection",
    "Container",
    "Driver",
    "ListObjectsResult",
    "ObjectDetails",
    "QueryResult",
    "SchemaInfo",
    "StorageObject",
    "StorageProvider",
    "TableView",
    # Exceptions
    "GraniteError",
    "ConfigurationError",
    "UnsupportedDriverError",
    "UnsupportedProviderError",
    "InvalidConnectionError",
    "InvalidPrefixError",
    "CapabilityNotSupportedError",
    "BackendError",
    "NotFoundError",
    "ConnectionError",
    "TimeoutError",
    "OperationCancelledError",
]
