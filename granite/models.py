"""
Granite Data Models

Canonical shapes produced by every adapter and client call, independent of
the SQL driver or storage provider behind them. Wire dictionaries use the
backend's camelCase keys; attributes are snake_case.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .classifier import StatementKind
from .exceptions import BackendError, InvalidConnectionError, UnsupportedDriverError, UnsupportedProviderError


class Driver(str, Enum):
    """SQL (and key-value) drivers with a dialect adapter."""
    POSTGRES = "postgres"
    MYSQL = "mysql"
    SQLITE = "sqlite"
    SQLSERVER = "sqlserver"
    ORACLE = "oracle"
    REDIS = "redis"

    @classmethod
    def parse(cls, value: Any) -> "Driver":
        """Resolve a driver identifier, failing loudly on unknown values."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            available = ", ".join(d.value for d in cls)
            raise UnsupportedDriverError(f"Unsupported driver: {value}. Available: {available}")


class StorageProvider(str, Enum):
    """Object storage providers reachable through the backend."""
    S3 = "s3"
    AZURE_BLOB = "azure-blob"

    @classmethod
    def parse(cls, value: Any) -> "StorageProvider":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            available = ", ".join(p.value for p in cls)
            raise UnsupportedProviderError(f"Unsupported storage provider: {value}. Available: {available}")


class TableView(str, Enum):
    """Per-table views a driver may support."""
    RECORDS = "records"
    COLUMNS = "columns"
    CONSTRAINTS = "constraints"
    FOREIGN_KEYS = "foreignKeys"
    INDEXES = "indexes"


# =============================================================================
# SQL
# =============================================================================

@dataclass
class ColumnInfo:
    """A column, normalized across drivers."""
    name: str
    type: str
    nullable: bool = False
    primary_key: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "ColumnInfo":
        return cls(
            name=data["name"],
            type=data.get("type", ""),
            nullable=bool(data.get("nullable", False)),
            primary_key=bool(data.get("primaryKey", False))
        )

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "type": self.type,
            "nullable": self.nullable,
            "primaryKey": self.primary_key,
        }


@dataclass
class QueryResult:
    """
    Result of a SQL round-trip.

    Exactly one of (columns + rows), rows_affected or error is populated.
    Use the constructors rather than passing fields directly.
    """
    columns: Optional[List[str]] = None
    rows: Optional[List[Dict[str, Any]]] = None
    rows_affected: Optional[int] = None
    error: Optional[str] = None

    def __post_init__(self):
        populated = [
            self.columns is not None or self.rows is not None,
            self.rows_affected is not None,
            self.error is not None,
        ]
        if sum(populated) > 1:
            raise ValueError("QueryResult carries exactly one of rows, rows_affected or error")

    @classmethod
    def rows_result(cls, columns: List[str], rows: List[Dict[str, Any]]) -> "QueryResult":
        return cls(columns=list(columns), rows=list(rows))

    @classmethod
    def affected(cls, count: int) -> "QueryResult":
        return cls(rows_affected=int(count))

    @classmethod
    def failed(cls, message: str) -> "QueryResult":
        return cls(error=message)

    @classmethod
    def from_response(cls, data: Any, kind: StatementKind) -> "QueryResult":
        """
        Build a result from a backend payload.

        The backend omits empty fields, so a read payload without rows is an
        empty result set and a write payload without a count affected nothing.

        Raises:
            BackendError: If the payload is not shaped like a SQL response
        """
        data = data or {}
        if not isinstance(data, dict):
            raise BackendError(
                "Backend returned an unexpected payload",
                details={"payload_type": type(data).__name__}
            )
        if data.get("error"):
            return cls.failed(str(data["error"]))

        if kind == StatementKind.READ:
            rows = data.get("rows") or []
            if not isinstance(rows, list) or not all(isinstance(row, dict) for row in rows):
                raise BackendError("Backend returned rows that are not records")
            columns = data.get("columns")
            if columns is None:
                columns = list(rows[0].keys()) if rows else []
            elif not isinstance(columns, list):
                raise BackendError("Backend returned columns that are not a list")
            return cls.rows_result(columns, rows)

        count = data.get("rowsAffected", data.get("rows_affected"))
        try:
            return cls.affected(count or 0)
        except (TypeError, ValueError):
            raise BackendError(f"Backend returned a non-numeric affected-row count: {count!r}")

    @property
    def kind(self) -> str:
        if self.error is not None:
            return "error"
        if self.rows_affected is not None:
            return "affected"
        return "rows"

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def row_count(self) -> int:
        return len(self.rows or [])

    def to_dict(self) -> dict:
        if self.kind == "error":
            return {"error": self.error}
        if self.kind == "affected":
            return {"rowsAffected": self.rows_affected}
        return {"columns": self.columns or [], "rows": self.rows or []}


@dataclass
class SchemaInfo:
    """Tables of one database and the columns fetched for them."""
    tables: List[str] = field(default_factory=list)
    columns: Dict[str, List[ColumnInfo]] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "tables": list(self.tables),
            "columns": {
                table: [c.to_dict() for c in cols]
                for table, cols in self.columns.items()
            },
        }


# =============================================================================
# Connections
# =============================================================================

@dataclass(frozen=True)
class SQLConfig:
    driver: Driver
    dsn: str

    def __post_init__(self):
        object.__setattr__(self, "driver", Driver.parse(self.driver))
        if not self.dsn:
            raise InvalidConnectionError("Connection string is required")

    @classmethod
    def from_dict(cls, data: dict) -> "SQLConfig":
        return cls(driver=data.get("driver", ""), dsn=data.get("dsn", ""))

    def to_dict(self) -> dict:
        return {"driver": self.driver.value, "dsn": self.dsn}


@dataclass(frozen=True)
class S3Config:
    region: str
    access_key_id: str
    secret_access_key: str
    endpoint: Optional[str] = None
    container: Optional[str] = None

    def __post_init__(self):
        if not self.access_key_id or not self.secret_access_key:
            raise InvalidConnectionError("Access Key ID and Secret Access Key are required")

    @classmethod
    def from_dict(cls, data: dict) -> "S3Config":
        return cls(
            region=data.get("region", ""),
            access_key_id=data.get("accessKeyId", ""),
            secret_access_key=data.get("secretAccessKey", ""),
            endpoint=data.get("endpoint") or None,
            container=data.get("container") or None
        )

    def to_dict(self) -> dict:
        result = {
            "region": self.region,
            "accessKeyId": self.access_key_id,
            "secretAccessKey": self.secret_access_key,
        }
        if self.endpoint:
            result["endpoint"] = self.endpoint
        if self.container:
            result["container"] = self.container
        return result


@dataclass(frozen=True)
class AzureBlobConfig:
    account_name: str
    account_key: Optional[str] = None
    sas_token: Optional[str] = None
    connection_string: Optional[str] = None
    container: Optional[str] = None

    def __post_init__(self):
        if not self.account_name:
            raise InvalidConnectionError("Account Name is required")
        if not (self.account_key or self.sas_token or self.connection_string):
            raise InvalidConnectionError("Either Account Key, SAS token or Connection String is required")

    @classmethod
    def from_dict(cls, data: dict) -> "AzureBlobConfig":
        return cls(
            account_name=data.get("accountName", ""),
            account_key=data.get("accountKey") or None,
            sas_token=data.get("sasToken") or None,
            connection_string=data.get("connectionString") or None,
            container=data.get("container") or None
        )

    def to_dict(self) -> dict:
        result = {"accountName": self.account_name}
        if self.account_key:
            result["accountKey"] = self.account_key
        if self.sas_token:
            result["sasToken"] = self.sas_token
        if self.connection_string:
            result["connectionString"] = self.connection_string
        if self.container:
            result["container"] = self.container
        return result


@dataclass(frozen=True)
class Connection:
    """
    A saved connection: exactly one of a SQL or a storage configuration.

    Records are persisted by the backend; the client only reads them.
    """
    id: str
    name: str
    sql: Optional[SQLConfig] = None
    amazon_s3: Optional[S3Config] = None
    azure_blob: Optional[AzureBlobConfig] = None
    created_at: Optional[str] = None

    def __post_init__(self):
        configured = [c for c in (self.sql, self.amazon_s3, self.azure_blob) if c is not None]
        if len(configured) != 1:
            raise InvalidConnectionError(
                f"Connection {self.id!r} must have exactly one of sql, amazonS3 or azureBlob "
                f"(found {len(configured)})"
            )

    @classmethod
    def from_dict(cls, data: dict) -> "Connection":
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            sql=SQLConfig.from_dict(data["sql"]) if data.get("sql") else None,
            amazon_s3=S3Config.from_dict(data["amazonS3"]) if data.get("amazonS3") else None,
            azure_blob=AzureBlobConfig.from_dict(data["azureBlob"]) if data.get("azureBlob") else None,
            created_at=data.get("createdAt")
        )

    @property
    def is_sql(self) -> bool:
        return self.sql is not None

    @property
    def is_storage(self) -> bool:
        return self.sql is None

    @property
    def driver(self) -> Optional[Driver]:
        return self.sql.driver if self.sql else None

    @property
    def provider(self) -> Optional[StorageProvider]:
        if self.amazon_s3 is not None:
            return StorageProvider.S3
        if self.azure_blob is not None:
            return StorageProvider.AZURE_BLOB
        return None

    def to_dict(self) -> dict:
        result = {"id": self.id, "name": self.name}
        if self.sql:
            result["sql"] = self.sql.to_dict()
        if self.amazon_s3:
            result["amazonS3"] = self.amazon_s3.to_dict()
        if self.azure_blob:
            result["azureBlob"] = self.azure_blob.to_dict()
        if self.created_at:
            result["createdAt"] = self.created_at
        return result


# =============================================================================
# Object storage
# =============================================================================

def _name_from_key(key: str) -> str:
    return key.rstrip("/").rsplit("/", 1)[-1] or key


@dataclass
class Container:
    """A bucket (S3) or container (Azure)."""
    name: str
    created_at: Optional[str] = None
    region: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "Container":
        return cls(
            name=data["name"],
            created_at=data.get("createdAt"),
            region=data.get("region")
        )


@dataclass
class StorageObject:
    """A file, an explicit folder marker, or a synthetic folder entry."""
    key: str
    name: str
    size: int = 0
    last_modified: str = ""
    etag: Optional[str] = None
    content_type: Optional[str] = None
    is_folder: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "StorageObject":
        key = data["key"]
        return cls(
            key=key,
            name=data.get("name") or _name_from_key(key),
            size=int(data.get("size") or 0),
            last_modified=data.get("lastModified") or "",
            etag=data.get("etag"),
            content_type=data.get("contentType"),
            is_folder=bool(data.get("isFolder", key.endswith("/")))
        )

    @classmethod
    def folder(cls, prefix: str) -> "StorageObject":
        return cls(key=prefix, name=_name_from_key(prefix), is_folder=True)

    def to_dict(self) -> dict:
        result = {
            "key": self.key,
            "name": self.name,
            "size": self.size,
            "lastModified": self.last_modified,
            "isFolder": self.is_folder,
        }
        if self.etag is not None:
            result["etag"] = self.etag
        if self.content_type is not None:
            result["contentType"] = self.content_type
        return result


@dataclass
class ListObjectsResult:
    """
    One page of a listing.

    prefixes are the folders one level below the requested prefix; objects
    are the files at that level. With an empty delimiter prefixes is empty
    and objects holds everything under the prefix.
    """
    objects: List[StorageObject] = field(default_factory=list)
    prefixes: List[str] = field(default_factory=list)
    is_truncated: bool = False
    continuation_token: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "ListObjectsResult":
        return cls(
            objects=[StorageObject.from_dict(o) for o in (data.get("objects") or [])],
            prefixes=list(data.get("prefixes") or []),
            is_truncated=bool(data.get("isTruncated", False)),
            continuation_token=data.get("continuationToken") or None
        )

    def keys(self) -> List[str]:
        return [o.key for o in self.objects]

    def folders(self) -> List[StorageObject]:
        """Synthetic folder entries derived from the common prefixes."""
        return [StorageObject.folder(p) for p in self.prefixes]

    def entries(self) -> List[StorageObject]:
        """Folders first, then files, as a browser would show them."""
        return self.folders() + list(self.objects)


@dataclass
class ObjectDetails:
    """Full metadata of a single object, including provider-specific fields."""
    key: str
    size: int = 0
    last_modified: str = ""
    etag: Optional[str] = None
    content_type: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)
    storage_class: Optional[str] = None
    # S3
    version_id: Optional[str] = None
    # Azure
    access_tier: Optional[str] = None
    blob_type: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "ObjectDetails":
        return cls(
            key=data["key"],
            size=int(data.get("size") or 0),
            last_modified=data.get("lastModified") or "",
            etag=data.get("etag"),
            content_type=data.get("contentType"),
            metadata=dict(data.get("metadata") or {}),
            storage_class=data.get("storageClass"),
            version_id=data.get("versionId"),
            access_tier=data.get("accessTier"),
            blob_type=data.get("blobType")
        )

    def provider_fields(self) -> Dict[str, str]:
        """Provider-specific fields that are set."""
        fields = {
            "storageClass": self.storage_class,
            "versionId": self.version_id,
            "accessTier": self.access_tier,
            "blobType": self.blob_type,
        }
        return {k: v for k, v in fields.items() if v is not None}
