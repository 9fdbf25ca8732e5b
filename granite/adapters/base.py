"""
Base Adapter Interface for Granite

All dialect adapters must implement this interface so the rest of the client
can treat every driver the same way.

DESIGN PRINCIPLES:
-----------------
1. Adapters never execute anything - they generate SQL text and parse rows
2. Identifiers and literals are quoted by the adapter, per dialect
3. Parsed output is canonical (ColumnInfo, plain string lists)
4. Unsupported capabilities are reported as None, never as an exception
5. Adapters are stateless - one shared instance per driver
"""

import re
from abc import ABC, abstractmethod
from typing import Any, Dict, FrozenSet, List, Optional

from granite.models import ColumnInfo, Driver, TableView


Row = Dict[str, Any]

ALL_TABLE_VIEWS: FrozenSet[TableView] = frozenset(TableView)

_TRUE_STRINGS = {"1", "t", "true", "y", "yes", "pri", "on"}

_CREDENTIALS = re.compile(r"^((?:[A-Za-z][\w+.-]*://)?[^:/@\s]*):[^@\s]*@")


def row_value(row: Row, *keys: str, fallback_first: bool = True) -> Any:
    """
    Look a value up by the first matching key.

    Exact keys win, then a case-insensitive match (Oracle upper-cases column
    aliases). With fallback_first the first value of the row is returned when
    nothing matches.
    """
    for key in keys:
        if key in row and row[key] is not None:
            return row[key]

    lowered = {str(k).lower(): v for k, v in row.items()}
    for key in keys:
        value = lowered.get(key.lower())
        if value is not None:
            return value

    if fallback_first and row:
        return next(iter(row.values()))
    return None


def as_bool(value: Any) -> bool:
    """Interpret driver-specific truthiness (1/0, 't'/'f', 'YES'/'NO', ...)."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    return str(value).strip().lower() in _TRUE_STRINGS


def mask_dsn(dsn: str) -> str:
    """Hide the password of a DSN (URL or user:pass@tcp(...) form) for logging."""
    return _CREDENTIALS.sub(r"\1:***@", dsn or "")


class BaseAdapter(ABC):
    """
    Abstract base class for dialect adapters.

    Each adapter must implement:
    - list_databases_query() / list_tables_query() / list_columns_query()
    - select_all_query(): dialect-correct row limiting
    - create_database_query(): None when the driver cannot create databases
    - modify_dsn_for_database(): retarget a DSN without a new stored connection
    - parse_database_names() / parse_table_names() / parse_columns()

    Optional (None means "not supported for this driver"):
    - list_constraints_query(), list_foreign_keys_query(), list_indexes_query()

    Usage:
        adapter = get_adapter("postgres")
        sql = adapter.select_all_query("orders", limit=50)
        columns = adapter.parse_columns(result.rows)
    """

    # Driver identifier
    DRIVER: Driver = None

    # Views this driver can show for a table
    TABLE_VIEWS: FrozenSet[TableView] = frozenset({TableView.RECORDS, TableView.COLUMNS})

    # Identifier quote characters (open, close); doubled close char escapes
    IDENTIFIER_QUOTES = ('"', '"')

    DEFAULT_LIMIT = 100

    @property
    def driver(self) -> Driver:
        return self.DRIVER

    # =========================================================================
    # Quoting
    # =========================================================================

    def quote_identifier(self, name: str) -> str:
        """Quote a table or column name for this dialect."""
        open_char, close_char = self.IDENTIFIER_QUOTES
        escaped = str(name).replace(close_char, close_char * 2)
        return f"{open_char}{escaped}{close_char}"

    def quote_literal(self, value: str) -> str:
        """Quote a string literal (single quotes, doubled to escape)."""
        escaped = str(value).replace("'", "''")
        return f"'{escaped}'"

    # =========================================================================
    # Query generation
    # =========================================================================

    @abstractmethod
    def list_databases_query(self) -> str:
        pass

    @abstractmethod
    def list_tables_query(self) -> str:
        pass

    @abstractmethod
    def list_columns_query(self, table: str) -> str:
        pass

    @abstractmethod
    def select_all_query(self, table: str, limit: int = DEFAULT_LIMIT) -> str:
        pass

    @abstractmethod
    def create_database_query(self, name: str) -> Optional[str]:
        """Return CREATE DATABASE SQL, or None if unsupported."""
        pass

    def list_constraints_query(self, table: str) -> Optional[str]:
        return None

    def list_foreign_keys_query(self, table: str) -> Optional[str]:
        return None

    def list_indexes_query(self, table: str) -> Optional[str]:
        return None

    def supported_table_views(self) -> FrozenSet[TableView]:
        return self.TABLE_VIEWS

    def supports_create_database(self) -> bool:
        return self.create_database_query("x") is not None

    def table_view_query(self, table: str, view: TableView) -> Optional[str]:
        """
        Query for one table view, or None if the driver lacks it.

        Args:
            table: Table name (unquoted)
            view: TableView or its string value
        """
        view = TableView(view)
        if view not in self.supported_table_views():
            return None

        if view == TableView.RECORDS:
            return self.select_all_query(table)
        if view == TableView.COLUMNS:
            return self.list_columns_query(table)
        if view == TableView.CONSTRAINTS:
            return self.list_constraints_query(table)
        if view == TableView.FOREIGN_KEYS:
            return self.list_foreign_keys_query(table)
        if view == TableView.INDEXES:
            return self.list_indexes_query(table)
        return None

    # =========================================================================
    # DSN handling
    # =========================================================================

    def modify_dsn_for_database(self, dsn: str, database: str) -> str:
        """
        Rewrite a DSN to target another database.

        Default is a no-op for drivers where the DSN fixes the database.
        """
        return dsn

    # =========================================================================
    # Result parsing
    # =========================================================================

    def parse_database_names(self, rows: List[Row]) -> List[str]:
        return [str(row_value(row, "name")) for row in rows]

    def parse_table_names(self, rows: List[Row], database: Optional[str] = None) -> List[str]:
        return [str(row_value(row, "name")) for row in rows]

    def parse_columns(self, rows: List[Row]) -> List[ColumnInfo]:
        """Default shape: name / type / nullable / primary_key."""
        return [
            ColumnInfo(
                name=str(row_value(row, "name", "column_name")),
                type=str(row_value(row, "type", "data_type", fallback_first=False) or ""),
                nullable=as_bool(row_value(row, "nullable", fallback_first=False)),
                primary_key=as_bool(row_value(row, "primary_key", fallback_first=False))
            )
            for row in rows
        ]

    def get_adapter_info(self) -> Dict[str, Any]:
        """Get information about this adapter."""
        return {
            "driver": self.DRIVER.value,
            "table_views": sorted(v.value for v in self.supported_table_views()),
            "create_database": self.supports_create_database(),
        }

    def __repr__(self):
        return f"<{type(self).__name__} driver={self.DRIVER.value}>"
