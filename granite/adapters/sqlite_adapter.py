"""
SQLite Adapter for Granite

SQLite is file-based: one connection is one database, so there is nothing to
list, create or retarget. Column and index metadata come from PRAGMAs.
"""

from typing import List, Optional

from granite.adapters.base import BaseAdapter, Row, as_bool, row_value
from granite.models import ColumnInfo, Driver, TableView


class SQLiteAdapter(BaseAdapter):
    """
    Adapter for SQLite.

    PRAGMA table_info returns {cid, name, type, notnull, dflt_value, pk};
    pk is the 1-based position in the primary key, 0 for other columns.
    """

    DRIVER = Driver.SQLITE
    TABLE_VIEWS = frozenset({TableView.RECORDS, TableView.COLUMNS, TableView.INDEXES})

    def list_databases_query(self) -> str:
        return "SELECT 'main' AS name"

    def list_tables_query(self) -> str:
        return "SELECT name FROM sqlite_master WHERE type = 'table' AND name NOT LIKE 'sqlite_%' ORDER BY name"

    def list_columns_query(self, table: str) -> str:
        return f"PRAGMA table_info({self.quote_identifier(table)})"

    def select_all_query(self, table: str, limit: int = BaseAdapter.DEFAULT_LIMIT) -> str:
        return f"SELECT * FROM {self.quote_identifier(table)} LIMIT {int(limit)}"

    def create_database_query(self, name: str) -> Optional[str]:
        return None

    def list_indexes_query(self, table: str) -> Optional[str]:
        return f"PRAGMA index_list({self.quote_identifier(table)})"

    def parse_columns(self, rows: List[Row]) -> List[ColumnInfo]:
        return [
            ColumnInfo(
                name=str(row_value(row, "name")),
                type=str(row_value(row, "type", fallback_first=False) or "TEXT"),
                nullable=not as_bool(row_value(row, "notnull", fallback_first=False)),
                primary_key=_pk_position(row_value(row, "pk", fallback_first=False)) > 0
            )
            for row in rows
        ]


def _pk_position(value) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 1 if as_bool(value) else 0
