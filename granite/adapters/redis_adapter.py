"""
Redis Adapter for Granite

Redis has no SQL catalog. The adapter speaks commands instead: "tables" are
keys, a "table" read is KEYS <pattern> or GET <key>, and databases are the
numbered keyspaces 0-15.

DSN format:
    redis://[:password@]host[:port][/db]
"""

from typing import List, Optional
from urllib.parse import urlsplit, urlunsplit

from granite.adapters.base import BaseAdapter, Row, row_value
from granite.models import ColumnInfo, Driver, TableView

# Sentinel command for catalog listings; Redis has nothing to enumerate
KEYS_ALL = "KEYS *"

DATABASE_COUNT = 16

_GLOB_CHARS = set("*?[")


class RedisAdapter(BaseAdapter):
    """Adapter for Redis, where a table is a key (or a key pattern)."""

    DRIVER = Driver.REDIS
    TABLE_VIEWS = frozenset({TableView.RECORDS})

    def quote_identifier(self, name: str) -> str:
        # Commands take keys verbatim
        return str(name)

    def list_databases_query(self) -> str:
        return KEYS_ALL

    def list_tables_query(self) -> str:
        return KEYS_ALL

    def list_columns_query(self, table: str) -> str:
        return KEYS_ALL

    def select_all_query(self, table: str, limit: int = BaseAdapter.DEFAULT_LIMIT) -> str:
        """KEYS for patterns, GET for a single key. The limit does not apply."""
        if not table or table == "*":
            return KEYS_ALL
        if _GLOB_CHARS.intersection(table):
            return f"KEYS {table}"
        return f"GET {table}"

    def create_database_query(self, name: str) -> Optional[str]:
        return None

    def modify_dsn_for_database(self, dsn: str, database: str) -> str:
        parts = urlsplit(dsn)
        return urlunsplit(parts._replace(path=f"/{database}"))

    def parse_database_names(self, rows: List[Row]) -> List[str]:
        return [str(i) for i in range(DATABASE_COUNT)]

    def parse_table_names(self, rows: List[Row], database: Optional[str] = None) -> List[str]:
        names = [row_value(row, "key", fallback_first=False) for row in rows]
        return [str(name) for name in names if name]

    def parse_columns(self, rows: List[Row]) -> List[ColumnInfo]:
        return [
            ColumnInfo(name="key", type="string", nullable=False, primary_key=True),
            ColumnInfo(name="value", type="string", nullable=True, primary_key=False),
        ]
