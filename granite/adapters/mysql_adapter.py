"""
MySQL Adapter for Granite

Also covers MariaDB. MySQL has convenience commands for most of the catalog
(SHOW DATABASES, SHOW TABLES, DESCRIBE, SHOW INDEX), so only constraints and
foreign keys go through information_schema.

DSN format (go-sql-driver style):
    user:pass@tcp(host:3306)/dbname?parseTime=true
"""

import logging
from typing import List, Optional

from granite.adapters.base import ALL_TABLE_VIEWS, BaseAdapter, Row, mask_dsn, row_value
from granite.models import ColumnInfo, Driver

logger = logging.getLogger(__name__)


class MySQLAdapter(BaseAdapter):
    """
    Adapter for MySQL / MariaDB.

    DESCRIBE returns rows shaped {Field, Type, Null, Key, Default, Extra};
    Null is 'YES'/'NO' and Key is 'PRI' for primary key columns.
    """

    DRIVER = Driver.MYSQL
    TABLE_VIEWS = ALL_TABLE_VIEWS
    IDENTIFIER_QUOTES = ("`", "`")

    def list_databases_query(self) -> str:
        return "SHOW DATABASES"

    def list_tables_query(self) -> str:
        return "SHOW TABLES"

    def list_columns_query(self, table: str) -> str:
        return f"DESCRIBE {self.quote_identifier(table)}"

    def select_all_query(self, table: str, limit: int = BaseAdapter.DEFAULT_LIMIT) -> str:
        return f"SELECT * FROM {self.quote_identifier(table)} LIMIT {int(limit)}"

    def create_database_query(self, name: str) -> Optional[str]:
        return f"CREATE DATABASE {self.quote_identifier(name)}"

    def list_constraints_query(self, table: str) -> Optional[str]:
        return f"""
      SELECT
        tc.CONSTRAINT_NAME AS constraint_name,
        tc.CONSTRAINT_TYPE AS constraint_type,
        kcu.COLUMN_NAME AS column_name
      FROM information_schema.TABLE_CONSTRAINTS tc
      LEFT JOIN information_schema.KEY_COLUMN_USAGE kcu
        ON tc.CONSTRAINT_NAME = kcu.CONSTRAINT_NAME
        AND tc.TABLE_SCHEMA = kcu.TABLE_SCHEMA
        AND tc.TABLE_NAME = kcu.TABLE_NAME
      WHERE tc.TABLE_NAME = {self.quote_literal(table)}
        AND tc.TABLE_SCHEMA = DATABASE()
      ORDER BY tc.CONSTRAINT_NAME, kcu.ORDINAL_POSITION
    """

    def list_foreign_keys_query(self, table: str) -> Optional[str]:
        return f"""
      SELECT
        kcu.CONSTRAINT_NAME AS constraint_name,
        kcu.COLUMN_NAME AS column_name,
        kcu.REFERENCED_TABLE_NAME AS foreign_table,
        kcu.REFERENCED_COLUMN_NAME AS foreign_column
      FROM information_schema.KEY_COLUMN_USAGE kcu
      WHERE kcu.TABLE_NAME = {self.quote_literal(table)}
        AND kcu.TABLE_SCHEMA = DATABASE()
        AND kcu.REFERENCED_TABLE_NAME IS NOT NULL
      ORDER BY kcu.CONSTRAINT_NAME
    """

    def list_indexes_query(self, table: str) -> Optional[str]:
        return f"SHOW INDEX FROM {self.quote_identifier(table)}"

    def quote_literal(self, value: str) -> str:
        # Backslash is an escape character in MySQL string literals
        escaped = str(value).replace("\\", "\\\\").replace("'", "''")
        return f"'{escaped}'"

    def modify_dsn_for_database(self, dsn: str, database: str) -> str:
        """
        Replace the segment after the last '/', keeping any ?params.

        A DSN without a '/' names no database and is returned unchanged,
        the same way the backend treats it.
        """
        base, sep, params = dsn.partition("?")

        scheme = ""
        if "://" in base:
            scheme, _, base = base.partition("://")
            scheme += "://"

        if "/" not in base:
            logger.debug("MySQL DSN has no database segment; leaving it unchanged")
            return dsn
        base = base.rsplit("/", 1)[0]

        modified = f"{scheme}{base}/{database}{sep}{params}"
        logger.debug(f"Retargeted MySQL DSN: {mask_dsn(modified)}")
        return modified

    def parse_database_names(self, rows: List[Row]) -> List[str]:
        return [str(row_value(row, "Database")) for row in rows]

    def parse_table_names(self, rows: List[Row], database: Optional[str] = None) -> List[str]:
        # SHOW TABLES names its only column Tables_in_<database>
        if database:
            return [str(row_value(row, f"Tables_in_{database}")) for row in rows]
        return [str(row_value(row)) for row in rows]

    def parse_columns(self, rows: List[Row]) -> List[ColumnInfo]:
        columns = []
        for row in rows:
            null_flag = row_value(row, "Null", fallback_first=False) or ""
            key_flag = row_value(row, "Key", fallback_first=False) or ""
            columns.append(ColumnInfo(
                name=str(row_value(row, "Field")),
                type=str(row_value(row, "Type", fallback_first=False) or ""),
                nullable=str(null_flag).upper() == "YES",
                primary_key=str(key_flag).upper() == "PRI"
            ))
        return columns
