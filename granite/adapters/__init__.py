"""
Dialect Adapters for Granite

Each adapter turns catalog and paging requests into dialect SQL (or Redis
commands) and parses the backend's rows into canonical shapes. Adapters
never execute anything.

Supported Drivers:
- PostgreSQL
- MySQL / MariaDB
- SQLite
- SQL Server / Azure SQL
- Oracle Database
- Redis
"""

from granite.adapters.base import BaseAdapter, mask_dsn
from granite.adapters.factory import (
    get_adapter,
    list_adapters,
    is_driver_supported,
    supports_create_database,
    get_supported_table_views,
    get_table_view_query
)
from granite.adapters.mysql_adapter import MySQLAdapter
from granite.adapters.oracle_adapter import OracleAdapter
from granite.adapters.postgres_adapter import PostgresAdapter
from granite.adapters.redis_adapter import RedisAdapter
from granite.adapters.sqlite_adapter import SQLiteAdapter
from granite.adapters.sqlserver_adapter import SQLServerAdapter

__all__ = [
    "BaseAdapter",
    "mask_dsn",
    "get_adapter",
    "list_adapters",
    "is_driver_supported",
    "supports_create_database",
    "get_supported_table_views",
    "get_table_view_query",
    "PostgresAdapter",
    "MySQLAdapter",
    "SQLiteAdapter",
    "SQLServerAdapter",
    "OracleAdapter",
    "RedisAdapter",
]
