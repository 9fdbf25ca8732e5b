"""
Adapter Registry for Granite

Resolves a driver identifier to its dialect adapter. The registry is built
once at import and is read-only afterwards; adapters are stateless, so one
instance per driver is shared by every caller.

Usage:
    from granite.adapters import get_adapter

    adapter = get_adapter("postgres")
    sql = adapter.select_all_query("orders", 50)
"""

from types import MappingProxyType
from typing import FrozenSet, List, Mapping, Optional, Union

from granite.adapters.base import BaseAdapter
from granite.adapters.mysql_adapter import MySQLAdapter
from granite.adapters.oracle_adapter import OracleAdapter
from granite.adapters.postgres_adapter import PostgresAdapter
from granite.adapters.redis_adapter import RedisAdapter
from granite.adapters.sqlite_adapter import SQLiteAdapter
from granite.adapters.sqlserver_adapter import SQLServerAdapter
from granite.exceptions import UnsupportedDriverError
from granite.models import Driver, TableView


# =============================================================================
# ADAPTER REGISTRY
# =============================================================================

def _build_registry() -> Mapping[Driver, BaseAdapter]:
    adapters = [
        PostgresAdapter(),
        MySQLAdapter(),
        SQLiteAdapter(),
        SQLServerAdapter(),
        OracleAdapter(),
        RedisAdapter(),
    ]
    registry = {adapter.driver: adapter for adapter in adapters}

    missing = set(Driver) - set(registry)
    assert not missing, f"No adapter registered for: {sorted(d.value for d in missing)}"

    return MappingProxyType(registry)


_ADAPTER_REGISTRY: Mapping[Driver, BaseAdapter] = _build_registry()


def list_adapters() -> List[str]:
    """Get list of supported driver identifiers."""
    return [driver.value for driver in _ADAPTER_REGISTRY]


def is_driver_supported(driver: Union[Driver, str]) -> bool:
    """Check if a driver has a registered adapter."""
    try:
        Driver.parse(driver)
    except UnsupportedDriverError:
        return False
    return True


# =============================================================================
# ADAPTER LOOKUP
# =============================================================================

def get_adapter(driver: Union[Driver, str]) -> BaseAdapter:
    """
    Get the adapter for a driver.

    Args:
        driver: Driver enum member or its identifier (case-insensitive)

    Returns:
        Shared adapter instance

    Raises:
        UnsupportedDriverError: If no adapter exists for the driver
    """
    return _ADAPTER_REGISTRY[Driver.parse(driver)]


def supports_create_database(driver: Union[Driver, str]) -> bool:
    return get_adapter(driver).supports_create_database()


def get_supported_table_views(driver: Union[Driver, str]) -> FrozenSet[TableView]:
    return get_adapter(driver).supported_table_views()


def get_table_view_query(
    driver: Union[Driver, str],
    table: str,
    view: Union[TableView, str]
) -> Optional[str]:
    """Query for one table view, or None when the driver lacks that view."""
    return get_adapter(driver).table_view_query(table, view)
