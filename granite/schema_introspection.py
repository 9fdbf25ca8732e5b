"""
Schema Introspection

Builds a table -> columns map for one database of a connection. Tables are
listed once; columns are fetched concurrently for at most `fetch_limit`
tables to cap request fan-out against large schemas. A table whose column
fetch fails is recorded with no columns instead of failing the whole build.
"""

import asyncio
import logging
from typing import List, Optional, Union

from .cancellation import CancellationToken
from .config import settings
from .exceptions import GraniteError, OperationCancelledError
from .models import ColumnInfo, Driver, SchemaInfo
from .sql import SQLClient

logger = logging.getLogger(__name__)


class SchemaIntrospector:
    """
    Schema builder on top of SQLClient.

    Example:
        introspector = SchemaIntrospector(SQLClient(client))
        schema = await introspector.build_schema("conn-1", "postgres", database="shop")
        print(schema.columns["orders"])
    """

    def __init__(self, sql_client: SQLClient, fetch_limit: int = None):
        self.sql_client = sql_client
        self.fetch_limit = fetch_limit if fetch_limit is not None else settings.schema_fetch_limit

    async def _table_columns(
        self,
        connection_id: str,
        driver: Union[Driver, str],
        table: str,
        database: Optional[str],
        dsn: Optional[str],
        cancel_token: Optional[CancellationToken]
    ) -> List[ColumnInfo]:
        if cancel_token is not None:
            cancel_token.raise_if_cancelled("Schema introspection")

        try:
            return await self.sql_client.list_columns(
                connection_id, driver, table,
                database=database, dsn=dsn, cancel_token=cancel_token
            )
        except OperationCancelledError:
            raise
        except GraniteError as e:
            logger.warning(f"Column fetch failed for table {table} on {connection_id}: {e}")
            return []

    async def build_schema(
        self,
        connection_id: str,
        driver: Union[Driver, str],
        database: Optional[str] = None,
        dsn: Optional[str] = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> SchemaInfo:
        """
        Build the schema of one database.

        Args:
            connection_id: Saved SQL connection
            driver: Driver of that connection
            database: Database to introspect (retargets dsn when both are given)
            dsn: The connection's stored DSN
            cancel_token: Checked before the listing and before each column fetch

        Returns:
            SchemaInfo with every table listed and columns for the first
            `fetch_limit` of them, keyed in listing order.
        """
        if cancel_token is not None:
            cancel_token.raise_if_cancelled("Schema introspection")

        tables = await self.sql_client.list_tables(
            connection_id, driver, database=database, dsn=dsn, cancel_token=cancel_token
        )

        to_fetch = tables[:self.fetch_limit]
        if len(tables) > len(to_fetch):
            logger.info(
                f"Fetching columns for {len(to_fetch)} of {len(tables)} tables on {connection_id}"
            )

        tasks = [
            asyncio.ensure_future(
                self._table_columns(connection_id, driver, table, database, dsn, cancel_token)
            )
            for table in to_fetch
        ]
        try:
            results = await asyncio.gather(*tasks)
        except Exception:
            # Stop the remaining fetches and collect their outcomes before re-raising
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        return SchemaInfo(
            tables=tables,
            columns={table: columns for table, columns in zip(to_fetch, results)}
        )


async def build_schema(
    sql_client: SQLClient,
    connection_id: str,
    driver: Union[Driver, str],
    database: Optional[str] = None,
    dsn: Optional[str] = None,
    fetch_limit: int = None,
    cancel_token: Optional[CancellationToken] = None
) -> SchemaInfo:
    """Convenience wrapper around SchemaIntrospector.build_schema()."""
    introspector = SchemaIntrospector(sql_client, fetch_limit=fetch_limit)
    return await introspector.build_schema(
        connection_id, driver, database=database, dsn=dsn, cancel_token=cancel_token
    )
