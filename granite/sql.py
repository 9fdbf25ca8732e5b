"""
Query Router

Routes SQL text to the backend's read endpoint (/query) or write endpoint
(/execute) and turns the payload into a QueryResult. Catalog helpers combine
the dialect adapters with the read endpoint.
"""

import logging
from typing import Any, List, Optional, Union

from .adapters import get_adapter, mask_dsn
from .cancellation import CancellationToken
from .classifier import StatementKind, classify, split_statements
from .client import GraniteClient, connection_path
from .exceptions import BackendError, CapabilityNotSupportedError
from .models import ColumnInfo, Driver, QueryResult, TableView

logger = logging.getLogger(__name__)


_ENDPOINTS = {
    StatementKind.READ: "query",
    StatementKind.WRITE: "execute",
}


class SQLClient:
    """
    SQL operations against saved connections.

    Example:
        async with GraniteClient() as client:
            sql = SQLClient(client)
            result = await sql.execute_sql("conn-1", "SELECT * FROM orders")
            for row in result.rows:
                print(row)
    """

    def __init__(self, client: GraniteClient):
        self.client = client

    # =========================================================================
    # Routing
    # =========================================================================

    async def _send(
        self,
        kind: StatementKind,
        connection_id: str,
        sql: str,
        params: Optional[List[Any]] = None,
        dsn: Optional[str] = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> QueryResult:
        payload = {"query": sql, "params": list(params or [])}
        if dsn:
            payload["dsn"] = dsn

        path = connection_path("sql", connection_id, _ENDPOINTS[kind])
        data = await self.client.post(path, json=payload, cancel_token=cancel_token)
        result = QueryResult.from_response(data, kind)

        if not result.ok:
            logger.debug(f"Statement on {connection_id} reported an error: {result.error}")
        return result

    async def query(
        self,
        connection_id: str,
        sql: str,
        params: Optional[List[Any]] = None,
        dsn: Optional[str] = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> QueryResult:
        """Run a row-returning statement through the read endpoint."""
        return await self._send(StatementKind.READ, connection_id, sql, params, dsn, cancel_token)

    async def execute_statement(
        self,
        connection_id: str,
        sql: str,
        params: Optional[List[Any]] = None,
        dsn: Optional[str] = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> QueryResult:
        """Run a mutating statement through the write endpoint."""
        return await self._send(StatementKind.WRITE, connection_id, sql, params, dsn, cancel_token)

    async def execute(
        self,
        connection_id: str,
        sql: str,
        params: Optional[List[Any]] = None,
        kind: Optional[Union[StatementKind, str]] = None,
        dsn: Optional[str] = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> QueryResult:
        """
        Classify and dispatch a statement.

        Args:
            connection_id: Saved connection to run against
            sql: Statement text
            params: Positional bind parameters
            kind: Skip classification and use this endpoint
            dsn: One-off DSN override for this call
            cancel_token: Checked around the round-trip

        Raises:
            BackendError: If the backend answers with a non-2xx status
        """
        kind = StatementKind(kind) if kind is not None else classify(sql)
        return await self._send(kind, connection_id, sql, params, dsn, cancel_token)

    async def execute_sql(
        self,
        connection_id: str,
        sql: str,
        params: Optional[List[Any]] = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> QueryResult:
        return await self.execute(connection_id, sql, params, cancel_token=cancel_token)

    async def execute_script(
        self,
        connection_id: str,
        script: str,
        dsn: Optional[str] = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> List[QueryResult]:
        """
        Run each statement of a script in order.

        Stops after the first statement whose result is an error; raised
        errors propagate. Returns the results of the statements that ran.
        """
        results = []
        for statement in split_statements(script):
            result = await self.execute(connection_id, statement, dsn=dsn, cancel_token=cancel_token)
            results.append(result)
            if not result.ok:
                break
        return results

    # =========================================================================
    # Catalog
    # =========================================================================

    async def _catalog_rows(
        self,
        connection_id: str,
        sql: str,
        dsn: Optional[str] = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> List[dict]:
        result = await self.query(connection_id, sql, dsn=dsn, cancel_token=cancel_token)
        if not result.ok:
            raise BackendError(result.error)
        return result.rows or []

    def _retarget(self, driver: Driver, dsn: Optional[str], database: Optional[str]) -> Optional[str]:
        if not (dsn and database):
            return None
        modified = get_adapter(driver).modify_dsn_for_database(dsn, database)
        logger.info(f"Using {driver.value} DSN for database {database}: {mask_dsn(modified)}")
        return modified

    async def list_databases(
        self,
        connection_id: str,
        driver: Union[Driver, str],
        cancel_token: Optional[CancellationToken] = None
    ) -> List[str]:
        adapter = get_adapter(driver)
        rows = await self._catalog_rows(connection_id, adapter.list_databases_query(), cancel_token=cancel_token)
        return adapter.parse_database_names(rows)

    async def list_tables(
        self,
        connection_id: str,
        driver: Union[Driver, str],
        database: Optional[str] = None,
        dsn: Optional[str] = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> List[str]:
        """
        List base tables.

        When both database and the connection's stored dsn are given, the
        DSN is retargeted to that database for this call only.
        """
        adapter = get_adapter(driver)
        rows = await self._catalog_rows(
            connection_id,
            adapter.list_tables_query(),
            dsn=self._retarget(adapter.driver, dsn, database),
            cancel_token=cancel_token
        )
        return adapter.parse_table_names(rows, database)

    async def list_columns(
        self,
        connection_id: str,
        driver: Union[Driver, str],
        table: str,
        database: Optional[str] = None,
        dsn: Optional[str] = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> List[ColumnInfo]:
        adapter = get_adapter(driver)
        rows = await self._catalog_rows(
            connection_id,
            adapter.list_columns_query(table),
            dsn=self._retarget(adapter.driver, dsn, database),
            cancel_token=cancel_token
        )
        return adapter.parse_columns(rows)

    async def create_database(
        self,
        connection_id: str,
        driver: Union[Driver, str],
        name: str,
        cancel_token: Optional[CancellationToken] = None
    ) -> QueryResult:
        """
        Create a database.

        Raises:
            CapabilityNotSupportedError: If the driver cannot create databases
        """
        adapter = get_adapter(driver)
        sql = adapter.create_database_query(name)
        if sql is None:
            raise CapabilityNotSupportedError(
                f"Driver {adapter.driver.value} does not support creating databases",
                details={"driver": adapter.driver.value}
            )
        return await self.execute_statement(connection_id, sql, cancel_token=cancel_token)

    async def fetch_table_view(
        self,
        connection_id: str,
        driver: Union[Driver, str],
        table: str,
        view: Union[TableView, str],
        database: Optional[str] = None,
        dsn: Optional[str] = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> Optional[QueryResult]:
        """Fetch one view of a table, or None if the driver lacks that view."""
        adapter = get_adapter(driver)
        sql = adapter.table_view_query(table, view)
        if sql is None:
            logger.debug(f"View {TableView(view).value} not supported for {adapter.driver.value}")
            return None
        return await self.query(
            connection_id,
            sql,
            dsn=self._retarget(adapter.driver, dsn, database),
            cancel_token=cancel_token
        )
