import asyncio
from dataclasses import dataclass
import logging
import re
from urllib.parse import quote

import asyncpg
from asyncpg import Pool

from dbls.cell_format import format_cell_value


logger = logging.getLogger(__name__)

DEFAULT_SCHEMA = "public"
_DELETE_STATUS_RE = re.compile(r"^DELETE (\d+)$")
_DRIVER_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, ValueError)


@dataclass(frozen=True)
class ConnectionParameters:
    host: str
    port: str
    username: str
    password: str
    database_name: str


@dataclass(frozen=True)
class Page:
    columns: tuple[str, ...] = ()
    rows: tuple[tuple[str, ...], ...] = ()
    total_rows: int = 0
    offset: int = 0


class DataClientError(Exception):
    pass


class NotConnectedError(DataClientError):
    def __init__(self) -> None:
        super().__init__("database not connected")


class ConnectError(DataClientError):
    pass


class ListTablesError(DataClientError):
    pass


class FetchRowsError(DataClientError):
    pass


class DeleteRowsError(DataClientError):
    pass


class EmptyPredicateError(DeleteRowsError, ValueError):
    def __init__(self) -> None:
        super().__init__("empty WHERE clause is not allowed for DELETE")


def build_dsn(connection_parameters: ConnectionParameters) -> str:
    credentials = quote(connection_parameters.username, safe="")
    if connection_parameters.password:
        credentials += ":" + quote(connection_parameters.password, safe="")
    netloc = connection_parameters.host
    if connection_parameters.port:
        netloc += f":{connection_parameters.port}"
    if credentials:
        netloc = f"{credentials}@{netloc}"
    path = ""
    if connection_parameters.database_name:
        path = "/" + quote(connection_parameters.database_name, safe="")
    return f"postgresql://{netloc}{path}"


def quote_identifier(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


def _relation_name(table_name: str) -> str:
    return f"{quote_identifier(DEFAULT_SCHEMA)}.{quote_identifier(table_name)}"


def _where_sql(where_clause: str) -> str:
    return f" WHERE {where_clause}" if where_clause.strip() else ""


def parse_affected_rows(status: str) -> int:
    match = _DELETE_STATUS_RE.match(status.strip())
    if match is None:
        return 0
    return int(match.group(1))


class PostgresClient:
    """Pooled asyncpg access to the ``public`` schema of one database.

    The pool is shared by every in-flight operation. Filters and delete
    predicates are passed through to SQL verbatim.
    """

    def __init__(
        self,
        *,
        min_pool_size: int = 1,
        max_pool_size: int = 4,
        close_timeout: float = 5.0,
    ) -> None:
        self._pool: Pool | None = None
        self._min_pool_size = min_pool_size
        self._max_pool_size = max_pool_size
        self._close_timeout = close_timeout

    @property
    def connected(self) -> bool:
        return self._pool is not None

    def _require_pool(self) -> Pool:
        if self._pool is None:
            raise NotConnectedError()
        return self._pool

    async def connect(self, connection_parameters: ConnectionParameters) -> None:
        logger.info(
            "Connecting to %s:%s/%s as %s",
            connection_parameters.host,
            connection_parameters.port,
            connection_parameters.database_name,
            connection_parameters.username,
        )
        try:
            pool = await asyncpg.create_pool(
                build_dsn(connection_parameters),
                min_size=self._min_pool_size,
                max_size=self._max_pool_size,
            )
        except _DRIVER_ERRORS as error:
            raise ConnectError(str(error)) from error
        try:
            await pool.fetchval("SELECT 1")
        except _DRIVER_ERRORS as error:
            await self._close_pool(pool)
            raise ConnectError(str(error)) from error
        previous_pool = self._pool
        self._pool = pool
        if previous_pool is not None:
            await self._close_pool(previous_pool)

    async def close(self) -> None:
        if self._pool is None:
            return
        pool = self._pool
        self._pool = None
        await self._close_pool(pool)
        logger.info("Connection pool closed")

    async def _close_pool(self, pool: Pool) -> None:
        # Pool.close waits for every acquired connection to be released.
        try:
            await asyncio.wait_for(pool.close(), self._close_timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "Pool did not close within %ss, terminating connections",
                self._close_timeout,
            )
            pool.terminate()

    async def list_tables(self) -> list[str]:
        pool = self._require_pool()
        query = """
            SELECT table_name
            FROM information_schema.tables
            WHERE table_schema = $1
              AND table_type = 'BASE TABLE'
            ORDER BY table_name
        """
        try:
            records = await pool.fetch(query, DEFAULT_SCHEMA)
        except _DRIVER_ERRORS as error:
            raise ListTablesError(str(error)) from error
        return [record["table_name"] for record in records]

    async def fetch_rows(
        self,
        table_name: str,
        limit: int,
        offset: int,
        where_clause: str,
    ) -> Page:
        pool = self._require_pool()
        relation = _relation_name(table_name)
        where_sql = _where_sql(where_clause)
        count_query = f"SELECT COUNT(*) FROM {relation}{where_sql}"
        page_query = f"SELECT * FROM {relation}{where_sql} LIMIT $1 OFFSET $2"
        logger.debug("Fetching rows: %s [limit=%s offset=%s]", page_query, limit, offset)
        try:
            async with pool.acquire() as connection:
                total_rows = await connection.fetchval(count_query)
                statement = await connection.prepare(page_query)
                columns = [attribute.name for attribute in statement.get_attributes()]
                records = await statement.fetch(limit, offset)
        except _DRIVER_ERRORS as error:
            raise FetchRowsError(str(error)) from error
        rows = tuple(
            tuple(format_cell_value(value) for value in record) for record in records
        )
        return Page(
            columns=tuple(columns),
            rows=rows,
            total_rows=int(total_rows or 0),
            offset=offset,
        )

    async def delete_rows(self, table_name: str, predicate: str) -> int:
        if not predicate.strip():
            raise EmptyPredicateError()
        pool = self._require_pool()
        query = f"DELETE FROM {_relation_name(table_name)} WHERE {predicate}"
        logger.info("Deleting rows: %s", query)
        try:
            status = await pool.execute(query)
        except _DRIVER_ERRORS as error:
            raise DeleteRowsError(str(error)) from error
        return parse_affected_rows(status)
