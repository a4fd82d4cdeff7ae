import logging
from typing import Any, Callable, Coroutine, Protocol

from dbls.postgres_driver import ConnectionParameters, Page
from dbls.state import (
    Connect,
    ConnectResult,
    DatabaseCommand,
    DeleteResult,
    DeleteRows,
    FetchRows,
    ListTables,
    ResultEvent,
    RowsResult,
    TablesResult,
)


logger = logging.getLogger(__name__)


class DataClient(Protocol):
    async def connect(self, connection_parameters: ConnectionParameters) -> None: ...

    async def list_tables(self) -> list[str]: ...

    async def fetch_rows(
        self,
        table_name: str,
        limit: int,
        offset: int,
        where_clause: str,
    ) -> Page: ...

    async def delete_rows(self, table_name: str, predicate: str) -> int: ...

    async def close(self) -> None: ...


Spawn = Callable[[Coroutine[Any, Any, None]], object]
Deliver = Callable[[ResultEvent], object]


class CommandDispatcher:
    """Run database commands without blocking the key loop.

    Every dispatched command produces exactly one result event, handed to
    ``deliver``. Commands are never retried, timed out or cancelled.
    """

    def __init__(self, client: DataClient, deliver: Deliver, spawn: Spawn) -> None:
        self._client = client
        self._deliver = deliver
        self._spawn = spawn

    def dispatch(self, command: DatabaseCommand) -> object:
        logger.debug("Dispatching %s", command)
        return self._spawn(self._run(command))

    async def _run(self, command: DatabaseCommand) -> None:
        event = await self.execute(command)
        self._deliver(event)

    async def execute(self, command: DatabaseCommand) -> ResultEvent:
        try:
            return await self._call_client(command)
        except Exception as error:
            logger.warning("%s failed: %s", type(command).__name__, error, exc_info=True)
            return _failure_event(command, error)

    async def _call_client(self, command: DatabaseCommand) -> ResultEvent:
        if isinstance(command, Connect):
            await self._client.connect(command.parameters)
            return ConnectResult()
        if isinstance(command, ListTables):
            tables = await self._client.list_tables()
            return TablesResult(tables=tuple(tables))
        if isinstance(command, FetchRows):
            page = await self._client.fetch_rows(
                command.table,
                command.limit,
                command.offset,
                command.filter,
            )
            return RowsResult(page=page)
        if isinstance(command, DeleteRows):
            affected = await self._client.delete_rows(command.table, command.predicate)
            return DeleteResult(affected=affected)
        raise TypeError(f"Unsupported command: {command!r}")


def _failure_event(command: DatabaseCommand, error: Exception) -> ResultEvent:
    if isinstance(command, Connect):
        return ConnectResult(error=error)
    if isinstance(command, ListTables):
        return TablesResult(error=error)
    if isinstance(command, FetchRows):
        return RowsResult(error=error)
    if isinstance(command, DeleteRows):
        return DeleteResult(error=error)
    raise TypeError(f"Unsupported command: {command!r}") from error
