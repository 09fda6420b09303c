"""Connection provider that prepares every connection for AGE."""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

import psycopg
from psycopg_pool import AsyncConnectionPool

from age_cypher import graph as graph_ops
from age_cypher.agtype import ensure_agtype
from age_cypher.config import AGE_SEARCH_PATH, AgeSettings
from age_cypher.execute import execute_non_query, execute_rows
from age_cypher.resources import ResourceScope
from age_cypher.statement import CypherQuery

logger = logging.getLogger(__name__)


class _PoolLease:
    """A pooled connection registered in a ResourceScope; closing returns it."""

    def __init__(self, pool: AsyncConnectionPool, connection: psycopg.AsyncConnection) -> None:
        self.pool = pool
        self.connection = connection

    async def close(self) -> None:
        await self.pool.putconn(self.connection)

    def __repr__(self) -> str:
        return f"<pool lease {self.connection!r}>"


class AgeDataSource:
    """Hands out psycopg connections set up for AGE.

    Each connection gets the AGE search path, optionally ``LOAD 'age'``, and
    the agtype loader/dumper. With ``pooled=True`` connections come from a
    ``psycopg_pool.AsyncConnectionPool``, which must be opened first (use
    ``async with`` or ``await source.open()``).
    """

    def __init__(
        self,
        conninfo: str = "",
        *,
        search_path: str = AGE_SEARCH_PATH,
        load_age: bool = False,
        autocommit: bool = True,
        pooled: bool = False,
        min_size: int = 1,
        max_size: int = 10,
        timeout: float = 30.0,
        connect_kwargs: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.conninfo = conninfo
        self.search_path = search_path
        self.load_age = load_age
        self.autocommit = autocommit
        self.connect_kwargs = dict(connect_kwargs or {})
        self._pool: Optional[AsyncConnectionPool] = None
        if pooled:
            self._pool = AsyncConnectionPool(
                conninfo,
                min_size=min_size,
                max_size=max_size,
                timeout=timeout,
                kwargs={"autocommit": autocommit, **self.connect_kwargs},
                configure=self.configure,
                open=False,
                name="age-cypher",
            )

    @classmethod
    def from_settings(cls, settings: AgeSettings, *, pooled: bool = False) -> "AgeDataSource":
        return cls(
            settings.conninfo,
            search_path=settings.search_path,
            load_age=settings.load_age,
            autocommit=settings.autocommit,
            pooled=pooled,
            min_size=settings.pool_min_size,
            max_size=settings.pool_max_size,
            timeout=settings.pool_timeout,
        )

    @property
    def pooled(self) -> bool:
        return self._pool is not None

    async def configure(self, connection: psycopg.AsyncConnection) -> None:
        """Prepare a freshly opened connection for Cypher queries."""
        async with connection.cursor() as cur:
            if self.load_age:
                await cur.execute("LOAD 'age'")
            await cur.execute("SELECT set_config('search_path', %s, false)", (self.search_path,))
        await ensure_agtype(connection)
        if not connection.autocommit:
            await connection.commit()

    async def open(self) -> None:
        if self._pool is not None:
            await self._pool.open(wait=True)
            logger.info("Opened connection pool %s", self._pool.name)

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            logger.info("Closed connection pool %s", self._pool.name)

    async def __aenter__(self) -> "AgeDataSource":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def open_connection(self) -> psycopg.AsyncConnection:
        """Open a new, configured connection owned by the caller."""
        connection = await psycopg.AsyncConnection.connect(
            self.conninfo, autocommit=self.autocommit, **self.connect_kwargs
        )
        try:
            await self.configure(connection)
        except BaseException:
            await connection.close()
            raise
        return connection

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[psycopg.AsyncConnection]:
        """Borrow a connection for the duration of the ``async with`` block."""
        if self._pool is not None:
            async with self._pool.connection() as conn:
                yield conn
            return

        # commits on success, rolls back on error, then closes
        async with await self.open_connection() as conn:
            yield conn

    async def acquire_connection(self, scope: ResourceScope) -> psycopg.AsyncConnection:
        """Acquire a connection whose release is tracked by ``scope``.

        Pooled connections go back to the pool on release instead of closing;
        either way ``conn in scope`` holds until the scope is released.
        """
        if self._pool is not None:
            conn = await self._pool.getconn()
            scope.register(_PoolLease(self._pool, conn), key=conn)
            return conn
        return scope.register(await self.open_connection())

    # --- graph lifecycle ---

    async def graph_exists(self, graph: str) -> bool:
        async with self.connection() as conn:
            return await graph_ops.graph_exists(conn, graph)

    async def ensure_graph(self, graph: str, *, serialize: bool = False) -> bool:
        async with self.connection() as conn:
            return await graph_ops.ensure_graph(conn, graph, serialize=serialize)

    async def drop_graph(self, graph: str, *, cascade: bool = True) -> bool:
        async with self.connection() as conn:
            return await graph_ops.drop_graph(conn, graph, cascade=cascade)

    # --- cypher ---

    async def cypher_rows(self, query: CypherQuery) -> AsyncIterator[Dict[str, Any]]:
        """Like ``execute_rows`` on a borrowed connection, held until iteration ends."""
        async with self.connection() as conn:
            async for row in execute_rows(conn, query):
                yield row

    async def cypher_non_query(self, query: CypherQuery) -> int:
        async with self.connection() as conn:
            return await execute_non_query(conn, query)
