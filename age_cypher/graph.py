"""Graph lifecycle helpers: existence checks, creation and removal."""

import logging

import psycopg
from psycopg import errors

from age_cypher.errors import AgeNotInstalledError
from age_cypher.identifiers import GraphName

logger = logging.getLogger(__name__)

SQL_AGE_INSTALLED = "SELECT extversion FROM pg_catalog.pg_extension WHERE extname = 'age'"
SQL_GRAPH_EXISTS = "SELECT count(*) FROM ag_catalog.ag_graph WHERE name = %s"
SQL_CREATE_GRAPH = "SELECT ag_catalog.create_graph(%s::name)"
SQL_DROP_GRAPH = "SELECT ag_catalog.drop_graph(%s::name, %s)"
SQL_GRAPH_LOCK = "SELECT pg_advisory_xact_lock(hashtext(%s))"


async def check_age_installed(connection: psycopg.AsyncConnection) -> str:
    """Return the installed AGE version or raise AgeNotInstalledError."""
    async with connection.cursor() as cur:
        await cur.execute(SQL_AGE_INSTALLED)
        row = await cur.fetchone()
    if not row:
        raise AgeNotInstalledError(
            "AGE extension is not installed in this database. "
            "Run: CREATE EXTENSION age; (as superuser)"
        )
    return row[0]


async def graph_exists(connection: psycopg.AsyncConnection, graph: str) -> bool:
    graph = GraphName(graph)
    async with connection.cursor() as cur:
        await cur.execute(SQL_GRAPH_EXISTS, (str(graph),))
        row = await cur.fetchone()
    return bool(row and row[0])


async def create_graph(connection: psycopg.AsyncConnection, graph: str) -> None:
    graph = GraphName(graph)
    async with connection.cursor() as cur:
        await cur.execute(SQL_CREATE_GRAPH, (str(graph),))
    logger.info("Created graph %s", graph)


async def _ensure_graph_unlocked(connection: psycopg.AsyncConnection, graph: GraphName) -> bool:
    if await graph_exists(connection, graph):
        return False
    try:
        # savepoint inside an open transaction, so a duplicate error does not abort it
        async with connection.transaction():
            await create_graph(connection, graph)
    except errors.DuplicateSchema:
        # lost a race with another creator
        logger.warning("Graph %s was created concurrently; continuing", graph)
        return False
    return True


async def ensure_graph(
    connection: psycopg.AsyncConnection, graph: str, *, serialize: bool = False
) -> bool:
    """Create ``graph`` unless it already exists.

    Returns True if this call created the graph. The existence check and the
    creation are separate statements, so two callers may both see the graph
    as missing; the loser's duplicate-creation error is logged and ignored.
    With ``serialize=True`` both steps run in one transaction holding an
    advisory lock on the graph name, which closes that window.
    """
    graph = GraphName(graph)
    if not serialize:
        return await _ensure_graph_unlocked(connection, graph)

    async with connection.transaction():
        async with connection.cursor() as cur:
            await cur.execute(SQL_GRAPH_LOCK, (str(graph),))
        return await _ensure_graph_unlocked(connection, graph)


async def drop_graph(
    connection: psycopg.AsyncConnection, graph: str, *, cascade: bool = True
) -> bool:
    """Drop ``graph`` if it exists; return True if it was dropped."""
    graph = GraphName(graph)
    if not await graph_exists(connection, graph):
        return False
    async with connection.cursor() as cur:
        await cur.execute(SQL_DROP_GRAPH, (str(graph), cascade))
    logger.info("Dropped graph %s", graph)
    return True
