"""Running Cypher statements on a caller-owned psycopg connection."""

import logging
from typing import Any, AsyncIterator, Dict

import psycopg
from psycopg.rows import dict_row

from age_cypher.agtype import ensure_agtype
from age_cypher.errors import CypherExecutionError
from age_cypher.statement import CypherQuery, Statement, build_statement

logger = logging.getLogger(__name__)


def _wrap(statement: Statement, exc: psycopg.Error) -> CypherExecutionError:
    return CypherExecutionError(str(statement.graph), exc, getattr(exc, "sqlstate", None))


async def execute_rows(
    connection: psycopg.AsyncConnection, query: CypherQuery
) -> AsyncIterator[Dict[str, Any]]:
    """Yield result rows as dicts keyed by the result-shape column names.

    Rows are fetched lazily from the cursor. The generator is not restartable;
    calling ``execute_rows`` again runs the statement again.
    """
    statement = build_statement(query)
    await ensure_agtype(connection)
    logger.debug("Executing on graph %s: %s", statement.graph, query.cypher)
    try:
        async with connection.cursor(row_factory=dict_row) as cur:
            await cur.execute(statement.query, statement.params, prepare=statement.prepare)
            async for row in cur:
                yield row
    except psycopg.Error as exc:
        raise _wrap(statement, exc) from exc


async def execute_non_query(connection: psycopg.AsyncConnection, query: CypherQuery) -> int:
    """Run ``query`` discarding any rows; return the row count reported by the driver."""
    statement = build_statement(query)
    await ensure_agtype(connection)
    logger.debug("Executing on graph %s: %s", statement.graph, query.cypher)
    try:
        async with connection.cursor() as cur:
            await cur.execute(statement.query, statement.params, prepare=statement.prepare)
            return cur.rowcount
    except psycopg.Error as exc:
        raise _wrap(statement, exc) from exc


async def fetch_all(connection: psycopg.AsyncConnection, query: CypherQuery) -> list:
    return [row async for row in execute_rows(connection, query)]
