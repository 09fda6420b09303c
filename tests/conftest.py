"""
In-memory stand-ins for psycopg async connections, used by the unit tests.
"""

import os
from contextlib import asynccontextmanager
from typing import Any, Callable, List, Optional, Tuple

import psycopg
import pytest
from psycopg import errors, sql
from psycopg.adapt import AdaptersMap
from psycopg.types import TypeInfo

from age_cypher import graph as graph_ops
from age_cypher.agtype import register_agtype

AGTYPE_INFO = TypeInfo("agtype", 7000001, 7000002)


def query_text(query: Any) -> str:
    if isinstance(query, sql.Composable):
        return query.as_string(None)
    return query


class FakeCursor:
    def __init__(self, connection: "FakeConnection") -> None:
        self.connection = connection
        self.rows: List[Any] = []
        self.rowcount = -1
        self.closed = False

    async def __aenter__(self) -> "FakeCursor":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        self.closed = True

    async def execute(self, query, params=None, *, prepare=None):
        text = query_text(query)
        self.connection.executed.append((text, params, prepare))
        rows = self.connection.handler(text, params)
        self.rows = list(rows or [])
        self.rowcount = len(self.rows)
        return self

    async def fetchone(self):
        return self.rows.pop(0) if self.rows else None

    async def fetchall(self):
        rows, self.rows = self.rows, []
        return rows

    def __aiter__(self):
        return self

    async def __anext__(self):
        if not self.rows:
            raise StopAsyncIteration
        row = self.rows.pop(0)
        if isinstance(row, Exception):
            raise row
        return row


class FakeConnection:
    """Records statements and answers them through ``handler(text, params)``."""

    def __init__(self, handler: Optional[Callable] = None, *, agtype: bool = True) -> None:
        self.handler = handler or (lambda text, params: [])
        self.executed: List[Tuple[str, Any, Any]] = []
        self.transactions = 0
        self.commits = 0
        self.rollbacks = 0
        self.autocommit = True
        self.closed = False
        self.adapters = AdaptersMap(psycopg.adapters)
        if agtype:
            register_agtype(AGTYPE_INFO, self)

    def cursor(self, row_factory=None) -> FakeCursor:
        return FakeCursor(self)

    @asynccontextmanager
    async def transaction(self):
        self.transactions += 1
        yield self

    async def commit(self) -> None:
        self.commits += 1

    async def rollback(self) -> None:
        self.rollbacks += 1

    async def __aenter__(self) -> "FakeConnection":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type is None:
            await self.commit()
        else:
            await self.rollback()
        await self.close()

    async def close(self) -> None:
        self.closed = True

    @property
    def statements(self) -> List[str]:
        return [text for text, _, _ in self.executed]


class FakeAgeDatabase:
    """Answers the graph catalog statements issued by ``age_cypher.graph``."""

    def __init__(self, graphs=(), *, hide_from_check=()) -> None:
        self.graphs = set(graphs)
        self.hide_from_check = set(hide_from_check)
        self.create_calls = 0
        self.drop_calls = 0

    def __call__(self, text: str, params):
        if text == graph_ops.SQL_GRAPH_EXISTS:
            name = params[0]
            visible = name in self.graphs and name not in self.hide_from_check
            return [(1 if visible else 0,)]
        if text == graph_ops.SQL_CREATE_GRAPH:
            self.create_calls += 1
            name = params[0]
            if name in self.graphs:
                raise errors.DuplicateSchema(f'graph "{name}" already exists')
            self.graphs.add(name)
            return [("",)]
        if text == graph_ops.SQL_DROP_GRAPH:
            self.drop_calls += 1
            self.graphs.discard(params[0])
            return [("",)]
        if text == graph_ops.SQL_AGE_INSTALLED:
            return [("1.5.0",)]
        return []


@pytest.fixture
def age_db():
    return FakeAgeDatabase()


@pytest.fixture
def fake_conn(age_db):
    return FakeConnection(age_db)


@pytest.fixture
def integration_conninfo():
    conninfo = os.environ.get("AGE_TEST_CONNINFO")
    if not conninfo:
        pytest.skip("AGE_TEST_CONNINFO not set")
    return conninfo
