"""
End-to-end checks against PostgreSQL with AGE installed.

Set AGE_TEST_CONNINFO (e.g. "host=localhost dbname=postgres user=postgres")
to run them; they are skipped otherwise.
"""

import uuid

import pytest
import pytest_asyncio

from age_cypher import (
    AgeDataSource,
    CypherExecutionError,
    CypherQuery,
    ResourceScope,
    Vertex,
    execute_rows,
    fetch_all,
)

pytestmark = [pytest.mark.integration, pytest.mark.asyncio]


@pytest_asyncio.fixture
async def source(integration_conninfo):
    async with AgeDataSource(integration_conninfo, pooled=True, min_size=1, max_size=2) as source:
        yield source


@pytest_asyncio.fixture
async def graph(source):
    name = f"g_{uuid.uuid4().hex[:12]}"
    assert await source.ensure_graph(name) is True
    yield name
    await source.drop_graph(name)


async def test_create_and_read_vertex(source, graph):
    await source.cypher_non_query(CypherQuery(graph, "CREATE (:Person {age: 23})"))

    rows = [
        row async for row in source.cypher_rows(
            CypherQuery(graph, "MATCH (n:Person) RETURN n", "person agtype")
        )
    ]

    assert len(rows) == 1
    person = rows[0]["person"]
    assert isinstance(person, Vertex)
    assert person.label == "Person"
    assert person.properties == {"age": 23}


async def test_parameterized_create(source, graph):
    await source.cypher_non_query(
        CypherQuery(
            graph,
            "CREATE (p:Person) SET p.name = $name, p.age = $age",
            parameter={"name": "Alice", "age": 24},
        )
    )

    async with ResourceScope() as scope:
        conn = await source.acquire_connection(scope)
        rows = await fetch_all(conn, CypherQuery(graph, "MATCH (n:Person) RETURN n", "n agtype"))

    assert [row["n"].properties for row in rows] == [{"name": "Alice", "age": 24}]


async def test_parameter_round_trips(source, graph):
    value = {"name": "Bob", "tags": ["a", "b"], "nested": {"x": 1.5, "y": None}}
    rows = [
        row async for row in source.cypher_rows(
            CypherQuery(graph, "RETURN $value", "v agtype", parameter={"value": value})
        )
    ]
    assert rows == [{"v": value}]


async def test_ensure_graph_is_idempotent(source, graph):
    assert await source.ensure_graph(graph) is False
    assert await source.ensure_graph(graph, serialize=True) is False


async def test_shape_mismatch_is_reported(source, graph):
    async with source.connection() as conn:
        with pytest.raises(CypherExecutionError):
            async for _ in execute_rows(
                conn, CypherQuery(graph, "RETURN 1, 2", "only_one agtype")
            ):
                pass
