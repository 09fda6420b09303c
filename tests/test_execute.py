import pytest
from psycopg import errors

from age_cypher import (
    Agtype,
    CypherExecutionError,
    CypherQuery,
    Vertex,
    execute_non_query,
    execute_rows,
    fetch_all,
)

from tests.conftest import FakeConnection


def rows_handler(rows):
    def handler(text, params):
        return list(rows)
    return handler


@pytest.mark.asyncio
async def test_execute_rows_yields_named_columns():
    person = Vertex(1, "Person", {"age": 23})
    conn = FakeConnection(rows_handler([{"person": person}]))

    query = CypherQuery("g1", "MATCH (n:Person) RETURN n", "person agtype")
    rows = [row async for row in execute_rows(conn, query)]

    assert rows == [{"person": person}]
    text, params, _ = conn.executed[0]
    assert text == "SELECT * FROM cypher('g1', $$ MATCH (n:Person) RETURN n $$) AS (\"person\" agtype)"
    assert params is None


@pytest.mark.asyncio
async def test_execute_rows_is_lazy_and_reexecutes():
    conn = FakeConnection(rows_handler([{"r": 1}, {"r": 2}]))
    query = CypherQuery("g1", "UNWIND [1, 2] AS x RETURN x")

    rows = execute_rows(conn, query)
    assert conn.executed == []
    assert await rows.__anext__() == {"r": 1}
    await rows.aclose()

    assert await fetch_all(conn, query) == [{"r": 1}, {"r": 2}]
    assert len(conn.executed) == 2


@pytest.mark.asyncio
async def test_execute_non_query_binds_parameter():
    conn = FakeConnection(rows_handler([{"r": "x"}]))
    count = await execute_non_query(
        conn,
        CypherQuery(
            "g1",
            "CREATE (p:Person) SET p.name = $name, p.age = $age",
            parameter={"name": "Alice", "age": 24},
            prepare=True,
        ),
    )
    assert count == 1
    text, params, prepare = conn.executed[0]
    assert text.endswith("$$, %s) AS (\"r\" agtype)")
    assert params == (Agtype({"name": "Alice", "age": 24}),)
    assert prepare is True


@pytest.mark.asyncio
async def test_database_error_is_wrapped():
    def handler(text, params):
        raise errors.InvalidSchemaName('graph "missing" does not exist')

    conn = FakeConnection(handler)
    with pytest.raises(CypherExecutionError) as excinfo:
        await execute_non_query(conn, CypherQuery("missing", "MATCH (n) RETURN n"))

    err = excinfo.value
    assert err.graph == "missing"
    assert err.sqlstate == "3F000"
    assert 'graph "missing" does not exist' in str(err)
    assert isinstance(err.__cause__, errors.InvalidSchemaName)


@pytest.mark.asyncio
async def test_failed_row_read_aborts_iteration():
    conn = FakeConnection(rows_handler([{"r": 1}, errors.DataException("bad agtype"), {"r": 3}]))
    seen = []
    with pytest.raises(CypherExecutionError):
        async for row in execute_rows(conn, CypherQuery("g1", "MATCH (n) RETURN n")):
            seen.append(row)
    assert seen == [{"r": 1}]
