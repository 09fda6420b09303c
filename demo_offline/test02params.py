# Create people from bound agtype parameters instead of literals in the cypher text
import asyncio
import json
import logging

from age_cypher import AgeDataSource, AgeSettings, Agtype, CypherQuery, ResourceScope, execute_non_query

settings = AgeSettings()
graph = settings.graph


async def main():
    source = AgeDataSource.from_settings(settings)

    await source.ensure_graph(graph)
    await source.cypher_non_query(CypherQuery(graph, "MATCH (n) DETACH DELETE n"))

    # Pass data to fill $name / $age and let the agtype dumper do the conversion
    await source.cypher_non_query(CypherQuery(
        graph,
        "CREATE (p:Person) SET p.name = $name, p.age = $age",
        parameter={"name": "Alice", "age": 24},
    ))

    # Raw json text works too
    await source.cypher_non_query(CypherQuery(
        graph,
        "CREATE (p:Person { age: $age, name: $name })",
        parameter=Agtype.from_json(json.dumps({"name": "Bob", "age": 23})),
    ))

    # One connection for the bulk insert, closed by the scope
    async with ResourceScope() as scope:
        conn = await source.acquire_connection(scope)

        rows = {"rows": [
            {"name": "Candace", "age": 25, "job": "software-dev"},
            {"name": "Dmitri", "age": 31},
        ]}
        created = await execute_non_query(conn, CypherQuery(
            graph,
            """
            UNWIND $rows AS row
            CREATE (p:Person) SET p = row
            RETURN p
            """,
            result_shape="r agtype",
            parameter=rows,
            prepare=True,
        ))
        print("Created from rows:", created)

    async for row in source.cypher_rows(CypherQuery(
        graph, "MATCH (n:Person) RETURN n.name, n.age", "name agtype, age agtype"
    )):
        print(row["name"], row["age"])


if __name__ == "__main__":
    logging.basicConfig(level=settings.log_level)
    try:
        asyncio.run(main())
    except Exception as e:
        print("Graph query failed:", e)
