# Connect the people created by test02params.py and read the edges back
import asyncio
import logging

from age_cypher import AgeDataSource, AgeSettings, CypherQuery, Edge

settings = AgeSettings()
graph = settings.graph

CONNECT_PEOPLE = """
MATCH (a:Person {name: 'Alice'}), (b:Person {name: 'Bob'}), (c:Person {name: 'Candace'})
UNWIND $rows AS row
WITH a, b, c, row
CREATE (a)-[ab:FRIENDS]->(b),
       (b)-[ba:FRIENDS]->(a),
       (b)-[bc:COLLEAGUES]->(c),
       (c)-[cb:COLLEAGUES]->(b)
SET ab = row.abFriends,
    ba = row.abFriends,
    bc = row.bcColleagues,
    cb = row.bcColleagues
RETURN a, b, c, ab, bc
"""


async def main():
    # 풀 연결 사용
    async with AgeDataSource.from_settings(settings, pooled=True) as source:
        await source.ensure_graph(graph, serialize=True)

        data = {"rows": [
            {"abFriends": {"since": "2023"},
             "bcColleagues": {"since": "2020", "job": "software-dev"}},
        ]}
        query = CypherQuery(
            graph, CONNECT_PEOPLE,
            "a agtype, b agtype, c agtype, abFriends agtype, bcColleagues agtype",
            parameter=data,
        )
        async for row in source.cypher_rows(query):
            for name in ("a", "b", "c"):
                print(name, row[name])
            for name in ("abFriends", "bcColleagues"):
                print(name, row[name])

        edges = CypherQuery(graph, "MATCH p = (:Person)-[:FRIENDS]->(:Person) RETURN p", "p agtype")
        async for row in source.cypher_rows(edges):
            path = row["p"]
            edge: Edge = path.edges[0]
            print(path.vertices[0]["name"], edge.label, path.vertices[-1]["name"], edge.properties)


if __name__ == "__main__":
    logging.basicConfig(level=settings.log_level)
    try:
        asyncio.run(main())
    except Exception as e:
        print("Graph query failed:", e)
