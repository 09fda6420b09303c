import asyncio
import logging

from age_cypher import AgeDataSource, AgeSettings, CypherQuery

settings = AgeSettings()
graph = settings.graph


async def main():
    source = AgeDataSource.from_settings(settings)

    # 그래프가 없으면 생성
    await source.ensure_graph(graph)

    # 간단한 그래프 쿼리 테스트
    await source.cypher_non_query(
        CypherQuery(graph, "CREATE (:Person {age: 23}), (:Person {age: 78})")
    )

    query = CypherQuery(graph, "MATCH (n:Person) RETURN n", "person agtype")
    async for row in source.cypher_rows(query):
        person = row["person"]
        print(person.label, person.id, person.properties)


if __name__ == "__main__":
    logging.basicConfig(level=settings.log_level)
    try:
        asyncio.run(main())
    except Exception as e:
        print("Graph query failed:", e)
