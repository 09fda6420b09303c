# Check that the server is reachable and has the age extension
import asyncio

from age_cypher import AgeDataSource, AgeSettings, check_age_installed

# Apache AGE 연결 설정 (AGE_CONNINFO, AGE_GRAPH, ... or .env)
settings = AgeSettings()


async def main():
    source = AgeDataSource.from_settings(settings)

    # 연결 테스트
    async with source.connection() as conn:
        async with conn.cursor() as cur:
            # 간단한 쿼리 실행
            await cur.execute("SELECT version();")
            result = await cur.fetchone()
            print("PostgreSQL Version:", result[0])

        print("AGE Version:", await check_age_installed(conn))
        print("Graph", settings.graph, "exists:", await source.graph_exists(settings.graph))


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except Exception as e:
        print("Connection failed:", e)
