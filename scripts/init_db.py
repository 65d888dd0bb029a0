import asyncio

from userdesk.core.config import Settings
from userdesk.core.lifecycle import build_container, shutdown, startup


async def main() -> None:
    settings = Settings()
    if not settings.db_name:
        raise RuntimeError("Set DB_HOST, DB_USER, DB_PASSWORD and DB_NAME in the environment or a .env file.")

    container = build_container(settings)
    await startup(container)
    ready = await container.pool.ping()
    await shutdown(container)

    print(f"Schema ready on {settings.db_host}:{settings.db_port}/{settings.db_name}", "(ping ok)" if ready else "(ping failed)")


if __name__ == "__main__":
    asyncio.run(main())
