"""Create the integration test database named by DATABASE_URL if it is missing."""

from __future__ import annotations

import asyncio

import asyncpg
import structlog

from badger.core.config import get_settings
from badger.core.integration_db_safety import IntegrationDbTarget, assert_safe_integration_db
from badger.core.logging import configure_logging

logger = structlog.get_logger("ensure_test_db")


async def ensure_database(target: IntegrationDbTarget) -> bool:
    if target.username is None:
        raise RuntimeError("DATABASE_URL must include a username")

    # the maintenance database is always present on a PostgreSQL server
    conn = await asyncpg.connect(
        host=target.host,
        port=target.port,
        user=target.username,
        password=target.password,
        database="postgres",
    )
    try:
        if await conn.fetchval(
            "SELECT 1 FROM pg_database WHERE datname = $1", target.database_name
        ):
            logger.info("ensure_test_db_present", database=target.database_name, host=target.host)
            return False
        await conn.execute(f'CREATE DATABASE "{target.database_name}"')
    finally:
        await conn.close()

    logger.info("ensure_test_db_created", database=target.database_name, host=target.host)
    return True


def main() -> int:
    settings = get_settings()
    configure_logging(settings.log_level, json_output=settings.log_json)
    target = assert_safe_integration_db(settings.database_url)
    asyncio.run(ensure_database(target))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
