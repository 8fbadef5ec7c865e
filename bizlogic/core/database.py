"""
Async PostgreSQL connection pool module.

This module creates and closes the asyncpg connection pool shared process-wide by
request handlers and the background reference data loaders. The pool is not held
in a module global: it is created once in the FastAPI lifespan and stored on the
application context, which is passed into every component that needs it.

Connection Pool Configuration (from Settings):
- db_pool_min_size: minimum idle connections kept in pool (default 2)
- db_pool_max_size: maximum connections in pool (default 10)
- db_command_timeout: statement timeout in seconds (default 60)

Usage:
    pool = await create_db_pool(settings)
    async with pool.acquire() as conn:
        async with conn.transaction():
            await conn.execute(...)
    await close_db_pool(pool)
"""

import logging
from typing import Optional

import asyncpg
from asyncpg import Pool

from bizlogic.core.config import Settings


logger = logging.getLogger(__name__)


def _redact_dsn(dsn: str) -> str:
    """Hide the password portion of a connection string for logging."""
    if '@' not in dsn or '://' not in dsn:
        return dsn
    scheme, rest = dsn.split('://', 1)
    credentials, host = rest.rsplit('@', 1)
    user = credentials.split(':', 1)[0]
    return f"{scheme}://{user}:*******@{host}"


async def create_db_pool(settings: Settings) -> Pool:
    """
    Create the asyncpg connection pool.

    Args:
        settings: Application settings carrying the DSN and pool tuning.

    Returns:
        Pool: The asyncpg connection pool instance.

    Raises:
        asyncpg.PostgresError: If connection to the database fails.
        OSError: If the database host is unreachable.
    """
    logger.info(f"Connecting to database: {_redact_dsn(settings.database_url)}")
    return await asyncpg.create_pool(
        dsn=settings.database_url,
        min_size=settings.db_pool_min_size,
        max_size=settings.db_pool_max_size,
        command_timeout=settings.db_command_timeout,
    )


async def close_db_pool(pool: Optional[Pool]) -> None:
    """
    Close the database connection pool gracefully.

    Waits for connections to be released before closing. Calling with None is a
    no-op so shutdown works even when startup failed to connect.
    """
    if pool is not None:
        await pool.close()
