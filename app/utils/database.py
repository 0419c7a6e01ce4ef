"""
Database Connection Utilities
Connection pool lifecycle and schema bootstrap for the customers database
"""

import asyncio
import logging
from typing import Optional

import asyncpg

from app.config import Settings

logger = logging.getLogger(__name__)

# Driver-level failures that services collapse into InternalError
DATABASE_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError)

SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS customers (
        id       BIGSERIAL PRIMARY KEY,
        name     TEXT NOT NULL,
        phone    TEXT NOT NULL UNIQUE,
        password TEXT NOT NULL,
        active   BOOLEAN NOT NULL DEFAULT TRUE,
        created  TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS customers_tokens (
        token       TEXT NOT NULL UNIQUE,
        customer_id BIGINT NOT NULL REFERENCES customers ON DELETE CASCADE,
        expire      TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP + INTERVAL '1 hour',
        created     TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS managers (
        id       BIGSERIAL PRIMARY KEY,
        login    TEXT NOT NULL UNIQUE,
        password TEXT NOT NULL
    )
    """,
)


async def create_pool(settings: Settings) -> asyncpg.Pool:
    """
    Create and test the connection pool

    Args:
        settings: Application settings

    Returns:
        asyncpg.Pool: ready-to-use pool
    """
    # asyncpg pools are awaitable; the pending pool is terminated if startup fails
    pending = asyncpg.create_pool(
        settings.dsn,
        min_size=settings.db_pool_min_size,
        max_size=settings.db_pool_max_size,
        command_timeout=settings.db_command_timeout,
    )
    try:
        pool = await asyncio.wait_for(pending, timeout=settings.db_connect_timeout)
    except DATABASE_ERRORS as e:
        logger.error(f"Failed to initialize database pool: {e}")
        pending.terminate()
        raise

    # Test connection
    try:
        async with pool.acquire() as conn:
            await conn.fetchval("SELECT 1")
    except DATABASE_ERRORS as e:
        logger.error(f"Database connection test failed: {e}")
        await pool.close()
        raise
    logger.info("Database connection pool initialized successfully")
    return pool


async def init_schema(pool: asyncpg.Pool) -> None:
    """Create the customers, customers_tokens and managers tables if missing"""
    async with pool.acquire() as conn:
        async with conn.transaction():
            for statement in SCHEMA_STATEMENTS:
                await conn.execute(statement)
    logger.info("Database schema ready")


async def close_pool(pool: Optional[asyncpg.Pool]) -> None:
    """Close database connection pool"""
    if pool is not None:
        await pool.close()
        logger.info("Database connection pool closed")


async def check_database(pool: asyncpg.Pool) -> bool:
    """Run a trivial query; False when the database is unreachable"""
    try:
        return await pool.fetchval("SELECT 1") == 1
    except DATABASE_ERRORS as e:
        logger.error(f"Database health check failed: {e}")
        return False
