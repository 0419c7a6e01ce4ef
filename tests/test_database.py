"""
Database utility tests
"""

import asyncio

import pytest
from unittest.mock import MagicMock, patch

from app.config import Settings
from app.utils.database import SCHEMA_STATEMENTS, check_database, close_pool, create_pool, init_schema


class PendingPool:
    """Stand-in for the awaitable object returned by asyncpg.create_pool"""

    def __init__(self, pool=None, error=None):
        self.pool = pool
        self.error = error
        self.terminate = MagicMock()

    def __await__(self):
        if self.error is not None:
            raise self.error
        return self.pool
        yield


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        database_url="postgresql://u:p@db:5432/customers",
        db_pool_min_size=2,
        db_pool_max_size=4,
        db_command_timeout=3.0,
    )


class StalledPool(PendingPool):
    """Pending pool whose connections never come up"""

    def __await__(self):
        while True:
            yield


@pytest.mark.asyncio
async def test_init_schema_creates_all_tables(mock_db_pool):
    await init_schema(mock_db_pool)

    executed = [call.args[0] for call in mock_db_pool.conn.execute.await_args_list]
    assert len(executed) == len(SCHEMA_STATEMENTS) == 3
    for table in ("customers", "customers_tokens", "managers"):
        assert any(f"CREATE TABLE IF NOT EXISTS {table} " in statement for statement in executed)


@pytest.mark.asyncio
async def test_create_pool_uses_settings(settings, mock_db_pool):
    pending = PendingPool(pool=mock_db_pool)

    with patch("app.utils.database.asyncpg.create_pool", MagicMock(return_value=pending)) as create:
        pool = await create_pool(settings)

    assert pool is mock_db_pool
    create.assert_called_once_with(
        "postgresql://u:p@db:5432/customers",
        min_size=2,
        max_size=4,
        command_timeout=3.0,
    )
    mock_db_pool.conn.fetchval.assert_awaited_once_with("SELECT 1")
    pending.terminate.assert_not_called()


@pytest.mark.asyncio
async def test_create_pool_failure_terminates_pending_pool(settings):
    pending = PendingPool(error=OSError("refused"))

    with patch("app.utils.database.asyncpg.create_pool", MagicMock(return_value=pending)):
        with pytest.raises(OSError):
            await create_pool(settings)

    pending.terminate.assert_called_once()


@pytest.mark.asyncio
async def test_create_pool_timeout_terminates_pending_pool(settings):
    settings = settings.model_copy(update={"db_connect_timeout": 0.01})
    pending = StalledPool()

    with patch("app.utils.database.asyncpg.create_pool", MagicMock(return_value=pending)):
        with pytest.raises(asyncio.TimeoutError):
            await create_pool(settings)

    pending.terminate.assert_called_once()


@pytest.mark.asyncio
async def test_create_pool_closes_pool_when_test_query_fails(settings, mock_db_pool):
    mock_db_pool.conn.fetchval.side_effect = OSError("reset")

    with patch("app.utils.database.asyncpg.create_pool", MagicMock(return_value=PendingPool(pool=mock_db_pool))):
        with pytest.raises(OSError):
            await create_pool(settings)

    mock_db_pool.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_check_database(mock_db_pool):
    mock_db_pool.fetchval.return_value = 1
    assert await check_database(mock_db_pool) is True

    mock_db_pool.fetchval.side_effect = OSError("down")
    assert await check_database(mock_db_pool) is False


@pytest.mark.asyncio
async def test_close_pool(mock_db_pool):
    await close_pool(mock_db_pool)
    mock_db_pool.close.assert_awaited_once()

    # Closing nothing is a no-op
    await close_pool(None)
