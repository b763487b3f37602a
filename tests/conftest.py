"""Pytest configuration and fixtures."""

import os
from datetime import UTC, datetime, timedelta

import pytest
import pytest_asyncio


class FakeClock:
    """A clock that advances one second on every read."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        current = self.now
        self.now = current + timedelta(seconds=1)
        return current


@pytest_asyncio.fixture
async def sqlite_pool():
    """Create an in-memory SQLite connection pool."""
    from relmap import create_engine

    pool = await create_engine("sqlite::memory:")
    yield pool
    await pool.close()


@pytest_asyncio.fixture
async def file_pool(tmp_path):
    """Create a file-backed SQLite pool with several connections."""
    from relmap import create_engine

    pool = await create_engine(f"sqlite:///{tmp_path / 'test.db'}", max_connections=4)
    yield pool
    await pool.close()


@pytest_asyncio.fixture
async def env_pool():
    """Create a pool from DATABASE_URL.

    Set DATABASE_URL to a SQLite URL to run against a specific database.
    Otherwise, this fixture is skipped.
    """
    from relmap import EngineConfig, create_engine

    if not os.environ.get("DATABASE_URL"):
        pytest.skip("DATABASE_URL not set")

    pool = await create_engine(EngineConfig.from_env())
    yield pool
    await pool.close()


@pytest.fixture
def clock() -> FakeClock:
    """A deterministic clock starting at 2024-01-01 00:00:00 UTC."""
    return FakeClock(datetime(2024, 1, 1, tzinfo=UTC))
