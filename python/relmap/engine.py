"""SQLite connection pool built on aiosqlite."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from typing import Any

import aiosqlite

from relmap.config import EngineConfig
from relmap.exceptions import ConfigError, QueryError

logger = logging.getLogger(__name__)

MEMORY = ":memory:"

_MEMORY_URLS = {"sqlite::memory:", "sqlite://:memory:", "sqlite:///:memory:", MEMORY}


def parse_url(url: str) -> str:
    """Turn a database URL into the path aiosqlite should open.

    Example:
        >>> parse_url("sqlite:///data/feeds.db")
        'data/feeds.db'
        >>> parse_url("sqlite::memory:")
        ':memory:'
    """
    if url in _MEMORY_URLS:
        return MEMORY
    if url.startswith("sqlite:///"):
        path = url[len("sqlite:///"):]
        if not path:
            raise ConfigError(f"missing database path in URL: {url}")
        return path
    if "://" in url or url.startswith("sqlite:"):
        raise ConfigError(f"unsupported database URL: {url}")
    return url


class ConnectionPool:
    """A bounded set of aiosqlite connections.

    Connections run in autocommit mode; transactions are opened explicitly
    by the executor. An in-memory database is private to the connection
    that created it, so its pool never holds more than one connection.
    """

    def __init__(
        self,
        database: str,
        *,
        max_connections: int = 5,
        busy_timeout: float = 5.0,
    ) -> None:
        self.database = database
        self.max_connections = 1 if database == MEMORY else max_connections
        self._busy_timeout = busy_timeout
        self._idle: list[aiosqlite.Connection] = []
        self._slots = asyncio.Semaphore(self.max_connections)
        self._closed = False

    def is_memory(self) -> bool:
        return self.database == MEMORY

    async def _connect(self) -> aiosqlite.Connection:
        logger.debug("opening connection to %s", self.database)
        try:
            return await aiosqlite.connect(
                self.database,
                timeout=self._busy_timeout,
                isolation_level=None,
            )
        except aiosqlite.Error as exc:
            raise QueryError(f"failed to open database {self.database}") from exc

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """Check out a connection for the duration of the block.

        A connection that comes back with a transaction still open is closed
        instead of being reused.
        """
        if self._closed:
            raise QueryError("connection pool is closed")

        async with self._slots:
            conn = self._idle.pop() if self._idle else await self._connect()
            try:
                yield conn
            finally:
                if self._closed or conn.in_transaction:
                    logger.debug("closing connection to %s", self.database)
                    await conn.close()
                else:
                    self._idle.append(conn)

    async def execute(self, sql: str, params: Sequence[Any] = ()) -> list[Any]:
        """Run one statement outside of any transaction and return its rows.

        Intended for schema setup and ad-hoc statements.

        Example:
            >>> await pool.execute("CREATE TABLE feeds (id INTEGER PRIMARY KEY, url TEXT)")
        """
        async with self.connection() as conn:
            logger.debug("%s %r", sql, list(params))
            try:
                async with conn.execute(sql, tuple(params)) as cursor:
                    return list(await cursor.fetchall())
            except aiosqlite.Error as exc:
                raise QueryError("failed to execute statement") from exc

    async def close(self) -> None:
        """Close all idle connections; checked-out ones close when returned."""
        self._closed = True
        while self._idle:
            conn = self._idle.pop()
            logger.debug("closing connection to %s", self.database)
            await conn.close()


async def create_pool(
    url: str,
    max_connections: int = 5,
    busy_timeout: float = 5.0,
) -> ConnectionPool:
    """Create a connection pool for a database URL."""
    return ConnectionPool(
        parse_url(url),
        max_connections=max_connections,
        busy_timeout=busy_timeout,
    )


async def create_engine(
    url: str | EngineConfig,
    *,
    max_connections: int = 5,
    busy_timeout: float = 5.0,
) -> ConnectionPool:
    """Create a database connection pool.

    Args:
        url: Database URL or a complete EngineConfig.
            - File: sqlite:///path/to/db.sqlite (or a bare path)
            - Memory: sqlite::memory:
        max_connections: Maximum number of connections in the pool.
        busy_timeout: Seconds to wait for a lock held by another connection.

    Returns:
        A ConnectionPool instance.

    Example:
        >>> engine = await create_engine("sqlite:///app.db")
        >>> engine = await create_engine(EngineConfig.from_env())
    """
    if isinstance(url, EngineConfig):
        config = url
    else:
        config = EngineConfig(url, max_connections=max_connections, busy_timeout=busy_timeout)

    if config.echo:
        logging.getLogger("relmap").setLevel(logging.DEBUG)

    return await create_pool(config.url, config.max_connections, config.busy_timeout)
