"""Transactional execution of queries.

Every query runs inside its own transaction on a pooled connection:

    begin -> execute -> (scan | check rows affected) -> commit

Any failure along the way rolls the transaction back and propagates. Read
queries open a deferred transaction; write queries open an immediate one so
the write lock is held from upsert's existence check through to the commit.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any

import aiosqlite

from relmap.base import Base
from relmap.clause import where
from relmap.engine import ConnectionPool
from relmap.exceptions import ModelNotFound, QueryError, RowCountError
from relmap.introspect import (
    ID_FIELD,
    MANAGED_FIELDS,
    get_field,
    has_field,
    scan_row,
    set_field,
)
from relmap.query import (
    DeleteQuery,
    InsertQuery,
    Query,
    SelectAllQuery,
    SelectCountQuery,
    SelectOneQuery,
    UpdateQuery,
    UpsertQuery,
    build_insert,
    build_select_count,
    build_update,
)

logger = logging.getLogger(__name__)


class Transaction:
    """An open transaction on one connection.

    Statement helpers translate driver errors into QueryError and always
    close their cursor.
    """

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def _execute(self, sql: str, args: list[Any]) -> aiosqlite.Cursor:
        logger.debug("%s %r", sql, args)
        try:
            return await self._conn.execute(sql, args)
        except aiosqlite.Error as exc:
            raise QueryError("failed to execute statement") from exc

    async def fetch_one(self, sql: str, args: list[Any]) -> Any:
        """Return the first row, or None. Remaining rows are not read."""
        cursor = await self._execute(sql, args)
        try:
            return await cursor.fetchone()
        except aiosqlite.Error as exc:
            raise QueryError("failed to scan row") from exc
        finally:
            await cursor.close()

    async def fetch_all(self, sql: str, args: list[Any]) -> list[Any]:
        cursor = await self._execute(sql, args)
        try:
            return list(await cursor.fetchall())
        except aiosqlite.Error as exc:
            raise QueryError("failed to scan rows") from exc
        finally:
            await cursor.close()

    async def write(self, sql: str, args: list[Any]) -> tuple[int, int | None]:
        """Run a write statement and return (rows affected, last inserted row id)."""
        cursor = await self._execute(sql, args)
        try:
            return cursor.rowcount, cursor.lastrowid
        finally:
            await cursor.close()


async def _rollback(conn: aiosqlite.Connection) -> None:
    try:
        await conn.execute("rollback")
    except aiosqlite.Error:
        # The pool discards connections left inside a transaction
        logger.warning("rollback failed", exc_info=True)


@asynccontextmanager
async def transaction(pool: ConnectionPool, *, immediate: bool = False) -> AsyncIterator[Transaction]:
    """Open a transaction that commits on success and rolls back on error.

    Example:
        >>> async with transaction(pool, immediate=True) as tx:
        ...     await tx.write("update feeds set title = ? where id = ?", ["News", 1])
    """
    async with pool.connection() as conn:
        try:
            await conn.execute("begin immediate" if immediate else "begin")
        except aiosqlite.Error as exc:
            raise QueryError("failed to begin transaction") from exc

        try:
            yield Transaction(conn)
        except Exception as exc:
            logger.debug("rolling back transaction: %s", exc)
            await _rollback(conn)
            raise

        try:
            await conn.execute("commit")
        except aiosqlite.Error as exc:
            logger.debug("rolling back transaction: commit failed: %s", exc)
            await _rollback(conn)
            raise QueryError("failed to commit transaction") from exc


# ========== Per-kind runners ==========


def _target(query: Any) -> Base:
    if query.target is None:
        raise QueryError(f"{type(query).__name__} has no target model")
    return query.target


async def _run_select_one(tx: Transaction, query: SelectOneQuery) -> Base:
    target = _target(query)
    row = await tx.fetch_one(query.sql, query.args)
    if row is None:
        raise ModelNotFound()

    # Scan everything before assigning so a bad row leaves the target untouched
    values = scan_row(type(target), row)
    for attr_name, value in values.items():
        setattr(target, attr_name, value)
    return target


async def _run_select_all(tx: Transaction, query: SelectAllQuery) -> list[Base]:
    model = query.model
    if model is None:
        raise QueryError("SelectAllQuery has no model type")
    rows = await tx.fetch_all(query.sql, query.args)
    return [model._from_values(scan_row(model, row)) for row in rows]


async def _run_select_count(tx: Transaction, query: SelectCountQuery) -> int:
    row = await tx.fetch_one(query.sql, query.args)
    if row is None:
        raise QueryError("no result returned")
    return int(row[0])


async def _run_insert(tx: Transaction, query: InsertQuery) -> Base:
    target = _target(query)
    rowcount, lastrowid = await tx.write(query.sql, query.args)
    if rowcount != 1:
        raise RowCountError("expected one row to be affected", expected=1, actual=rowcount)
    if lastrowid is None:
        raise QueryError("failed to get last inserted id")

    set_field(target, ID_FIELD, lastrowid)
    for column, value in query.writeback.items():
        set_field(target, column, value)
    return target


async def _run_update(tx: Transaction, query: UpdateQuery) -> Base:
    target = _target(query)
    rowcount, _ = await tx.write(query.sql, query.args)
    if rowcount != 1:
        raise RowCountError("expected one row to be affected", expected=1, actual=rowcount)

    for column, value in query.writeback.items():
        set_field(target, column, value)
    return target


async def _run_upsert(tx: Transaction, query: UpsertQuery) -> Base:
    target = _target(query)
    if query.clock is None:
        raise QueryError("UpsertQuery has no clock")

    # The id and the time are read only now, with the write lock held, so a
    # concurrent save of the same instance that committed first is seen as
    # an update and timestamps follow commit order
    now = query.clock()
    count_query = build_select_count(
        type(target).__tablename__,
        where(f"{ID_FIELD} = ?", get_field(target, ID_FIELD)),
    )
    if await _run_select_count(tx, count_query) > 0:
        return await _run_update(tx, build_update(target, now))
    return await _run_insert(tx, build_insert(target, now))


async def _run_delete(tx: Transaction, query: DeleteQuery) -> None:
    rowcount, _ = await tx.write(query.sql, query.args)
    if rowcount != len(query.models):
        raise RowCountError(
            "expected all models to be deleted",
            expected=len(query.models),
            actual=rowcount,
        )


_RUNNERS: dict[type[Query], Callable[[Transaction, Any], Awaitable[Any]]] = {
    SelectOneQuery: _run_select_one,
    SelectAllQuery: _run_select_all,
    SelectCountQuery: _run_select_count,
    InsertQuery: _run_insert,
    UpdateQuery: _run_update,
    UpsertQuery: _run_upsert,
    DeleteQuery: _run_delete,
}


def _snapshot(query: Query) -> dict[str, Any]:
    """Capture the fields a write may assign, so a failed write can undo them."""
    target = getattr(query, "target", None)
    if not query.writes or target is None:
        return {}
    cls = type(target)
    return {
        column: get_field(target, column)
        for column in (ID_FIELD, *MANAGED_FIELDS)
        if has_field(cls, column)
    }


async def execute(query: Query, pool: ConnectionPool) -> Any:
    """Run a query in its own transaction and return its result.

    Returns the target model for single-model queries, a list of new
    instances for SelectAllQuery, an int for SelectCountQuery and None for
    DeleteQuery.

    Raises:
        ModelNotFound: A SelectOneQuery matched no rows
        QueryError: Any database failure; the transaction is rolled back
    """
    runner = _RUNNERS[type(query)]
    snapshot: dict[str, Any] = {}
    try:
        async with transaction(pool, immediate=query.writes) as tx:
            # Taken with the write lock held, after any concurrent write of
            # the same model has committed
            snapshot = _snapshot(query)
            return await runner(tx, query)
    except Exception:
        target = getattr(query, "target", None)
        for column, value in snapshot.items():
            set_field(target, column, value)  # type: ignore[arg-type]
        raise
