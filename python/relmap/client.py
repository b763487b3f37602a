"""Client facade over the query builders and the executor."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any, TypeVar

from relmap.base import Base
from relmap.clause import Clause
from relmap.engine import ConnectionPool
from relmap.exceptions import InvalidModelArg
from relmap.query import (
    build_delete,
    build_select_all,
    build_select_count,
    build_select_one,
    build_upsert,
)
from relmap.session import execute

M = TypeVar("M", bound=Base)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Client:
    """Persist and retrieve models through a connection pool.

    Every call runs in its own transaction. Shape errors are raised before a
    connection is taken.

    Example:
        >>> client = Client(pool)
        >>> feed = await client.save(Feed(url="https://example.com/rss"))
        >>> feeds = await client.find_all(list[Feed], order_by("id desc"), limit(10))
    """

    def __init__(
        self,
        pool: ConnectionPool,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.pool = pool
        self._clock = clock or _utcnow

    async def all(self, models: type[list[M]]) -> list[M]:
        """Fetch every row of a model's table.

        Args:
            models: A ``list[Model]`` alias naming the model type

        Raises:
            InvalidModelsArg: If ``models`` is not a ``list[Model]`` alias
            MissingIDField: If the model has no ``id`` column
        """
        return await self.find_all(models)

    async def find(self, model: M, *clauses: Clause) -> M:
        """Load the first row matching ``clauses`` into ``model``.

        Raises:
            ModelNotFound: If no row matches; ``model`` is left unchanged
        """
        return await execute(build_select_one(model, *clauses), self.pool)

    async def find_all(self, models: type[list[M]], *clauses: Clause) -> list[M]:
        """Fetch all rows matching ``clauses`` as new model instances.

        Example:
            >>> await client.find_all(list[Feed], where("id") + in_(1, 2))
        """
        return await execute(build_select_all(models, *clauses), self.pool)

    async def save(self, model: M) -> M:
        """Insert ``model`` or update its row, keyed on ``id``.

        A new row gets its id written back into ``model``. ``created_at`` and
        ``updated_at`` are managed when the model declares them.
        """
        return await execute(build_upsert(model, self._clock), self.pool)

    async def delete_all(self, models: list[Any]) -> None:
        """Delete the rows of a list of models of one type.

        Raises:
            InvalidModelsArg: If ``models`` mixes types or holds non-models
            RowCountError: If not every model had a row; nothing is deleted
        """
        if isinstance(models, list) and not models:
            return
        await execute(build_delete(models), self.pool)

    async def count(self, model: type[Base], *clauses: Clause) -> int:
        """Count the rows of a model's table matching ``clauses``."""
        if not (isinstance(model, type) and issubclass(model, Base) and model is not Base):
            raise InvalidModelArg()
        return await execute(build_select_count(model.__tablename__, *clauses), self.pool)


def create_client(pool: ConnectionPool, **kwargs: Any) -> Client:
    """Create a client bound to ``pool``.

    Example:
        >>> engine = await create_engine("sqlite:///feeds.db")
        >>> client = create_client(engine)
    """
    return Client(pool, **kwargs)
