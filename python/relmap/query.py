"""Query builders for model operations.

Each builder checks the shape of its target first and raises the matching
shape error before any SQL exists, so a returned query is always usable.
Builders never read a clock: insert and update take the timestamp to store in
managed fields as an explicit ``now`` argument, and upsert carries the clock
for the executor to read.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from relmap.base import Base
from relmap.clause import Clause, in_, where
from relmap.exceptions import InvalidModelArg, InvalidModelsArg, MissingIDField
from relmap.introspect import (
    ID_FIELD,
    MANAGED_FIELDS,
    UPDATED_AT_FIELD,
    collection_model_type,
    fields_excluding,
    get_field,
    has_field,
    has_id_field,
    is_model_collection,
    is_model_list,
    is_single_model,
    model_type,
)


@dataclass
class Query:
    """SQL text and arguments accumulated for one operation."""

    sql: str
    args: list[Any] = field(default_factory=list)

    writes = False

    def add(self, c: Clause) -> None:
        """Append a clause, separated by a single space."""
        self.sql = f"{self.sql} {c.text}"
        self.args.extend(c.args)

    def add_all(self, *clauses: Clause) -> None:
        for c in clauses:
            self.add(c)

    def to_sql(self) -> tuple[str, list[Any]]:
        """Return the SQL string and a copy of its parameters."""
        return self.sql, list(self.args)


@dataclass
class SelectOneQuery(Query):
    """Fetches the first matching row into an existing model instance."""

    target: Base | None = None


@dataclass
class SelectAllQuery(Query):
    """Fetches every matching row as new instances of ``model``."""

    model: type[Base] | None = None


@dataclass
class SelectCountQuery(Query):
    """Fetches a single integer."""


@dataclass
class InsertQuery(Query):
    """Inserts a model; ``writeback`` holds the managed values to copy into it."""

    target: Base | None = None
    writeback: dict[str, Any] = field(default_factory=dict)

    writes = True


@dataclass
class UpdateQuery(Query):
    """Updates a model's row by id; ``writeback`` as for InsertQuery."""

    target: Base | None = None
    writeback: dict[str, Any] = field(default_factory=dict)

    writes = True


@dataclass
class UpsertQuery(Query):
    """Inserts or updates a model, decided inside the executing transaction.

    ``clock`` is read once the write lock is held, so timestamps follow
    commit order.
    """

    target: Base | None = None
    clock: Callable[[], datetime] | None = None

    writes = True


@dataclass
class DeleteQuery(Query):
    """Deletes a list of models by id."""

    models: list[Base] = field(default_factory=list)

    writes = True


def _check_single_model(target: Any) -> type[Base]:
    if not is_single_model(target):
        raise InvalidModelArg()
    cls = model_type(target)
    if not has_id_field(cls):
        raise MissingIDField()
    return cls


def _managed_columns(cls: type[Base], names: tuple[str, ...], now: datetime) -> tuple[list[str], list[Any], dict[str, Any]]:
    columns: list[str] = []
    values: list[Any] = []
    writeback: dict[str, Any] = {}
    for name in names:
        if not has_field(cls, name):
            continue
        col = cls.__columns__[cls.__column_names__[name]]
        columns.append(name)
        values.append(col.to_db(now))
        writeback[name] = now
    return columns, values, writeback


def build_select_one(target: Any, *clauses: Clause) -> SelectOneQuery:
    """Build ``select * from <table>`` plus clauses for a single model.

    Example:
        >>> q = build_select_one(Feed(), where("url = ?", url))
        >>> q.sql
        'select * from feeds where url = ?'
    """
    cls = _check_single_model(target)
    query = SelectOneQuery(f"select * from {cls.__tablename__}", target=target)
    query.add_all(*clauses)
    return query


def build_select_all(target: Any, *clauses: Clause) -> SelectAllQuery:
    """Build ``select * from <table>`` plus clauses for a ``list[Model]`` target."""
    if not is_model_collection(target):
        raise InvalidModelsArg()
    cls = collection_model_type(target)
    if not has_id_field(cls):
        raise MissingIDField()
    query = SelectAllQuery(f"select * from {cls.__tablename__}", model=cls)
    query.add_all(*clauses)
    return query


def build_select_count(table: str, *clauses: Clause) -> SelectCountQuery:
    """Build ``select count(*) from <table>`` plus clauses."""
    query = SelectCountQuery(f"select count(*) from {table}")
    query.add_all(*clauses)
    return query


def build_insert(target: Any, now: datetime) -> InsertQuery:
    """Build an insert for every column except ``id``.

    ``created_at`` and ``updated_at`` are always written with ``now`` when
    the model declares them, whatever the caller put there.
    """
    cls = _check_single_model(target)
    columns, values = fields_excluding(target, ID_FIELD, *MANAGED_FIELDS)
    managed, managed_values, writeback = _managed_columns(cls, MANAGED_FIELDS, now)
    columns += managed
    values += managed_values

    if columns:
        placeholders = ",".join("?" for _ in columns)
        sql = f"insert into {cls.__tablename__} ({','.join(columns)}) values ({placeholders})"
    else:
        sql = f"insert into {cls.__tablename__} default values"
    return InsertQuery(sql, values, target=target, writeback=writeback)


def build_update(target: Any, now: datetime) -> UpdateQuery:
    """Build an update of every column except ``id`` and ``created_at``.

    ``updated_at`` is set to ``now`` when declared. The row is selected by
    the model's current id.
    """
    cls = _check_single_model(target)
    columns, values = fields_excluding(target, ID_FIELD, *MANAGED_FIELDS)
    managed, managed_values, writeback = _managed_columns(cls, (UPDATED_AT_FIELD,), now)
    columns += managed
    values += managed_values

    # An id-only model still needs a syntactically valid set list
    assignments = ",".join(f"{c}=?" for c in columns) or f"{ID_FIELD}={ID_FIELD}"
    query = UpdateQuery(
        f"update {cls.__tablename__} set {assignments}",
        values,
        target=target,
        writeback=writeback,
    )
    query.add(where(f"{ID_FIELD} = ?", get_field(target, ID_FIELD)))
    return query


def build_upsert(target: Any, clock: Callable[[], datetime]) -> UpsertQuery:
    """Build an upsert; the executor checks for an existing row in the same transaction."""
    _check_single_model(target)
    return UpsertQuery("", target=target, clock=clock)


def build_delete(models: Any) -> DeleteQuery:
    """Build ``delete from <table> where id in (...)`` for a list of models."""
    if not is_model_list(models):
        raise InvalidModelsArg()
    cls = type(models[0])
    if not has_id_field(cls):
        raise MissingIDField()
    query = DeleteQuery(f"delete from {cls.__tablename__}", models=list(models))
    query.add_all(where(ID_FIELD), in_(*(get_field(m, ID_FIELD) for m in models)))
    return query
