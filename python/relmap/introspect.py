"""Structural checks and field access for model targets.

Every query builder runs its target through these checks before any SQL is
produced. Nothing here touches the database or mutates a model.
"""

from __future__ import annotations

import inspect
import typing
from collections.abc import Sequence
from typing import Any

from relmap.base import Base
from relmap.exceptions import QueryError

ID_FIELD = "id"
CREATED_AT_FIELD = "created_at"
UPDATED_AT_FIELD = "updated_at"
MANAGED_FIELDS = (CREATED_AT_FIELD, UPDATED_AT_FIELD)


def _is_model_class(obj: Any) -> bool:
    return inspect.isclass(obj) and issubclass(obj, Base) and obj is not Base


def is_single_model(target: Any) -> bool:
    """Return True if ``target`` is a model instance."""
    return not inspect.isclass(target) and _is_model_class(type(target))


def is_model_collection(target: Any) -> bool:
    """Return True if ``target`` is a ``list[Model]`` alias.

    Example:
        >>> is_model_collection(list[Feed])
        True
        >>> is_model_collection(list[int])
        False
    """
    if typing.get_origin(target) is not list:
        return False
    args = typing.get_args(target)
    return len(args) == 1 and _is_model_class(args[0])


def is_model_list(target: Any) -> bool:
    """Return True if ``target`` is a non-empty list of instances of one model class."""
    if not isinstance(target, list) or not target:
        return False
    cls = type(target[0])
    return _is_model_class(cls) and all(type(item) is cls for item in target)


def model_type(target: Base) -> type[Base]:
    """Return the model class of a single model."""
    return type(target)


def collection_model_type(target: Any) -> type[Base]:
    """Return the element model class of a ``list[Model]`` alias."""
    return typing.get_args(target)[0]


def has_field(model_cls: type[Base], name: str) -> bool:
    """Return True if the model declares ``name`` as an attribute or column name."""
    return name in model_cls.__columns__ or name in model_cls.__column_names__


def has_id_field(model_cls: type[Base]) -> bool:
    """Return True if the model declares an ``id`` column."""
    return has_field(model_cls, ID_FIELD)


def get_field(model: Base, column: str) -> Any:
    """Read a column's current value from a model."""
    return getattr(model, type(model).__column_names__[column])


def set_field(model: Base, column: str, value: Any) -> None:
    """Write a column's value into a model."""
    setattr(model, type(model).__column_names__[column], value)


def fields_excluding(model: Base, *excluded: str) -> tuple[list[str], list[Any]]:
    """Enumerate columns and storage values in declaration order.

    Columns whose attribute or column name is listed in ``excluded`` are
    skipped.
    """
    columns: list[str] = []
    values: list[Any] = []
    for attr_name, col in type(model).__columns__.items():
        if attr_name in excluded or col.column in excluded:
            continue
        columns.append(col.column)  # type: ignore[arg-type]
        values.append(col.to_db(getattr(model, attr_name)))
    return columns, values


def scan_row(model_cls: type[Base], row: Sequence[Any]) -> dict[str, Any]:
    """Map a result row onto the model's columns positionally.

    The leading columns of the row are assigned to the model's columns in
    declaration order. Extra trailing columns (from joins) are ignored.
    """
    columns = model_cls.__columns__
    if len(row) < len(columns):
        raise QueryError(
            f"failed to scan model: {model_cls.__name__} has {len(columns)} fields "
            f"but the row has {len(row)} columns"
        )
    return {
        attr_name: col.from_db(value)
        for (attr_name, col), value in zip(columns.items(), row)
    }
