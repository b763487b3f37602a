"""Declarative base for models."""

from __future__ import annotations

import sys
import types
import typing
from typing import Any, ClassVar, get_type_hints

from relmap.fields import ColumnInfo, Mapped
from relmap.naming import table_name, to_snake_case


class ModelMeta(type):
    """Metaclass that builds the column descriptor of a model once, at class creation."""

    def __new__(
        mcs,
        name: str,
        bases: tuple[type, ...],
        namespace: dict[str, Any],
        **kwargs: Any,
    ) -> ModelMeta:
        cls = super().__new__(mcs, name, bases, namespace, **kwargs)

        # Skip processing for the Base class itself
        if name == "Base" and not bases:
            return cls

        cls.__tablename__ = table_name(name)  # type: ignore[attr-defined]

        # Resolve annotations against the defining module, with the mapping
        # constructs available even when the module imported them lazily
        module = sys.modules.get(cls.__module__, None)
        globalns = dict(getattr(module, "__dict__", {})) if module else {}
        globalns["ClassVar"] = ClassVar
        globalns["Any"] = Any
        globalns["Mapped"] = Mapped
        globalns["ColumnInfo"] = ColumnInfo
        hints = get_type_hints(cls, globalns=globalns, localns={})

        # get_type_hints walks the MRO from the root, so inherited columns
        # come first and each class keeps its declaration order
        columns: dict[str, ColumnInfo] = {}
        for attr_name, hint in hints.items():
            if attr_name.startswith("_") or typing.get_origin(hint) is not Mapped:
                continue

            python_type, nullable = _extract_mapped_type(hint)
            declared = getattr(cls, attr_name, None)
            if isinstance(declared, ColumnInfo):
                # Clone so subclasses never share a descriptor with their parent
                col = ColumnInfo(
                    nullable=declared.nullable or nullable,
                    default=declared.default,
                )
            else:
                col = ColumnInfo(nullable=nullable)
            col.name = attr_name
            col.column = to_snake_case(attr_name)
            col.python_type = python_type
            columns[attr_name] = col

        cls.__columns__ = columns  # type: ignore[attr-defined]
        cls.__column_names__ = {  # type: ignore[attr-defined]
            col.column: attr_name for attr_name, col in columns.items()
        }
        return cls


def _extract_mapped_type(hint: Any) -> tuple[type | None, bool]:
    """Extract the inner type from a Mapped[T] annotation and whether it is optional."""
    args = typing.get_args(hint)
    if not args:
        return None, False
    inner = args[0]
    origin = typing.get_origin(inner)
    if origin is typing.Union or origin is types.UnionType:
        non_none = [a for a in typing.get_args(inner) if a is not type(None)]
        if len(non_none) == 1:
            return non_none[0], True
        return None, True
    return (inner if isinstance(inner, type) else None), False


class Base(metaclass=ModelMeta):
    """Base class for all models.

    The table name is the snake_cased, pluralized class name and each
    ``Mapped`` attribute becomes a column named after it.

    Example:
        >>> class FeedItem(Base):
        ...     id: Mapped[int]
        ...     title: Mapped[str]
        ...     created_at: Mapped[datetime | None]
        >>> FeedItem.__tablename__
        'feed_items'
    """

    __tablename__: ClassVar[str]
    __columns__: ClassVar[dict[str, ColumnInfo]]
    __column_names__: ClassVar[dict[str, str]]

    def __init__(self, **kwargs: Any) -> None:
        """Initialize a model instance with the given column values."""
        columns = self.__columns__
        for key in kwargs:
            if key not in columns:
                raise TypeError(f"Unknown column: {key}")

        for col_name, col_info in columns.items():
            if col_name in kwargs:
                setattr(self, col_name, kwargs[col_name])
            else:
                setattr(self, col_name, col_info.zero_value())

    def __repr__(self) -> str:
        if "id" in self.__column_names__:
            attr = self.__column_names__["id"]
            return f"<{self.__class__.__name__} {attr}={getattr(self, attr)!r}>"
        return f"<{self.__class__.__name__}>"

    def to_dict(self) -> dict[str, Any]:
        """Convert model instance to a dictionary keyed by attribute name."""
        return {col_name: getattr(self, col_name) for col_name in self.__columns__}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Base:
        """Create a model instance from a dictionary, ignoring unknown keys."""
        return cls(**{k: v for k, v in data.items() if k in cls.__columns__})

    @classmethod
    def _from_values(cls, values: dict[str, Any]) -> Base:
        """Build an instance from already-converted column values.

        Used for scanned rows; bypasses ``__init__`` so no zero values or
        defaults are computed for columns the row already provides.
        """
        instance = object.__new__(cls)
        for key, value in values.items():
            object.__setattr__(instance, key, value)
        return instance
