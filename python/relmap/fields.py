"""Column and field definitions for models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Generic, TypeVar

T = TypeVar("T")

_MISSING: Any = object()

# Zero values for unset non-nullable columns. Time-valued columns have no
# meaningful zero and start out as None.
_ZERO_VALUES: dict[type, Any] = {
    bool: False,
    int: 0,
    float: 0.0,
    str: "",
    bytes: b"",
}


class Mapped(Generic[T]):
    """Type annotation wrapper indicating a database-mapped column.

    Example:
        >>> class Feed(Base):
        ...     id: Mapped[int]
        ...     url: Mapped[str]
        ...     fetched_at: Mapped[datetime | None]
    """

    pass


@dataclass
class ColumnInfo:
    """Stores metadata about a database column."""

    name: str | None = None
    """Attribute name on the model class."""

    column: str | None = None
    """Database column name, derived from the attribute name."""

    python_type: type | None = None
    nullable: bool = False
    default: Any = _MISSING

    def zero_value(self) -> Any:
        """Value a fresh instance gets when the caller did not set this column."""
        if self.default is not _MISSING:
            return self.default() if callable(self.default) else self.default
        if self.nullable:
            return None
        return _ZERO_VALUES.get(self.python_type)  # type: ignore[arg-type]

    def to_db(self, value: Any) -> Any:
        """Convert a Python value into what gets bound as a SQL parameter."""
        if isinstance(value, (datetime, date)):
            return value.isoformat()
        return value

    def from_db(self, value: Any) -> Any:
        """Convert a value scanned from a row back into the column's Python type."""
        if value is None:
            return None
        if self.python_type is datetime and isinstance(value, str):
            return datetime.fromisoformat(value)
        if self.python_type is date and isinstance(value, str):
            return date.fromisoformat(value)
        if self.python_type is bool and isinstance(value, int):
            return bool(value)
        return value


def mapped_column(
    *,
    nullable: bool = False,
    default: Any = _MISSING,
) -> Any:
    """Define a database column with extra options.

    A bare ``Mapped[T]`` annotation is enough for most columns; use this
    only to set a default or force nullability.

    Args:
        nullable: Whether NULL values are allowed (implied by ``T | None``)
        default: Default value for new instances (can be callable)

    Returns:
        A ColumnInfo descriptor

    Example:
        >>> title: Mapped[str] = mapped_column(default="untitled")
        >>> seen: Mapped[bool] = mapped_column(default=False)
    """
    return ColumnInfo(nullable=nullable, default=default)
