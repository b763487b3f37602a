"""Composable SQL clauses.

A clause is a fragment of SQL text plus the positional arguments its
``?`` placeholders bind to. Clauses are plain immutable values: combining
them never touches a database and never interpolates values into text.

Example:
    >>> c = where("feed_id = ?", 3) + order_by("published_at desc") + limit(10)
    >>> c.text
    'where feed_id = ? order by published_at desc limit ?'
    >>> c.args
    (3, 10)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Clause:
    """An SQL text fragment and its positional arguments."""

    text: str
    args: tuple[Any, ...] = ()

    def __add__(self, other: Clause) -> Clause:
        """Concatenate two clauses, separated by a single space."""
        if not isinstance(other, Clause):
            return NotImplemented
        return Clause(f"{self.text} {other.text}", self.args + other.args)

    def wrap(self) -> Clause:
        """Parenthesize this clause, keeping its arguments.

        Example:
            >>> select("id from feeds").wrap().text
            '(select id from feeds)'
        """
        return Clause(f"({self.text})", self.args)


def clause(text: str, *args: Any) -> Clause:
    """Create a clause from raw text and arguments.

    Example:
        >>> clause("where username = ?", "alice")
    """
    return Clause(text, args)


def where(expr: str, *args: Any) -> Clause:
    """``where <expr>``."""
    return Clause(f"where {expr}", args)


def in_(*args: Any) -> Clause:
    """``in (?,?,...)`` with one placeholder per argument.

    Example:
        >>> where("id") + in_(1, 2, 3)
    """
    placeholders = ",".join("?" for _ in args)
    return Clause(f"in ({placeholders})", args)


def group_by(expr: str) -> Clause:
    return Clause(f"group by {expr}")


def order_by(expr: str) -> Clause:
    return Clause(f"order by {expr}")


def limit(n: int) -> Clause:
    """``limit ?`` bound to ``n``."""
    return Clause("limit ?", (n,))


def inner_join(expr: str) -> Clause:
    return Clause(f"inner join {expr}")


def left_join(expr: str) -> Clause:
    return Clause(f"left join {expr}")


def select(expr: str) -> Clause:
    """``select <expr>``, for sub-selects and unions.

    Example:
        >>> where("id in") + select("feed_id from tags").wrap()
    """
    return Clause(f"select {expr}")


def union(modifier: str = "") -> Clause:
    """``union`` or ``union <modifier>`` (e.g. ``union("all")``)."""
    return Clause(f"union {modifier}" if modifier else "union")


def wrap(c: Clause) -> Clause:
    """Parenthesize an existing clause, keeping its arguments."""
    return c.wrap()


__all__ = [
    "Clause",
    "clause",
    "group_by",
    "in_",
    "inner_join",
    "left_join",
    "limit",
    "order_by",
    "select",
    "union",
    "where",
    "wrap",
]
