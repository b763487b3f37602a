"""Exceptions raised by relmap.

Shape errors (``InvalidModelArg``, ``InvalidModelsArg``, ``MissingIDField``)
are raised before any SQL is built and are never wrapped, so callers can
catch them by class. ``ModelNotFound`` is only raised by single-row fetches.
Everything that goes wrong while talking to the database surfaces as a
``QueryError`` with the driver error chained as ``__cause__``.
"""

from __future__ import annotations


class RelmapError(Exception):
    """Base class for all relmap errors."""

    message: str = "relmap error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.__class__.message
        super().__init__(self.message)


# === Shape errors ===


class InvalidModelArg(RelmapError, TypeError):
    """The target is not a model instance."""

    message = "invalid argument; model instance is required"


class InvalidModelsArg(RelmapError, TypeError):
    """The target is not a model collection."""

    message = "invalid argument; list of model instances or list[Model] is required"


class MissingIDField(RelmapError, TypeError):
    """The model type does not declare an ``id`` column."""

    message = "model must declare an id field"


# === Lookup ===


class ModelNotFound(RelmapError, LookupError):
    """A single-row fetch matched no rows."""

    message = "no matching model was found"


# === Execution ===


class QueryError(RelmapError):
    """A database operation failed.

    The message names the phase that failed (begin, execute, scan, commit);
    the underlying driver error is available as ``__cause__``.
    """

    message = "failed to execute query"


class RowCountError(QueryError):
    """A write affected an unexpected number of rows."""

    def __init__(self, message: str, *, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"{message} (expected {expected}, got {actual})")


# === Configuration ===


class ConfigError(RelmapError, ValueError):
    """Invalid engine URL or settings."""

    message = "invalid configuration"


__all__ = [
    "ConfigError",
    "InvalidModelArg",
    "InvalidModelsArg",
    "MissingIDField",
    "ModelNotFound",
    "QueryError",
    "RelmapError",
    "RowCountError",
]
