"""relmap - a minimal async relational-data mapper for SQLite."""

from __future__ import annotations

from relmap.base import Base
from relmap.clause import (
    Clause,
    clause,
    group_by,
    in_,
    inner_join,
    left_join,
    limit,
    order_by,
    select,
    union,
    where,
    wrap,
)
from relmap.client import Client, create_client
from relmap.config import EngineConfig
from relmap.engine import ConnectionPool, create_engine, create_pool
from relmap.exceptions import (
    ConfigError,
    InvalidModelArg,
    InvalidModelsArg,
    MissingIDField,
    ModelNotFound,
    QueryError,
    RelmapError,
    RowCountError,
)
from relmap.fields import Mapped, mapped_column
from relmap.naming import table_name, to_snake_case

__version__ = "0.1.0"

__all__ = [
    # Core
    "create_engine",
    "create_pool",
    "create_client",
    "ConnectionPool",
    "Client",
    "EngineConfig",
    # Model definition
    "Base",
    "Mapped",
    "mapped_column",
    "to_snake_case",
    "table_name",
    # Clauses
    "Clause",
    "clause",
    "where",
    "in_",
    "group_by",
    "order_by",
    "limit",
    "inner_join",
    "left_join",
    "select",
    "union",
    "wrap",
    # Errors
    "RelmapError",
    "InvalidModelArg",
    "InvalidModelsArg",
    "MissingIDField",
    "ModelNotFound",
    "QueryError",
    "RowCountError",
    "ConfigError",
]
