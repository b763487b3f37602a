"""Engine configuration."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from relmap.exceptions import ConfigError

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


@dataclass
class EngineConfig:
    """Settings for a connection pool.

    Example:
        >>> config = EngineConfig("sqlite:///feeds.db", max_connections=4)
        >>> pool = await create_engine(config)
    """

    url: str
    """Database URL: sqlite:///path, sqlite::memory: or a bare path."""

    max_connections: int = 5
    """Maximum number of open connections (always 1 for in-memory databases)."""

    busy_timeout: float = 5.0
    """Seconds a connection waits on a locked database before failing."""

    echo: bool = False
    """Log every statement at DEBUG on the ``relmap`` logger."""

    def __post_init__(self) -> None:
        if not self.url:
            raise ConfigError("database URL is required")
        if self.max_connections < 1:
            raise ConfigError(f"max_connections must be at least 1, got {self.max_connections}")
        if self.busy_timeout < 0:
            raise ConfigError(f"busy_timeout must not be negative, got {self.busy_timeout}")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> EngineConfig:
        """Load configuration from environment variables.

        Reads ``DATABASE_URL`` (required), ``RELMAP_MAX_CONNECTIONS``,
        ``RELMAP_BUSY_TIMEOUT`` and ``RELMAP_ECHO``.

        Raises:
            ConfigError: If ``DATABASE_URL`` is missing or a value does not parse
        """
        env = os.environ if environ is None else environ

        url = env.get("DATABASE_URL")
        if not url:
            raise ConfigError("DATABASE_URL not set")

        try:
            max_connections = int(env.get("RELMAP_MAX_CONNECTIONS", "5"))
            busy_timeout = float(env.get("RELMAP_BUSY_TIMEOUT", "5.0"))
        except ValueError as exc:
            raise ConfigError(f"invalid numeric setting: {exc}") from exc

        return cls(
            url=url,
            max_connections=max_connections,
            busy_timeout=busy_timeout,
            echo=_parse_bool(env.get("RELMAP_ECHO", "")),
        )


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigError(f"invalid boolean setting: {value!r}")
