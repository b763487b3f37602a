"""Tests for engine configuration."""

import pytest

from relmap import ConfigError, EngineConfig


class TestEngineConfig:
    """Test EngineConfig validation."""

    def test_defaults(self):
        config = EngineConfig("sqlite:///app.db")
        assert config.max_connections == 5
        assert config.busy_timeout == 5.0
        assert config.echo is False

    def test_requires_url(self):
        with pytest.raises(ConfigError, match="database URL is required"):
            EngineConfig("")

    def test_rejects_bad_pool_size(self):
        with pytest.raises(ConfigError, match="max_connections"):
            EngineConfig("sqlite:///app.db", max_connections=0)

    def test_rejects_negative_timeout(self):
        with pytest.raises(ConfigError, match="busy_timeout"):
            EngineConfig("sqlite:///app.db", busy_timeout=-1)

    def test_config_error_is_value_error(self):
        with pytest.raises(ValueError):
            EngineConfig("")


class TestFromEnv:
    """Test loading configuration from environment variables."""

    def test_from_env(self):
        config = EngineConfig.from_env(
            {
                "DATABASE_URL": "sqlite:///feeds.db",
                "RELMAP_MAX_CONNECTIONS": "8",
                "RELMAP_BUSY_TIMEOUT": "2.5",
                "RELMAP_ECHO": "yes",
            }
        )
        assert config == EngineConfig("sqlite:///feeds.db", max_connections=8, busy_timeout=2.5, echo=True)

    def test_from_env_defaults(self):
        config = EngineConfig.from_env({"DATABASE_URL": "sqlite::memory:"})
        assert config.max_connections == 5
        assert config.echo is False

    def test_from_os_environ(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "sqlite:///from-env.db")
        monkeypatch.delenv("RELMAP_ECHO", raising=False)
        assert EngineConfig.from_env().url == "sqlite:///from-env.db"

    def test_missing_url(self):
        with pytest.raises(ConfigError, match="DATABASE_URL not set"):
            EngineConfig.from_env({})

    @pytest.mark.parametrize(
        "env",
        [
            {"RELMAP_MAX_CONNECTIONS": "many"},
            {"RELMAP_BUSY_TIMEOUT": "soon"},
            {"RELMAP_ECHO": "maybe"},
        ],
    )
    def test_invalid_values(self, env):
        with pytest.raises(ConfigError):
            EngineConfig.from_env({"DATABASE_URL": "sqlite:///app.db", **env})
