"""
Tests for configuration loading and provider wiring.
"""

import pytest
import yaml

from gatehouse.adapters.impl.memory_provider import InMemoryUserProvider
from gatehouse.adapters.impl.sqlite_provider import SQLiteUserProvider
from gatehouse.core.config import Settings, flatten_config, load_config_from_file, load_merged_config
from gatehouse.core.dependencies import create_user_provider, register_provider


class TestSettings:
    """Test settings defaults and environment overrides."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("GATEHOUSE_SESSION_KEY", raising=False)
        settings = Settings()

        assert settings.session_key == "gatehouse-auth"
        assert settings.remember_token_key == "gatehouse-remember-token"
        assert settings.user_provider == "memory"
        assert settings.uids == ["email", "username"]
        assert settings.allow_user_switch is False

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("GATEHOUSE_SESSION_KEY", "my-app-auth")
        monkeypatch.setenv("GATEHOUSE_USER_PROVIDER", "sqlite")

        settings = Settings()

        assert settings.session_key == "my-app-auth"
        assert settings.user_provider == "sqlite"


class TestConfigFile:
    """Test YAML configuration files."""

    def test_flatten_sections(self):
        flat = flatten_config({
            "server": {"port": 9000},
            "session": {"key": "custom-auth", "remember_token_key": "custom-remember", "secure": True},
            "provider": {"driver": "sqlite", "database_path": "/tmp/users.db", "uids": ["username"]},
            "log_level": "DEBUG",
            "unknown": "ignored",
        })

        assert flat == {
            "port": 9000,
            "session_key": "custom-auth",
            "remember_token_key": "custom-remember",
            "cookie_secure": True,
            "user_provider": "sqlite",
            "database_path": "/tmp/users.db",
            "uids": ["username"],
            "log_level": "DEBUG",
        }

    def test_load_merged_config(self, tmp_path):
        path = tmp_path / "config.yaml"
        with open(path, 'w') as f:
            yaml.safe_dump({"session": {"key": "file-auth"}, "guard_name": "admin"}, f)

        settings = load_merged_config(str(path))

        assert settings.session_key == "file-auth"
        assert settings.guard_name == "admin"

    def test_missing_file(self, tmp_path):
        assert load_config_from_file(str(tmp_path / "nope.yaml")) == {}

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("session: [unclosed")

        assert load_config_from_file(str(path)) == {}


class TestProviderRegistry:
    """Test provider selection by driver name."""

    def test_memory(self):
        provider = create_user_provider(Settings(user_provider="memory"))

        assert isinstance(provider, InMemoryUserProvider)

    def test_sqlite(self, tmp_path):
        provider = create_user_provider(
            Settings(user_provider="sqlite", database_path=str(tmp_path / "u.db"), uids=["username"])
        )

        assert isinstance(provider, SQLiteUserProvider)
        assert provider.uids == ["username"]

    def test_unknown_driver(self):
        with pytest.raises(ValueError):
            create_user_provider(Settings(user_provider="ldap"))

    def test_register_custom_driver(self):
        custom = InMemoryUserProvider()
        register_provider("custom", lambda settings: custom)

        assert create_user_provider(Settings(user_provider="custom")) is custom
