"""
Configuration management for gatehouse.
"""

import logging
import os
from functools import lru_cache
from typing import Any, Dict, List, Optional
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment and config files."""

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8000

    # Guard settings
    guard_name: str = "web"
    session_key: str = "gatehouse-auth"
    remember_token_key: str = "gatehouse-remember-token"
    uid_field: str = "email"

    # Provider settings
    user_provider: str = "memory"  # memory, sqlite
    users_file: Optional[str] = None
    database_path: str = "/var/lib/gatehouse/users.db"
    users_table: str = "users"
    uids: List[str] = ["email", "username"]
    identifier_key: str = "id"

    # Expose POST /auth/login/{user_id} for user switching
    allow_user_switch: bool = False

    # Session cookie settings
    session_secret: str = "change-me"
    session_cookie: str = "gatehouse-session"
    session_max_age: int = 14 * 24 * 60 * 60  # 14 days
    cookie_secure: bool = False
    cookie_samesite: str = "lax"
    cookie_domain: Optional[str] = None

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"

    # Observability
    enable_metrics: bool = True

    # Config file path
    config_file: Optional[str] = None

    class Config:
        env_prefix = "GATEHOUSE_"
        env_file = ".env"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()


def load_config_from_file(config_path: str) -> Dict[str, Any]:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to config file

    Returns:
        Configuration dictionary
    """
    import yaml

    if not os.path.exists(config_path):
        return {}

    try:
        with open(config_path, 'r') as f:
            return yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Failed to load config file {config_path}: {e}")
        return {}


def get_config_file_paths() -> list[str]:
    """Get list of potential config file paths in order of preference."""
    return [
        os.environ.get("GATEHOUSE_CONFIG_FILE", ""),
        "/etc/gatehouse/config.yaml",
        os.path.expanduser("~/.config/gatehouse/config.yaml"),
        "./config.yaml"
    ]


# Nested YAML sections and the flat settings they map onto
_SECTIONS = {
    "server": {"host": "host", "port": "port"},
    "session": {
        "key": "session_key",
        "remember_token_key": "remember_token_key",
        "secret": "session_secret",
        "cookie": "session_cookie",
        "max_age": "session_max_age",
        "secure": "cookie_secure",
        "samesite": "cookie_samesite",
        "domain": "cookie_domain",
    },
    "provider": {
        "driver": "user_provider",
        "users_file": "users_file",
        "database_path": "database_path",
        "users_table": "users_table",
        "uids": "uids",
        "identifier_key": "identifier_key",
    },
}

_DIRECT_KEYS = [
    "guard_name", "uid_field", "user_provider", "users_file", "database_path",
    "users_table", "uids", "identifier_key", "session_key", "remember_token_key",
    "session_secret", "session_max_age", "cookie_secure", "log_level",
    "log_format", "enable_metrics", "allow_user_switch",
]


def flatten_config(config_data: Dict[str, Any]) -> Dict[str, Any]:
    """Convert a nested config file into flat settings keys."""
    flat_config = {}

    for section, mapping in _SECTIONS.items():
        section_config = config_data.get(section) or {}
        for key, setting in mapping.items():
            if key in section_config:
                flat_config[setting] = section_config[key]

    for key in _DIRECT_KEYS:
        if key in config_data:
            flat_config[key] = config_data[key]

    return flat_config


def load_merged_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from multiple sources with precedence:
    1. CLI flags (handled by caller)
    2. Configuration file
    3. Environment variables
    4. Defaults
    """
    settings = Settings()

    paths = [config_path] if config_path else get_config_file_paths()
    config_data = {}
    for path in paths:
        if path and os.path.exists(path):
            config_data = load_config_from_file(path)
            break

    if config_data:
        settings = Settings(**flatten_config(config_data))

    return settings
