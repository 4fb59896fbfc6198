"""Application configuration helpers."""

from __future__ import annotations

from .env import optional_positive_int, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .logging import configure_logging, resolve_log_level
from .pool import PoolConfig, get_pool_config
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "ConfigurationError",
    "DatabaseConfig",
    "MissingConfigurationError",
    "PoolConfig",
    "StorageConfig",
    "configure_logging",
    "get_database_config",
    "get_pool_config",
    "get_storage_config",
    "optional_positive_int",
    "require_env_vars",
    "resolve_log_level",
]
