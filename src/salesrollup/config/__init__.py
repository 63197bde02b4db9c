"""Application configuration helpers."""

from __future__ import annotations

from .env import get_env_var
from .errors import ConfigurationError
from .logging import LoggingConfig, configure_logging, get_logging_config
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "ConfigurationError",
    "DatabaseConfig",
    "LoggingConfig",
    "StorageConfig",
    "configure_logging",
    "get_database_config",
    "get_env_var",
    "get_logging_config",
    "get_storage_config",
]
