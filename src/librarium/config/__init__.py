"""Application configuration helpers."""

from __future__ import annotations

from .env import optional_env_var
from .errors import ConfigurationError
from .library import DEFAULT_USER_ID, LibraryConfig, get_library_config
from .logging import configure_logging
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "DEFAULT_USER_ID",
    "ConfigurationError",
    "DatabaseConfig",
    "LibraryConfig",
    "StorageConfig",
    "configure_logging",
    "get_database_config",
    "get_library_config",
    "get_storage_config",
    "optional_env_var",
]
