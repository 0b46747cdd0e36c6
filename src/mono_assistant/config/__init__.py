"""Configuration management for Mono Assistant."""

from .config_manager import ConfigManager
from .env_manager import EnvManager
from .path_manager import PathManager
from .schemas import (
    AdapterConfig,
    AppConfig,
    CatalogConfig,
    CredentialsConfig,
    LoggingConfig,
    RateLimitConfig,
    SelectionConfig,
)

__all__ = [
    "AdapterConfig",
    "AppConfig",
    "CatalogConfig",
    "ConfigManager",
    "CredentialsConfig",
    "EnvManager",
    "LoggingConfig",
    "PathManager",
    "RateLimitConfig",
    "SelectionConfig",
]
