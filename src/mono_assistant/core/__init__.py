"""Core functionality for Mono Assistant."""

from .exceptions import AIServiceError, CLIError, ConfigError, MonoAssistantError

__all__ = ["AIServiceError", "CLIError", "ConfigError", "MonoAssistantError"]
