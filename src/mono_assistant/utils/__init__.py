"""Shared utilities."""

from .logging import get_logger, register_secret, setup_logging, unregister_secret

__all__ = ["get_logger", "register_secret", "setup_logging", "unregister_secret"]
