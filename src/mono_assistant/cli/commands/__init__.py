"""CLI commands for Mono Assistant."""

from . import chat, key, provider

__all__ = ["chat", "key", "provider"]
