"""Mono Assistant - bring-your-own-key access to interchangeable AI providers."""

__version__ = "0.1.0"
