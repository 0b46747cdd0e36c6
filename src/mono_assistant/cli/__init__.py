"""Command line interface for Mono Assistant."""
