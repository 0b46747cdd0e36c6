"""Options shared by the CLI commands."""

import logging

import typer

LOG_LEVEL_OPTION = typer.Option(
    "WARNING",
    "--log-level",
    help="Logging level (e.g., DEBUG, INFO, WARNING, ERROR)",
)


def parse_log_level(log_level: str) -> int:
    """Map a level name to a logging constant (default WARNING)."""
    return getattr(logging, log_level.upper(), logging.WARNING)
