class MonoAssistantError(Exception):
    """Base exception for all Mono Assistant errors.

    The message is automatically prefixed with the subsystem name in square brackets.
    """

    subsystem = "core"

    def __init__(self, message: str, *, subsystem: str | None = None) -> None:
        self.subsystem = subsystem or self.subsystem
        super().__init__(f"[{self.subsystem}] {message}")


# ─── Subsystem-level exceptions ───────────────────────────────────────────────


class AIServiceError(MonoAssistantError):
    """Raised for issues in the AI service layer (providers, routing, credentials)."""

    subsystem = "ai"


class ConfigError(MonoAssistantError):
    """Raised for configuration loading or parsing errors."""

    subsystem = "config"


class CLIError(MonoAssistantError):
    """Raised for CLI-specific logic or user input issues."""

    subsystem = "cli"
