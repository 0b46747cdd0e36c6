"""Path management for Mono Assistant."""

import os
from pathlib import Path

from mono_assistant.utils.logging import get_logger

logger = get_logger("config.path_manager")

HOME_ENV_VAR = "MONO_HOME"


class PathManager:
    """Resolves the user directories holding config, credentials and state.

    Everything lives under one home directory: ``$MONO_HOME`` when set,
    otherwise ``~/.mono-assistant``.
    """

    def __init__(self, home: str | Path | None = None, *, create: bool = True):
        if home is not None:
            self._home = Path(home).expanduser()
        elif os.environ.get(HOME_ENV_VAR):
            self._home = Path(os.environ[HOME_ENV_VAR]).expanduser()
        else:
            self._home = Path.home() / ".mono-assistant"
        if create:
            self._ensure_directories()

    def _ensure_directories(self) -> None:
        try:
            self._home.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.debug("Failed to ensure directory %s: %s", self._home, exc)

    @property
    def home(self) -> Path:
        return self._home

    def get_config_file(self) -> Path:
        """User configuration overrides (YAML)."""
        return self._home / "config.yaml"

    def get_credentials_file(self) -> Path:
        """Private dotenv file holding API keys."""
        return self._home / "credentials.env"

    def get_state_file(self) -> Path:
        """Persisted provider selection and model preferences."""
        return self._home / "state.yaml"

    def resolve_path(self, path: str | Path) -> Path:
        """Resolve a relative path against the home directory."""
        path = Path(path).expanduser()
        if path.is_absolute():
            return path
        return (self._home / path).resolve()
