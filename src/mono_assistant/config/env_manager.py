"""Environment variable management for Mono Assistant."""

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from mono_assistant.core.exceptions import ConfigError
from mono_assistant.utils.logging import get_logger

logger = get_logger("config.env_manager")


class EnvManager:
    """Loads .env files and turns ``MONO_`` variables into config overrides."""

    def __init__(self, env_prefix: str = "MONO_", env_paths: list[Path] | None = None):
        """Initialize the environment manager.

        Args:
            env_prefix: Prefix for environment variables to load (default: "MONO_")
            env_paths: Optional list of .env file paths to load (default: cwd)
        """
        self.env_prefix = env_prefix
        self.env_paths = (
            env_paths if env_paths is not None else self._get_default_env_paths()
        )

    def without_prefix(self, key: str) -> str:
        """Remove the environment prefix from a key if present."""
        if key.startswith(self.env_prefix):
            return key[len(self.env_prefix) :]
        return key

    def _get_default_env_paths(self) -> list[Path]:
        return [Path.cwd() / ".env", Path.cwd() / ".env.local"]

    def load_env_files(self) -> None:
        """Load .env files; later files override earlier ones.

        Variables already set in the process environment take precedence over
        the first file.

        Raises:
            ConfigError: If a .env file exists but cannot be loaded
        """
        loaded_any = False
        for env_path in self.env_paths:
            if not env_path.exists():
                continue
            try:
                load_dotenv(env_path, override=loaded_any)
            except Exception as e:
                raise ConfigError(f"Failed to load .env file {env_path}: {e}") from e
            logger.info(f"Loaded environment variables from {env_path}")
            loaded_any = True

        if not loaded_any:
            logger.debug("No .env files found to load")

    def get_all_env_vars(self) -> dict[str, str]:
        """All environment variables starting with the prefix."""
        return {k: v for k, v in os.environ.items() if k.startswith(self.env_prefix)}

    def get_config_from_env(self, sections: set[str] | None = None) -> dict[str, Any]:
        """Extract configuration overrides from environment variables.

        ``MONO_LOGGING__LEVEL=DEBUG`` becomes ``{"logging": {"level": "DEBUG"}}``.
        When ``sections`` is given, variables whose first key is not a known
        section are ignored (so ``MONO_GROQ_API_KEY`` is not read as config).

        Raises:
            ConfigError: If environment variable parsing fails
        """
        config_data: dict[str, Any] = {}
        env_count = 0

        try:
            for key, value in self.get_all_env_vars().items():
                key_parts = self.without_prefix(key).lower().split("__")
                if sections is not None and key_parts[0] not in sections:
                    continue
                if len(key_parts) < 2:
                    continue
                self._set_nested_value(config_data, key_parts, value)
                env_count += 1
        except Exception as e:
            raise ConfigError(f"Failed to parse environment variables: {e}") from e

        if env_count > 0:
            logger.debug(
                f"Loaded {env_count} environment overrides "
                f"with prefix '{self.env_prefix}'"
            )
        return config_data

    def _set_nested_value(
        self, data: dict[str, Any], key_parts: list[str], value: str
    ) -> None:
        current = data
        for part in key_parts[:-1]:
            if part not in current:
                current[part] = {}
            elif not isinstance(current[part], dict):
                logger.warning(
                    f"Cannot set {'.'.join(key_parts)}: {part} is not a section"
                )
                return
            current = current[part]
        current[key_parts[-1]] = self._convert_env_value(value)

    def _convert_env_value(self, value: str) -> Any:
        """Convert a string value to bool, int, float, None or str."""
        if value.lower() in ("true", "false"):
            return value.lower() == "true"
        if value == "null":
            return None

        try:
            if "." not in value and "e" not in value.lower():
                return int(value)
            return float(value)
        except ValueError:
            return value
