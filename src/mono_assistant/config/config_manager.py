"""Configuration manager with layered sources."""

from __future__ import annotations

from copy import deepcopy
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from mono_assistant.config.env_manager import EnvManager
from mono_assistant.config.path_manager import PathManager
from mono_assistant.config.schemas import AppConfig
from mono_assistant.core.exceptions import ConfigError
from mono_assistant.utils.logging import get_logger

logger = get_logger("config.config_manager")

DEFAULTS_PATH = Path(__file__).parent / "defaults.yaml"


class ConfigManager:
    """Merges packaged defaults, user YAML files and environment variables.

    Priority (highest last): ``defaults.yaml`` → each file in
    ``config_paths`` in order → ``MONO_<SECTION>__<KEY>`` variables.
    """

    def __init__(
        self,
        config_paths: list[Path | str] | None = None,
        env_manager: EnvManager | None = None,
        path_manager: PathManager | None = None,
        defaults_path: Path | str | None = None,
    ):
        self.env_manager: EnvManager = env_manager or EnvManager()
        self.path_manager: PathManager = path_manager or PathManager()

        if config_paths is None:
            config_paths = [self.path_manager.get_config_file()]
        self.config_paths = [self.path_manager.resolve_path(p) for p in config_paths]

        self._defaults_path = Path(defaults_path) if defaults_path else DEFAULTS_PATH
        self._global_config: AppConfig | None = None

    def load_global_config(self) -> AppConfig:
        """Load and merge configuration from all sources.

        Raises:
            ConfigError: If a file is invalid YAML or the merged config is invalid
        """
        logger.info("Loading configuration")

        config_data = self._load_defaults()

        for config_path in self.config_paths:
            yaml_data = self._load_yaml_file(config_path)
            if yaml_data is not None:
                config_data = self._deep_merge(config_data, yaml_data)
                logger.debug(f"Merged YAML config from {config_path}")

        env_data = self.env_manager.get_config_from_env(AppConfig.section_names())
        if env_data:
            config_data = self._deep_merge(config_data, env_data)

        try:
            config = AppConfig.from_dict(config_data)
        except ValidationError as e:
            error_msg = f"Invalid configuration: {e}"
            logger.error(error_msg)
            raise ConfigError(error_msg) from e

        logger.debug("Configuration loaded and validated")
        self._global_config = config
        return config

    @property
    def global_config(self) -> AppConfig | None:
        return self._global_config

    @property
    def config(self) -> AppConfig:
        """The loaded configuration, loading it on first access."""
        if self._global_config is None:
            return self.load_global_config()
        return self._global_config

    def resolve_file(self, configured: str | None, default: Path) -> Path:
        """Resolve an optional configured path, falling back to a default."""
        if configured:
            return self.path_manager.resolve_path(configured)
        return default

    def _load_config_file(self, path: Path) -> dict[str, Any]:
        try:
            with open(path, encoding="utf-8") as f:
                config = yaml.safe_load(f)
        except (yaml.YAMLError, OSError) as e:
            raise ConfigError(f"Failed to load config from {path}: {e}") from e

        if config is None:
            logger.warning(f"Config file {path} is empty")
            return {}
        if not isinstance(config, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")
        return config

    def _load_defaults(self) -> dict[str, Any]:
        if not self._defaults_path.exists():
            logger.debug("No defaults file found, using empty defaults")
            return {}
        config_data = self._load_config_file(self._defaults_path)
        logger.debug(f"Loaded default config: {len(config_data)} keys")
        return config_data

    def _load_yaml_file(self, file_path: Path) -> dict[str, Any] | None:
        if not file_path.exists():
            logger.debug(f"YAML file {file_path} does not exist, skipping")
            return None
        return self._load_config_file(file_path)

    def _deep_merge(
        self, base: dict[str, Any], overlay: dict[str, Any]
    ) -> dict[str, Any]:
        result = deepcopy(base)

        for key, value in overlay.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result
