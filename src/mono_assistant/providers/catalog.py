"""
Provider catalog: the static registry of provider descriptors.
"""

import threading
from collections.abc import Iterator
from pathlib import Path

import yaml
from pydantic import ValidationError

from mono_assistant.core.exceptions import ConfigError
from mono_assistant.providers.exceptions import (
    DuplicateProviderError,
    UnknownProviderError,
)
from mono_assistant.providers.types import AIModel, Capability, ProviderDescriptor
from mono_assistant.utils.logging import get_logger

logger = get_logger("providers.catalog")

DEFAULT_CATALOG_PATH = Path(__file__).parent.parent / "config" / "catalog.yaml"


class ProviderCatalog:
    """Registry of provider descriptors, kept in registration order."""

    def __init__(self, descriptors: list[ProviderDescriptor] | None = None):
        self._descriptors: dict[str, ProviderDescriptor] = {}
        self._lock = threading.Lock()
        for descriptor in descriptors or []:
            self.register(descriptor)

    def register(self, descriptor: ProviderDescriptor) -> None:
        """Register a descriptor.

        Raises:
            DuplicateProviderError: If the id is already registered
        """
        with self._lock:
            if descriptor.id in self._descriptors:
                raise DuplicateProviderError(descriptor.id)
            self._descriptors[descriptor.id] = descriptor
        logger.debug(
            f"Registered provider: {descriptor.id} "
            f"({len(descriptor.models)} models, "
            f"{sorted(c.value for c in descriptor.capabilities)})"
        )

    def all(self) -> list[ProviderDescriptor]:
        with self._lock:
            return list(self._descriptors.values())

    def ids(self) -> list[str]:
        with self._lock:
            return list(self._descriptors.keys())

    def lookup(self, provider_id: str) -> ProviderDescriptor | None:
        with self._lock:
            return self._descriptors.get(provider_id)

    def with_capability(self, capability: Capability) -> list[ProviderDescriptor]:
        return [d for d in self.all() if d.supports(capability)]

    def replace_models(
        self, provider_id: str, models: list[AIModel]
    ) -> ProviderDescriptor:
        """Swap the whole model list of a provider.

        The new descriptor is fully validated before it replaces the old one,
        so readers see either the old list or the new list.
        """
        with self._lock:
            current = self._descriptors.get(provider_id)
            if current is None:
                raise UnknownProviderError(provider=provider_id)
            updated = current.with_models(models)
            self._descriptors[provider_id] = updated
        logger.info(f"Refreshed models for {provider_id}: {len(models)} models")
        return updated

    def __contains__(self, provider_id: object) -> bool:
        with self._lock:
            return provider_id in self._descriptors

    def __len__(self) -> int:
        with self._lock:
            return len(self._descriptors)

    def __iter__(self) -> Iterator[ProviderDescriptor]:
        return iter(self.all())


def load_catalog(path: Path | str | None = None) -> ProviderCatalog:
    """Build a catalog from a YAML file (the packaged catalog by default).

    Raises:
        ConfigError: If the file is missing, unreadable or invalid
    """
    catalog_path = Path(path) if path else DEFAULT_CATALOG_PATH
    if not catalog_path.exists():
        raise ConfigError(f"Catalog file not found: {catalog_path}")

    try:
        with open(catalog_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {catalog_path}: {e}") from e

    providers = data.get("providers") if isinstance(data, dict) else None
    if not isinstance(providers, dict):
        raise ConfigError(f"Missing 'providers' section in {catalog_path}")

    catalog = ProviderCatalog()
    for provider_id, provider_data in providers.items():
        if not isinstance(provider_data, dict):
            raise ConfigError(
                f"Invalid config for provider '{provider_id}' in {catalog_path}"
            )
        try:
            catalog.register(ProviderDescriptor.from_dict(provider_id, provider_data))
        except ValidationError as e:
            raise ConfigError(f"Invalid provider '{provider_id}': {e}") from e

    logger.info(f"Loaded catalog from {catalog_path}: {len(catalog)} providers")
    return catalog
