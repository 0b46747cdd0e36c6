"""
Adapter registry: maps provider ids to adapter classes
"""

from typing import Any

from mono_assistant.providers.base import ProviderAdapter, RateLimiter
from mono_assistant.providers.catalog import ProviderCatalog
from mono_assistant.providers.credentials import CredentialStore
from mono_assistant.providers.types import ProviderDescriptor
from mono_assistant.utils.logging import get_logger

logger = get_logger("providers.manager")

# Module-level registry for adapter classes (used by decorators)
_adapter_registry: dict[str, type[ProviderAdapter]] = {}


def register_adapter(provider_id: str):
    """Decorator to register an adapter class for a provider id"""

    def decorator(cls: type[ProviderAdapter]) -> type[ProviderAdapter]:
        _adapter_registry[provider_id] = cls
        logger.debug(f"Registered builtin adapter: {provider_id}")
        return cls

    return decorator


def create_adapter(
    descriptor: ProviderDescriptor,
    credentials: CredentialStore,
    **kwargs: Any,
) -> ProviderAdapter | None:
    """Instantiate the registered adapter for a descriptor, or None."""
    adapter_class = _adapter_registry.get(descriptor.id)
    if adapter_class is None:
        logger.warning(f"No adapter class registered for provider: {descriptor.id}")
        return None
    return adapter_class(descriptor, credentials, **kwargs)


def build_adapters(
    catalog: ProviderCatalog,
    credentials: CredentialStore,
    *,
    rate_limits: dict[str, dict[str, float]] | None = None,
    overrides: dict[str, dict[str, Any]] | None = None,
    timeout: float = 60.0,
) -> dict[str, ProviderAdapter]:
    """Create one adapter per catalog provider that has a registered class.

    Args:
        catalog: Registered provider descriptors
        credentials: Store shared by every adapter
        rate_limits: Optional ``{provider_id: {"capacity", "refill_per_second"}}``;
            each provider gets exactly one limiter shared by all its callers
        overrides: Optional per-provider adapter kwargs (e.g. ``base_url``)
        timeout: Request timeout in seconds
    """
    rate_limits = rate_limits or {}
    overrides = overrides or {}
    adapters: dict[str, ProviderAdapter] = {}

    for descriptor in catalog.all():
        kwargs: dict[str, Any] = {"timeout": timeout}
        kwargs.update(overrides.get(descriptor.id, {}))
        limit = rate_limits.get(descriptor.id)
        if limit:
            kwargs["rate_limiter"] = RateLimiter(
                descriptor.id,
                capacity=int(limit["capacity"]),
                refill_per_second=float(limit["refill_per_second"]),
            )
        adapter = create_adapter(descriptor, credentials, **kwargs)
        if adapter is not None:
            adapters[descriptor.id] = adapter
            logger.debug(f"Created adapter for provider: {descriptor.id}")

    logger.info(f"Adapters ready: {sorted(adapters.keys())}")
    return adapters
