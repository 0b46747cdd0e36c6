"""
AI Provider System

Registers vendor backends, stores their credentials, and routes capability
requests to the selected provider with one uniform error taxonomy.
"""

# Import provider modules to trigger decorator registration
from . import (
    gemini_provider,  # noqa: F401
    groq_provider,  # noqa: F401
    openai_provider,  # noqa: F401
    openrouter_provider,  # noqa: F401
)
from .base import ProviderAdapter, RateLimiter, map_status_error
from .catalog import ProviderCatalog, load_catalog
from .credentials import (
    CredentialStore,
    DotenvCredentialStore,
    InMemoryCredentialStore,
    migrate_from_env,
)
from .exceptions import (
    CapabilityUnsupportedError,
    DispatchCancelledError,
    DuplicateProviderError,
    ErrorKind,
    InsufficientQuotaError,
    InvalidCredentialError,
    MissingCredentialError,
    ModelUnsupportedError,
    NoProviderSelectedError,
    ProviderError,
    RateLimitedError,
    ServiceUnavailableError,
    StorageError,
    UnknownProviderError,
    UnknownProviderFailure,
)
from .provider_manager import build_adapters, create_adapter, register_adapter
from .router import ServiceRouter
from .selection import SelectionState, SelectionStore
from .types import (
    AIModel,
    Capability,
    ChatParameters,
    CostTier,
    ProviderDescriptor,
    ProviderState,
    ProviderStatus,
)

__all__ = [
    "AIModel",
    "Capability",
    "CapabilityUnsupportedError",
    "ChatParameters",
    "CostTier",
    "CredentialStore",
    "DispatchCancelledError",
    "DotenvCredentialStore",
    "DuplicateProviderError",
    "ErrorKind",
    "InMemoryCredentialStore",
    "InsufficientQuotaError",
    "InvalidCredentialError",
    "MissingCredentialError",
    "ModelUnsupportedError",
    "NoProviderSelectedError",
    "ProviderAdapter",
    "ProviderCatalog",
    "ProviderDescriptor",
    "ProviderError",
    "ProviderState",
    "ProviderStatus",
    "RateLimitedError",
    "RateLimiter",
    "SelectionState",
    "SelectionStore",
    "ServiceRouter",
    "ServiceUnavailableError",
    "StorageError",
    "UnknownProviderError",
    "UnknownProviderFailure",
    "build_adapters",
    "create_adapter",
    "load_catalog",
    "map_status_error",
    "migrate_from_env",
    "register_adapter",
]
