"""
Canonical AI service failure taxonomy.

Every adapter maps vendor failures onto exactly one ``ErrorKind``. Each kind
has a dedicated exception class carrying the offending provider id (and model
id where applicable) so callers can render a precise message without looking
at vendor detail. ``diagnostic`` holds the raw vendor text for logging only.
"""

from enum import Enum

from mono_assistant.core.exceptions import AIServiceError


class ErrorKind(str, Enum):
    MISSING_CREDENTIAL = "missing_credential"
    INVALID_CREDENTIAL = "invalid_credential"
    RATE_LIMITED = "rate_limited"
    MODEL_UNSUPPORTED = "model_unsupported"
    INSUFFICIENT_QUOTA = "insufficient_quota"
    SERVICE_UNAVAILABLE = "service_unavailable"
    CAPABILITY_UNSUPPORTED = "capability_unsupported"
    NO_PROVIDER_SELECTED = "no_provider_selected"
    UNKNOWN_PROVIDER = "unknown_provider"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"


TRANSIENT_KINDS = frozenset({ErrorKind.RATE_LIMITED, ErrorKind.SERVICE_UNAVAILABLE})
PERMANENT_KINDS = frozenset(
    {ErrorKind.MISSING_CREDENTIAL, ErrorKind.INVALID_CREDENTIAL}
)


class ProviderError(AIServiceError):
    """Base exception for provider-related errors"""

    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(
        self,
        message: str | None = None,
        provider: str | None = None,
        *,
        model: str | None = None,
        diagnostic: str | None = None,
    ):
        self.provider = provider
        self.model = model
        self.diagnostic = diagnostic
        self.message = message or self.user_message
        super().__init__(
            f"[{provider}] {self.message}" if provider else self.message
        )

    @property
    def provider_id(self) -> str | None:
        return self.provider

    @property
    def model_id(self) -> str | None:
        return self.model

    @property
    def is_transient(self) -> bool:
        return self.kind in TRANSIENT_KINDS

    @property
    def is_permanent(self) -> bool:
        return self.kind in PERMANENT_KINDS

    @property
    def user_message(self) -> str:
        """Message built from provider/model only, safe to show to a user."""
        return _USER_MESSAGES[self.kind].format(
            provider=self.provider or "the provider",
            model=self.model or "the requested model",
        )


class MissingCredentialError(ProviderError):
    """Raised when no credential is stored for the provider"""

    kind = ErrorKind.MISSING_CREDENTIAL


class InvalidCredentialError(ProviderError):
    """Raised when the vendor rejects the stored credential"""

    kind = ErrorKind.INVALID_CREDENTIAL


class RateLimitedError(ProviderError):
    """Raised when rate limit is exceeded"""

    kind = ErrorKind.RATE_LIMITED

    def __init__(
        self,
        message: str | None = None,
        provider: str | None = None,
        *,
        retry_after: float | None = None,
        **kwargs,
    ):
        self.retry_after = retry_after
        super().__init__(message, provider, **kwargs)


class ModelUnsupportedError(ProviderError):
    """Raised when the model is unknown to, or refused by, the provider"""

    kind = ErrorKind.MODEL_UNSUPPORTED


class InsufficientQuotaError(ProviderError):
    """Raised when the account has run out of credits or quota"""

    kind = ErrorKind.INSUFFICIENT_QUOTA


class ServiceUnavailableError(ProviderError):
    """Raised on vendor outages, connection failures and timeouts"""

    kind = ErrorKind.SERVICE_UNAVAILABLE


class CapabilityUnsupportedError(ProviderError):
    """Raised when the provider does not declare the requested capability"""

    kind = ErrorKind.CAPABILITY_UNSUPPORTED

    def __init__(
        self,
        message: str | None = None,
        provider: str | None = None,
        *,
        capability: str | None = None,
        **kwargs,
    ):
        self.capability = capability
        super().__init__(message, provider, **kwargs)


class NoProviderSelectedError(ProviderError):
    """Raised when a dispatch is attempted with an empty selection"""

    kind = ErrorKind.NO_PROVIDER_SELECTED


class UnknownProviderError(ProviderError):
    """Raised when a provider id is not registered in the catalog"""

    kind = ErrorKind.UNKNOWN_PROVIDER


class DispatchCancelledError(ProviderError):
    """Raised when an in-flight dispatch is cancelled"""

    kind = ErrorKind.CANCELLED


class UnknownProviderFailure(ProviderError):
    """Raised for vendor failures that match no other kind"""

    kind = ErrorKind.UNKNOWN


_USER_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.MISSING_CREDENTIAL: "Please set your {provider} API key",
    ErrorKind.INVALID_CREDENTIAL: (
        "Invalid {provider} API key. Please check your credentials."
    ),
    ErrorKind.RATE_LIMITED: "{provider} rate limit exceeded. Please try again later.",
    ErrorKind.MODEL_UNSUPPORTED: "Model '{model}' is not supported by {provider}",
    ErrorKind.INSUFFICIENT_QUOTA: (
        "Insufficient credits for {provider}. Please check your account."
    ),
    ErrorKind.SERVICE_UNAVAILABLE: "{provider} service is currently unavailable",
    ErrorKind.CAPABILITY_UNSUPPORTED: "{provider} does not support this operation",
    ErrorKind.NO_PROVIDER_SELECTED: "No AI provider selected",
    ErrorKind.UNKNOWN_PROVIDER: "Unknown AI provider '{provider}'",
    ErrorKind.CANCELLED: "The request to {provider} was cancelled",
    ErrorKind.UNKNOWN: "Unexpected error from {provider}",
}


class StorageError(AIServiceError):
    """Raised when the secure credential storage cannot be written"""

    def __init__(self, message: str, provider: str | None = None):
        self.provider = provider
        super().__init__(message, subsystem="credentials")


class DuplicateProviderError(AIServiceError):
    """Raised when a provider id is registered twice"""

    def __init__(self, provider: str):
        self.provider = provider
        super().__init__(
            f"Provider '{provider}' is already registered", subsystem="catalog"
        )
