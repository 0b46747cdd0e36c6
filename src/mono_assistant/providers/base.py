"""
Base classes for AI provider adapters
"""

import abc
import asyncio
import time
from typing import Any, NoReturn

from mono_assistant.providers.credentials import CredentialStore
from mono_assistant.providers.exceptions import (
    CapabilityUnsupportedError,
    InsufficientQuotaError,
    InvalidCredentialError,
    MissingCredentialError,
    ModelUnsupportedError,
    ProviderError,
    RateLimitedError,
    ServiceUnavailableError,
    UnknownProviderFailure,
)
from mono_assistant.providers.types import (
    Capability,
    ChatParameters,
    ProviderDescriptor,
)
from mono_assistant.utils.logging import get_logger

logger = get_logger("providers.base")

_QUOTA_MARKERS = ("insufficient_quota", "insufficient credits", "billing")
_MODEL_MARKERS = (
    "model_not_found",
    "does not exist",
    "not a valid model",
    "unknown model",
)

SUMMARY_SYSTEM_PROMPT = """\
You are a focused summarization assistant. Given a raw transcript, produce a \
clear, concise Markdown summary with the following sections (only include a \
section if it has content):

- Key Points: bullet list of the main ideas
- Action Items: bullet list using imperative verbs, include owners/dates if present
- Priorities: bullet list ordered from highest to lowest urgency/impact

Rules:
- Use short, scannable bullets
- Preserve specific names, dates, numbers
- If the input is messy or repetitive, consolidate cleanly
"""


def map_status_error(
    status_code: int,
    body: str,
    provider: str,
    *,
    model: str | None = None,
    retry_after: float | None = None,
) -> ProviderError:
    """Map a vendor HTTP status and body onto exactly one error kind."""
    lowered = body.lower()
    diagnostic = f"HTTP {status_code}: {body}" if body else f"HTTP {status_code}"

    if status_code in (401, 403):
        return InvalidCredentialError(provider=provider, diagnostic=diagnostic)
    if status_code == 402 or (
        status_code == 429 and any(m in lowered for m in _QUOTA_MARKERS)
    ):
        return InsufficientQuotaError(provider=provider, diagnostic=diagnostic)
    if status_code == 429:
        return RateLimitedError(
            provider=provider, retry_after=retry_after, diagnostic=diagnostic
        )
    if status_code == 404 or (
        status_code == 400 and any(m in lowered for m in _MODEL_MARKERS)
    ):
        return ModelUnsupportedError(
            provider=provider, model=model, diagnostic=diagnostic
        )
    if 500 <= status_code < 600:
        return ServiceUnavailableError(provider=provider, diagnostic=diagnostic)
    return UnknownProviderFailure(provider=provider, model=model, diagnostic=diagnostic)


def parse_retry_after(value: Any) -> float | None:
    """Parse a Retry-After header value given in seconds."""
    if value is None:
        return None
    try:
        return max(float(value), 0.0)
    except (TypeError, ValueError):
        return None


class RateLimiter:
    """Client-side token bucket shared by every caller of one provider.

    ``acquire`` never waits: when the bucket is empty it raises
    ``RateLimitedError`` with the time until the next token. Retrying is the
    caller's decision.
    """

    def __init__(
        self,
        provider_id: str,
        capacity: int,
        refill_per_second: float,
        clock=time.monotonic,
    ):
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        if refill_per_second <= 0:
            raise ValueError("refill_per_second must be positive")
        self.provider_id = provider_id
        self.capacity = capacity
        self.refill_per_second = refill_per_second
        self._clock = clock
        self._tokens = float(capacity)
        self._updated = clock()
        self._lock = asyncio.Lock()

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(now - self._updated, 0.0)
        refilled = self._tokens + elapsed * self.refill_per_second
        self._tokens = min(float(self.capacity), refilled)
        self._updated = now

    @property
    def available(self) -> float:
        return self._tokens

    async def acquire(self) -> None:
        async with self._lock:
            self._refill()
            if self._tokens >= 1:
                self._tokens -= 1
                return
            retry_after = (1 - self._tokens) / self.refill_per_second
        logger.debug(f"Client-side rate limit hit for {self.provider_id}")
        raise RateLimitedError(
            provider=self.provider_id,
            retry_after=retry_after,
            diagnostic="client-side rate limit",
        )


class ProviderAdapter(abc.ABC):
    """Base class for vendor adapters.

    Public capability methods perform the local checks (declared capability,
    stored credential, rate limit) before any I/O and guarantee that nothing
    but a ``ProviderError`` escapes. Subclasses implement the vendor calls in
    ``_chat_completion`` and ``_audio_transcription``.
    """

    def __init__(
        self,
        descriptor: ProviderDescriptor,
        credentials: CredentialStore,
        *,
        rate_limiter: RateLimiter | None = None,
        timeout: float = 60.0,
        **kwargs,
    ):
        self.descriptor = descriptor
        self.credentials = credentials
        self.rate_limiter = rate_limiter
        self.timeout = timeout
        self.kwargs = kwargs

    @property
    def provider_id(self) -> str:
        return self.descriptor.id

    @property
    def name(self) -> str:
        return self.descriptor.display_name

    def update_descriptor(self, descriptor: ProviderDescriptor) -> None:
        """Point the adapter at a refreshed descriptor for the same provider."""
        if descriptor.id != self.provider_id:
            raise ValueError(
                f"Descriptor id '{descriptor.id}' does not match "
                f"adapter '{self.provider_id}'"
            )
        self.descriptor = descriptor

    def _require_capability(self, capability: Capability) -> None:
        if not self.descriptor.supports(capability):
            raise CapabilityUnsupportedError(
                provider=self.provider_id, capability=capability.value
            )

    def _require_credential(self) -> str:
        api_key = self.credentials.get(self.provider_id)
        if not api_key:
            raise MissingCredentialError(provider=self.provider_id)
        return api_key

    def _resolve_model(self, model_id: str | None, capability: Capability) -> str:
        if model_id:
            return model_id
        default = self.descriptor.default_model(capability)
        if default is None:
            raise ModelUnsupportedError(
                provider=self.provider_id,
                diagnostic=f"no model declares {capability.value}",
            )
        return default.id

    async def _before_call(self, capability: Capability) -> str:
        self._require_capability(capability)
        api_key = self._require_credential()
        if self.rate_limiter is not None:
            await self.rate_limiter.acquire()
        return api_key

    def _raise_unmapped(self, error: Exception, model: str | None) -> NoReturn:
        logger.error(
            f"Unmapped error from {self.provider_id}: "
            f"{type(error).__module__}.{type(error).__name__}: {error}",
            exc_info=True,
        )
        raise UnknownProviderFailure(
            provider=self.provider_id, model=model, diagnostic=str(error)
        ) from error

    async def chat_completion(
        self,
        prompt: str,
        model_id: str | None = None,
        params: ChatParameters | None = None,
    ) -> str:
        """Send a prompt and return the assistant's text reply."""
        if not prompt:
            raise ValueError("prompt cannot be empty")
        api_key = await self._before_call(Capability.CHAT_COMPLETION)
        model = self._resolve_model(model_id, Capability.CHAT_COMPLETION)
        try:
            return await self._chat_completion(
                api_key, prompt, model, params or ChatParameters()
            )
        except ProviderError:
            raise
        except Exception as e:
            self._raise_unmapped(e, model)

    async def audio_transcription(
        self,
        audio: bytes,
        model_id: str | None = None,
        language: str | None = None,
    ) -> str:
        """Transcribe an audio blob and return its text."""
        if not audio:
            raise ValueError("audio cannot be empty")
        api_key = await self._before_call(Capability.AUDIO_TRANSCRIPTION)
        model = self._resolve_model(model_id, Capability.AUDIO_TRANSCRIPTION)
        try:
            return await self._audio_transcription(api_key, audio, model, language)
        except ProviderError:
            raise
        except Exception as e:
            self._raise_unmapped(e, model)

    async def text_summarization(
        self,
        text: str,
        model_id: str | None = None,
    ) -> str:
        """Summarize free-form text (e.g. a transcript) as Markdown."""
        if not text:
            raise ValueError("text cannot be empty")
        api_key = await self._before_call(Capability.TEXT_SUMMARIZATION)
        model = self._resolve_model(model_id, Capability.TEXT_SUMMARIZATION)
        try:
            return await self._text_summarization(api_key, text, model)
        except ProviderError:
            raise
        except Exception as e:
            self._raise_unmapped(e, model)

    @abc.abstractmethod
    async def _chat_completion(
        self, api_key: str, prompt: str, model: str, params: ChatParameters
    ) -> str:
        """Vendor chat call"""

    async def _audio_transcription(
        self, api_key: str, audio: bytes, model: str, language: str | None
    ) -> str:
        raise CapabilityUnsupportedError(
            provider=self.provider_id,
            capability=Capability.AUDIO_TRANSCRIPTION.value,
        )

    async def _text_summarization(self, api_key: str, text: str, model: str) -> str:
        # Vendors without a dedicated endpoint summarize through chat
        params = ChatParameters(system_prompt=SUMMARY_SYSTEM_PROMPT, temperature=0.3)
        summary = await self._chat_completion(api_key, text, model, params)
        return summary.strip()

    async def aclose(self) -> None:
        """Release network resources held by the adapter."""
        return None
