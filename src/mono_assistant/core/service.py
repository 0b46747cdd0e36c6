"""AI service facade used by the CLI and other collaborators."""

from typing import Any

from mono_assistant.providers.catalog import ProviderCatalog
from mono_assistant.providers.credentials import CredentialStore
from mono_assistant.providers.exceptions import UnknownProviderError
from mono_assistant.providers.router import ServiceRouter
from mono_assistant.providers.types import (
    AIModel,
    Capability,
    ChatParameters,
    ProviderDescriptor,
    ProviderStatus,
)
from mono_assistant.utils.logging import get_logger

logger = get_logger("core.service")


class AIService:
    """Single entry point for credentials, selection and AI requests.

    Provider ids are validated against the catalog here, once, so the
    components below can trust them.
    """

    def __init__(
        self,
        catalog: ProviderCatalog,
        credentials: CredentialStore,
        router: ServiceRouter,
    ):
        self.catalog = catalog
        self.credentials = credentials
        self.router = router

    def _require_provider(self, provider_id: str) -> ProviderDescriptor:
        descriptor = self.catalog.lookup(provider_id)
        if descriptor is None:
            raise UnknownProviderError(provider=provider_id)
        return descriptor

    # Credentials

    def set_credential(self, provider_id: str, secret: str) -> None:
        """Store (or overwrite) the API key of a registered provider.

        Raises:
            UnknownProviderError: If the provider is not registered
            ValueError: If the secret is empty
            StorageError: If the secure storage write fails
        """
        self._require_provider(provider_id)
        self.credentials.set(provider_id, secret.strip())

    def remove_credential(self, provider_id: str) -> None:
        """Delete a provider's API key; a provider without one is left as is."""
        self._require_provider(provider_id)
        self.credentials.remove(provider_id)

    def has_credential(self, provider_id: str) -> bool:
        self._require_provider(provider_id)
        return self.credentials.has(provider_id)

    def reset(self) -> None:
        """Remove every stored credential. The selection is kept."""
        self.credentials.clear()
        logger.info("All credentials removed")

    # Providers and models

    def list_providers(self) -> list[ProviderDescriptor]:
        return self.catalog.all()

    def select_provider(self, provider_id: str) -> None:
        self.router.select_provider(provider_id)

    @property
    def selected_provider(self) -> str | None:
        return self.router.selected_provider

    def get_status(self) -> dict[str, ProviderStatus]:
        return self.router.get_provider_status()

    def get_models(
        self, provider_id: str, capability: Capability | None = None
    ) -> list[AIModel]:
        descriptor = self._require_provider(provider_id)
        if capability is None:
            return list(descriptor.models)
        return descriptor.models_for(capability)

    def set_model(
        self,
        provider_id: str,
        model_id: str,
        capability: Capability = Capability.CHAT_COMPLETION,
    ) -> None:
        self.router.set_selected_model(provider_id, model_id, capability)

    def get_model(
        self, provider_id: str, capability: Capability = Capability.CHAT_COMPLETION
    ) -> str | None:
        return self.router.get_selected_model(provider_id, capability)

    # Requests

    async def chat_completion(
        self,
        prompt: str,
        model_id: str | None = None,
        context_hints: dict[str, Any] | None = None,
    ) -> str:
        """Send a prompt to the selected provider.

        Args:
            prompt: The user message
            model_id: Explicit model, or None for the preferred/default model
            context_hints: Optional ``system_prompt``, ``history``,
                ``temperature`` and ``max_tokens``

        Raises:
            ValueError: If the prompt is empty or the hints are invalid
            ProviderError: On any routing or vendor failure
        """
        if not prompt or not prompt.strip():
            raise ValueError("prompt cannot be empty")
        params = ChatParameters(**(context_hints or {}))
        return await self.router.dispatch(
            Capability.CHAT_COMPLETION,
            prompt=prompt,
            model_id=model_id,
            params=params,
        )

    async def transcribe(
        self,
        audio: bytes,
        model_id: str | None = None,
        language: str | None = None,
    ) -> str:
        """Transcribe audio with the selected provider."""
        if not audio:
            raise ValueError("audio cannot be empty")
        return await self.router.dispatch(
            Capability.AUDIO_TRANSCRIPTION,
            audio=audio,
            model_id=model_id,
            language=language,
        )

    async def summarize(self, text: str, model_id: str | None = None) -> str:
        """Summarize text with the selected provider."""
        if not text or not text.strip():
            raise ValueError("text cannot be empty")
        return await self.router.dispatch(
            Capability.TEXT_SUMMARIZATION, text=text, model_id=model_id
        )
