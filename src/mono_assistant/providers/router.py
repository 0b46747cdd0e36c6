"""
Service router: active provider selection, status and capability dispatch.
"""

import asyncio
import threading
from typing import Any

from mono_assistant.providers.base import ProviderAdapter
from mono_assistant.providers.catalog import ProviderCatalog
from mono_assistant.providers.credentials import CredentialStore
from mono_assistant.providers.exceptions import (
    CapabilityUnsupportedError,
    DispatchCancelledError,
    ModelUnsupportedError,
    NoProviderSelectedError,
    StorageError,
    UnknownProviderError,
    UnknownProviderFailure,
)
from mono_assistant.providers.selection import SelectionState, SelectionStore
from mono_assistant.providers.types import (
    AIModel,
    Capability,
    ProviderDescriptor,
    ProviderState,
    ProviderStatus,
)
from mono_assistant.utils.logging import get_logger

logger = get_logger("providers.router")

_CAPABILITY_METHODS: dict[Capability, str] = {
    Capability.CHAT_COMPLETION: "chat_completion",
    Capability.AUDIO_TRANSCRIPTION: "audio_transcription",
    Capability.TEXT_SUMMARIZATION: "text_summarization",
}


class ServiceRouter:
    """Routes capability requests to the adapter of the selected provider.

    The selection is a single provider id or None and always names a
    registered provider. Removing a credential never clears it; dispatching
    to an unconfigured provider fails in the adapter with MissingCredential.
    """

    def __init__(
        self,
        catalog: ProviderCatalog,
        credentials: CredentialStore,
        adapters: dict[str, ProviderAdapter] | None = None,
        selection_store: SelectionStore | None = None,
    ):
        self.catalog = catalog
        self.credentials = credentials
        self.selection_store = selection_store
        self._adapters: dict[str, ProviderAdapter] = dict(adapters or {})
        self._state_lock = threading.Lock()
        self._in_flight: dict[str, int] = {}
        self._selected: str | None = None
        self._model_preferences: dict[str, dict[str, str]] = {}
        self._restore_state()

    def _restore_state(self) -> None:
        if self.selection_store is None:
            return
        state = self.selection_store.load()
        if state.selected_provider and state.selected_provider not in self.catalog:
            logger.warning(
                f"Dropping saved selection of unknown provider "
                f"'{state.selected_provider}'"
            )
        elif state.selected_provider:
            self._selected = state.selected_provider
            logger.debug(f"Restored provider selection: {self._selected}")
        self._model_preferences = {
            provider_id: dict(models)
            for provider_id, models in state.models.items()
            if provider_id in self.catalog
        }

    def _persist(self) -> None:
        if self.selection_store is None:
            return
        with self._state_lock:
            state = SelectionState(
                selected_provider=self._selected,
                models={k: dict(v) for k, v in self._model_preferences.items()},
            )
        try:
            self.selection_store.save(state)
        except StorageError as e:
            logger.warning(f"Selection not persisted: {e}")

    # ─── Adapters ─────────────────────────────────────────────────────────────

    def register_adapter(self, provider_id: str, adapter: ProviderAdapter) -> None:
        """Attach the adapter serving a registered provider."""
        if provider_id not in self.catalog:
            raise UnknownProviderError(provider=provider_id)
        self._adapters[provider_id] = adapter
        logger.debug(f"Adapter attached for {provider_id}: {type(adapter).__name__}")

    def get_adapter(self, provider_id: str) -> ProviderAdapter | None:
        return self._adapters.get(provider_id)

    # ─── Selection ────────────────────────────────────────────────────────────

    @property
    def selected_provider(self) -> str | None:
        with self._state_lock:
            return self._selected

    @property
    def current_descriptor(self) -> ProviderDescriptor | None:
        provider_id = self.selected_provider
        return self.catalog.lookup(provider_id) if provider_id else None

    def select_provider(self, provider_id: str) -> None:
        """Make a registered provider the active one.

        Selecting an unconfigured provider is allowed.

        Raises:
            UnknownProviderError: If the id is not registered; the current
                selection is left unchanged
        """
        if provider_id not in self.catalog:
            raise UnknownProviderError(provider=provider_id)
        with self._state_lock:
            self._selected = provider_id
        logger.info(f"Selected provider: {provider_id}")
        self._persist()

    def clear_selection(self) -> None:
        with self._state_lock:
            self._selected = None
        logger.info("Cleared provider selection")
        self._persist()

    # ─── Models ───────────────────────────────────────────────────────────────

    def set_selected_model(
        self,
        provider_id: str,
        model_id: str,
        capability: Capability = Capability.CHAT_COMPLETION,
    ) -> None:
        """Remember the preferred model of a provider for one capability.

        Raises:
            UnknownProviderError: If the provider is not registered
            ModelUnsupportedError: If the model is not in the catalog for the
                provider or does not declare the capability
        """
        descriptor = self.catalog.lookup(provider_id)
        if descriptor is None:
            raise UnknownProviderError(provider=provider_id)
        self._require_model(descriptor, model_id, capability)
        with self._state_lock:
            self._model_preferences.setdefault(provider_id, {})[
                capability.value
            ] = model_id
        logger.info(f"Selected {capability.value} model for {provider_id}: {model_id}")
        self._persist()

    def get_selected_model(
        self,
        provider_id: str,
        capability: Capability = Capability.CHAT_COMPLETION,
    ) -> str | None:
        """Preferred model id, falling back to the first catalog model."""
        descriptor = self.catalog.lookup(provider_id)
        if descriptor is None:
            raise UnknownProviderError(provider=provider_id)
        with self._state_lock:
            preferred = self._model_preferences.get(provider_id, {}).get(
                capability.value
            )
        if preferred:
            model = descriptor.get_model(preferred)
            if model is not None and model.supports(capability):
                return preferred
            logger.debug(
                f"Preferred model {preferred} no longer offered by {provider_id}"
            )
        default = descriptor.default_model(capability)
        return default.id if default else None

    def refresh_models(self, provider_id: str, models: list[AIModel]) -> None:
        """Replace a provider's model list in the catalog and its adapter."""
        descriptor = self.catalog.replace_models(provider_id, models)
        adapter = self._adapters.get(provider_id)
        if adapter is not None:
            adapter.update_descriptor(descriptor)

    def _require_model(
        self, descriptor: ProviderDescriptor, model_id: str, capability: Capability
    ) -> AIModel:
        model = descriptor.get_model(model_id)
        if model is None or not model.supports(capability):
            raise ModelUnsupportedError(
                provider=descriptor.id,
                model=model_id,
                diagnostic=f"not listed for {capability.value}",
            )
        return model

    # ─── Status ───────────────────────────────────────────────────────────────

    def get_configured_providers(self) -> list[ProviderDescriptor]:
        """Providers holding a credential, in catalog order."""
        return [d for d in self.catalog.all() if self.credentials.has(d.id)]

    def provider_state(self, provider_id: str) -> ProviderState:
        if provider_id not in self.catalog:
            raise UnknownProviderError(provider=provider_id)
        with self._state_lock:
            if self._in_flight.get(provider_id, 0) > 0:
                return ProviderState.DISPATCHING
        if self.credentials.has(provider_id):
            return ProviderState.CONFIGURED
        return ProviderState.UNCONFIGURED

    def get_provider_status(self) -> dict[str, ProviderStatus]:
        """Status of every registered provider."""
        status = {}
        for descriptor in self.catalog.all():
            status[descriptor.id] = ProviderStatus(
                provider_id=descriptor.id,
                configured=self.credentials.has(descriptor.id),
                model_count=len(descriptor.models),
                supported_capabilities=descriptor.capabilities,
                state=self.provider_state(descriptor.id),
            )
        return status

    # ─── Dispatch ─────────────────────────────────────────────────────────────

    def _enter(self, provider_id: str) -> None:
        with self._state_lock:
            self._in_flight[provider_id] = self._in_flight.get(provider_id, 0) + 1

    def _leave(self, provider_id: str) -> None:
        with self._state_lock:
            remaining = self._in_flight.get(provider_id, 0) - 1
            if remaining > 0:
                self._in_flight[provider_id] = remaining
            else:
                self._in_flight.pop(provider_id, None)

    async def dispatch(self, capability: Capability, **args: Any) -> Any:
        """Run a capability call on the selected provider.

        Keyword arguments are forwarded to the adapter method for the
        capability (``prompt``/``params`` for chat, ``audio``/``language`` for
        transcription, ``text`` for summarization); ``model_id`` is optional
        and defaults to the preferred model.

        Raises:
            NoProviderSelectedError: If no provider is selected
            CapabilityUnsupportedError: If the selected provider lacks the
                capability; no adapter is called
            ModelUnsupportedError: If an explicit model is not offered
            DispatchCancelledError: If the call is cancelled in flight
            ProviderError: Any failure reported by the adapter
        """
        capability = Capability(capability)
        provider_id = self.selected_provider
        if provider_id is None:
            raise NoProviderSelectedError()

        descriptor = self.catalog.lookup(provider_id)
        if descriptor is None:
            raise UnknownProviderError(provider=provider_id)
        if not descriptor.supports(capability):
            raise CapabilityUnsupportedError(
                provider=provider_id, capability=capability.value
            )

        model_id = args.pop("model_id", None)
        if model_id:
            self._require_model(descriptor, model_id, capability)
        else:
            model_id = self.get_selected_model(provider_id, capability)

        adapter = self._adapters.get(provider_id)
        if adapter is None:
            raise UnknownProviderFailure(
                provider=provider_id, diagnostic="no adapter registered"
            )
        method = getattr(adapter, _CAPABILITY_METHODS[capability])

        logger.debug(
            f"Dispatching {capability.value} to {provider_id} (model={model_id})"
        )
        self._enter(provider_id)
        try:
            return await method(model_id=model_id, **args)
        except asyncio.CancelledError as e:
            logger.info(f"{capability.value} request to {provider_id} cancelled")
            raise DispatchCancelledError(provider=provider_id, model=model_id) from e
        finally:
            self._leave(provider_id)

    async def aclose(self) -> None:
        for provider_id, adapter in self._adapters.items():
            try:
                await adapter.aclose()
            except Exception as e:
                logger.warning(f"Error closing adapter {provider_id}: {e}")
