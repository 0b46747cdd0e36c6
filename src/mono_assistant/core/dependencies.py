"""Application dependencies container."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from mono_assistant.config.config_manager import ConfigManager
    from mono_assistant.core.service import AIService
    from mono_assistant.providers.catalog import ProviderCatalog
    from mono_assistant.providers.credentials import CredentialStore
    from mono_assistant.providers.router import ServiceRouter


@dataclass
class AppDependencies:
    """Container for the components wired together by ``bootstrap``."""

    config_manager: ConfigManager
    catalog: ProviderCatalog | None = field(default=None)
    credential_store: CredentialStore | None = field(default=None)
    router: ServiceRouter | None = field(default=None)
    service: AIService | None = field(default=None)
    _initialized: bool = field(default=False, init=False, repr=False)

    def mark_initialized(self) -> None:
        self._initialized = True

    def is_initialized(self) -> bool:
        return self._initialized

    async def aclose(self) -> None:
        if self.router is not None:
            await self.router.aclose()
        self._initialized = False
