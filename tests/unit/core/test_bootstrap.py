import logging

import pytest

from mono_assistant.core.app_context import AppContext
from mono_assistant.core.bootstrap import bootstrap, teardown
from mono_assistant.core.dependencies import AppDependencies
from mono_assistant.core.service import AIService
from mono_assistant.providers.credentials import (
    DotenvCredentialStore,
    InMemoryCredentialStore,
)
from mono_assistant.providers.router import ServiceRouter


@pytest.fixture(autouse=True)
def _restore_root_handlers():
    yield
    logging.getLogger().handlers.clear()


class TestBootstrap:
    def test_default_wiring(self, mono_home):
        ctx = bootstrap(log_level=logging.WARNING)

        deps = ctx.deps
        assert deps.is_initialized()
        assert isinstance(deps.service, AIService)
        assert isinstance(deps.router, ServiceRouter)
        assert isinstance(deps.credential_store, DotenvCredentialStore)
        assert deps.credential_store.path == mono_home / "credentials.env"
        assert deps.catalog.ids() == ["groq", "openai", "gemini", "openrouter"]
        assert ctx["service"] is deps.service

        router = deps.router
        assert set(router._adapters) == {"groq", "openai", "gemini", "openrouter"}
        assert router.get_adapter("groq").rate_limiter.capacity == 30
        assert router.get_adapter("openai").rate_limiter is None
        assert router.selection_store.path == mono_home / "state.yaml"

    def test_memory_backend_and_overrides(self, mono_home):
        mono_home.mkdir(parents=True, exist_ok=True)
        (mono_home / "config.yaml").write_text(
            "credentials:\n"
            "  backend: memory\n"
            "selection:\n"
            "  persist: false\n"
            "  default_provider: gemini\n"
            "adapters:\n"
            "  timeout: 5\n"
            "  base_urls:\n"
            "    groq: http://localhost:9999/v1\n"
        )

        deps = bootstrap(log_level=logging.WARNING).deps

        assert isinstance(deps.credential_store, InMemoryCredentialStore)
        assert deps.router.selection_store is None
        assert deps.router.selected_provider == "gemini"
        assert deps.router.get_adapter("groq").base_url == "http://localhost:9999/v1"
        assert deps.router.get_adapter("gemini").timeout == 5

    def test_unknown_default_provider_is_ignored(self, mono_home):
        mono_home.mkdir(parents=True, exist_ok=True)
        (mono_home / "config.yaml").write_text(
            "selection:\n  default_provider: retired\n"
        )
        deps = bootstrap(log_level=logging.WARNING).deps
        assert deps.router.selected_provider is None

    def test_extra_config_file(self, mono_home, tmp_path):
        extra = tmp_path / "extra.yaml"
        extra.write_text("credentials:\n  backend: memory\n")
        deps = bootstrap(extra, log_level=logging.WARNING).deps
        assert isinstance(deps.credential_store, InMemoryCredentialStore)

    def test_legacy_keys_are_migrated(self, mono_home, monkeypatch):
        monkeypatch.setenv("GROQ_API_KEY", "gsk-legacy")
        deps = bootstrap(log_level=logging.WARNING).deps
        assert deps.credential_store.get("groq") == "gsk-legacy"
        assert "MONO_GROQ_API_KEY" in (mono_home / "credentials.env").read_text()

    def test_injected_components(self, mono_home, catalog, credentials, adapters):
        deps = bootstrap(
            log_level=logging.WARNING,
            catalog=catalog,
            credential_store=credentials,
            adapters=adapters,
        ).deps
        assert deps.catalog is catalog
        assert deps.credential_store is credentials
        assert deps.router.get_adapter("vendora") is adapters["vendora"]

    def test_invalid_config_raises_runtime_error(self, mono_home):
        mono_home.mkdir(parents=True, exist_ok=True)
        (mono_home / "config.yaml").write_text("logging:\n  level: LOUD\n")
        with pytest.raises(RuntimeError, match="Failed to initialize application"):
            bootstrap(log_level=logging.WARNING)

    @pytest.mark.asyncio
    async def test_teardown_closes_adapters(
        self, mono_home, catalog, credentials, adapters
    ):
        ctx = bootstrap(
            log_level=logging.WARNING,
            catalog=catalog,
            credential_store=credentials,
            adapters=adapters,
        )
        await teardown(ctx)
        assert all(a.closed for a in adapters.values())
        assert not ctx.deps.is_initialized()


class TestAppContext:
    def test_deps_required(self):
        with pytest.raises(RuntimeError, match="bootstrap"):
            AppContext().deps

    def test_resources(self):
        ctx = AppContext()
        ctx.register("answer", 42)
        assert "answer" in ctx
        assert ctx["answer"] == 42
        assert ctx.get("missing", "x") == "x"

    @pytest.mark.asyncio
    async def test_aclose_without_dependencies(self):
        await AppContext().aclose()

    def test_dependencies_flag(self):
        deps = AppDependencies(config_manager=None)
        assert not deps.is_initialized()
        deps.mark_initialized()
        assert deps.is_initialized()
