from __future__ import annotations

import asyncio
import io
import logging
import os
import sys
from pathlib import Path

# Add project src/ to sys.path for imports like `mono_assistant.*`
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

import pytest

from mono_assistant.providers.base import ProviderAdapter
from mono_assistant.providers.catalog import ProviderCatalog
from mono_assistant.providers.credentials import InMemoryCredentialStore
from mono_assistant.providers.types import (
    AIModel,
    Capability,
    CostTier,
    ProviderDescriptor,
)
from mono_assistant.utils import logging as mono_logging

LEGACY_KEY_VARS = (
    "GROQ_API_KEY",
    "OPENAI_API_KEY",
    "GEMINI_API_KEY",
    "OPENROUTER_API_KEY",
)


def pytest_configure(config):
    config.addinivalue_line("markers", "asyncio: mark test as async")


class FakeAdapter(ProviderAdapter):
    """Adapter double that records vendor calls instead of doing I/O."""

    def __init__(
        self,
        descriptor,
        credentials,
        *,
        reply="ok",
        error=None,
        gate=None,
        **kwargs,
    ):
        super().__init__(descriptor, credentials, **kwargs)
        self.reply = reply
        self.error = error
        self.gate = gate
        self.calls = []
        self.started = asyncio.Event()
        self.closed = False

    async def _chat_completion(self, api_key, prompt, model, params):
        self.calls.append(("chat", api_key, prompt, model, params))
        self.started.set()
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.reply

    async def _audio_transcription(self, api_key, audio, model, language):
        self.calls.append(("transcribe", api_key, audio, model, language))
        if self.error is not None:
            raise self.error
        return self.reply

    async def aclose(self):
        self.closed = True


def make_descriptor(
    provider_id: str,
    capabilities: set[Capability],
    models: list[AIModel] | None = None,
) -> ProviderDescriptor:
    if models is None:
        models = [
            AIModel(
                id=f"{provider_id}-{capability.value}",
                name=f"{provider_id} {capability.value}",
                capabilities=frozenset({capability}),
                cost_tier=CostTier.LOW,
            )
            for capability in sorted(capabilities, key=lambda c: c.value)
        ]
    return ProviderDescriptor(
        id=provider_id,
        display_name=provider_id.title(),
        capabilities=frozenset(capabilities),
        models=tuple(models),
    )


@pytest.fixture
def vendor_a() -> ProviderDescriptor:
    """Chat-only provider"""
    return make_descriptor("vendora", {Capability.CHAT_COMPLETION})


@pytest.fixture
def vendor_b() -> ProviderDescriptor:
    """Provider with chat and transcription"""
    return make_descriptor(
        "vendorb", {Capability.CHAT_COMPLETION, Capability.AUDIO_TRANSCRIPTION}
    )


@pytest.fixture
def catalog(vendor_a, vendor_b) -> ProviderCatalog:
    return ProviderCatalog([vendor_a, vendor_b])


@pytest.fixture
def credentials() -> InMemoryCredentialStore:
    return InMemoryCredentialStore()


@pytest.fixture
def fake_adapter_cls():
    return FakeAdapter


@pytest.fixture
def adapters(catalog, credentials) -> dict[str, FakeAdapter]:
    return {d.id: FakeAdapter(d, credentials) for d in catalog.all()}


@pytest.fixture
def mono_home(tmp_path, monkeypatch) -> Path:
    """Isolated home directory with no stray keys or config overrides."""
    home = tmp_path / "home"
    monkeypatch.setenv("MONO_HOME", str(home))
    monkeypatch.chdir(tmp_path)
    for var in LEGACY_KEY_VARS:
        monkeypatch.delenv(var, raising=False)
    for var in list(os.environ):
        if var.startswith("MONO_") and var != "MONO_HOME":
            monkeypatch.delenv(var, raising=False)
    return home


@pytest.fixture(autouse=True)
def _reset_redaction():
    yield
    mono_logging._redaction_filter.clear()


@pytest.fixture
def descriptor_factory():
    return make_descriptor


@pytest.fixture
def log_stream():
    """Route project logging into a buffer for the duration of a test."""
    stream = io.StringIO()
    mono_logging.setup_logging(level=logging.DEBUG, stream=stream)
    yield stream
    logging.getLogger().handlers.clear()
