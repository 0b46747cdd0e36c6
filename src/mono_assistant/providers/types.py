"""Core value types shared by the catalog, adapters and router."""

from __future__ import annotations

import re
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

PROVIDER_ID_PATTERN = re.compile(r"^[a-z][a-z0-9_]*$")


class Capability(str, Enum):
    """Operation classes a provider may support."""

    CHAT_COMPLETION = "chat_completion"
    AUDIO_TRANSCRIPTION = "audio_transcription"
    TEXT_SUMMARIZATION = "text_summarization"


class CostTier(str, Enum):
    FREE = "free"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    PREMIUM = "premium"


class ProviderState(str, Enum):
    """Per-provider lifecycle as seen by the router."""

    UNCONFIGURED = "unconfigured"
    CONFIGURED = "configured"
    DISPATCHING = "dispatching"


class AIModel(BaseModel):
    """A model offered by a provider."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1, description="Vendor model identifier")
    name: str = Field(min_length=1, description="Human readable model name")
    description: str = Field(default="", description="Short model description")
    capabilities: frozenset[Capability] = Field(
        description="Capabilities this model provides"
    )
    context_window: int | None = Field(
        default=None, gt=0, description="Context window in tokens (text models)"
    )
    cost_tier: CostTier = Field(default=CostTier.MEDIUM)

    @field_validator("capabilities")
    @classmethod
    def validate_capabilities(cls, v):
        if not v:
            raise ValueError("a model must declare at least one capability")
        return v

    def supports(self, capability: Capability) -> bool:
        return capability in self.capabilities


class ProviderDescriptor(BaseModel):
    """Static description of a registered provider.

    Descriptors are immutable. A model list refresh produces a new descriptor
    through ``with_models`` rather than editing this one.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Unique provider identifier")
    display_name: str = Field(min_length=1)
    description: str = ""
    capabilities: frozenset[Capability]
    models: tuple[AIModel, ...] = ()
    cost_tier: CostTier = CostTier.MEDIUM

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        if not PROVIDER_ID_PATTERN.match(v):
            raise ValueError(
                f"Invalid provider id '{v}': must match {PROVIDER_ID_PATTERN.pattern}"
            )
        return v

    @model_validator(mode="after")
    def validate_models(self) -> ProviderDescriptor:
        seen: set[str] = set()
        for model in self.models:
            if model.id in seen:
                raise ValueError(
                    f"Duplicate model id '{model.id}' in provider '{self.id}'"
                )
            seen.add(model.id)
        return self

    def supports(self, capability: Capability) -> bool:
        return capability in self.capabilities

    def get_model(self, model_id: str) -> AIModel | None:
        return next((m for m in self.models if m.id == model_id), None)

    def models_for(self, capability: Capability) -> list[AIModel]:
        return [m for m in self.models if m.supports(capability)]

    def default_model(self, capability: Capability) -> AIModel | None:
        """First catalog model declaring the capability."""
        models = self.models_for(capability)
        return models[0] if models else None

    def with_models(
        self, models: list[AIModel] | tuple[AIModel, ...]
    ) -> ProviderDescriptor:
        """Return a validated copy carrying a new model list."""
        return ProviderDescriptor(
            **self.model_dump(exclude={"models"}), models=tuple(models)
        )

    @classmethod
    def from_dict(cls, provider_id: str, data: dict[str, Any]) -> ProviderDescriptor:
        """Create a descriptor from its catalog YAML representation."""
        config = dict(data)
        models = [
            AIModel(**model) if isinstance(model, dict) else model
            for model in config.pop("models", [])
        ]
        return cls(id=provider_id, models=tuple(models), **config)


class ProviderStatus(BaseModel):
    """Derived configuration status for a provider."""

    model_config = ConfigDict(frozen=True)

    provider_id: str
    configured: bool
    model_count: int = Field(ge=0)
    supported_capabilities: frozenset[Capability]
    state: ProviderState = ProviderState.UNCONFIGURED


class ChatParameters(BaseModel):
    """Optional knobs for a chat completion."""

    system_prompt: str | None = None
    history: list[dict[str, str]] = Field(default_factory=list)
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int | None = Field(default=None, gt=0)

    @field_validator("history")
    @classmethod
    def validate_history(cls, v):
        for msg in v:
            if not isinstance(msg, dict) or "role" not in msg or "content" not in msg:
                raise ValueError("Each message must have 'role' and 'content' fields")
            if msg["role"] not in ("user", "assistant", "system"):
                raise ValueError(f"Unsupported message role '{msg['role']}'")
        return v

    def to_messages(self, prompt: str) -> list[dict[str, str]]:
        """Flatten system prompt, history and prompt into chat messages."""
        messages: list[dict[str, str]] = []
        if self.system_prompt:
            messages.append({"role": "system", "content": self.system_prompt})
        messages.extend(
            {"role": m["role"], "content": m["content"]} for m in self.history
        )
        messages.append({"role": "user", "content": prompt})
        return messages
