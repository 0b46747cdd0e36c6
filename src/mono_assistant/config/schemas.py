"""Configuration schemas for Mono Assistant."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class LoggingConfig(BaseModel):
    """Configuration for application logging."""

    level: str = Field(default="INFO", description="Root log level")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        level = v.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"Invalid log level '{v}', expected one of {_LOG_LEVELS}")
        return level


class CredentialsConfig(BaseModel):
    """Where API keys are kept."""

    backend: Literal["dotenv", "memory"] = Field(
        default="dotenv",
        description="'dotenv' persists keys to a private file, 'memory' keeps them "
        "for the current process only",
    )
    file: str | None = Field(
        default=None,
        description="Credential file path (defaults to <home>/credentials.env)",
    )
    migrate_env: bool = Field(
        default=True,
        description="Import legacy <PROVIDER>_API_KEY variables on startup",
    )


class SelectionConfig(BaseModel):
    """Persistence of the active provider and model preferences."""

    persist: bool = Field(default=True, description="Save selection across restarts")
    state_file: str | None = Field(
        default=None, description="State file path (defaults to <home>/state.yaml)"
    )
    default_provider: str | None = Field(
        default=None,
        description="Provider selected on first start when nothing was saved",
    )


class CatalogConfig(BaseModel):
    """Source of the provider catalog."""

    path: str | None = Field(
        default=None, description="Catalog YAML (defaults to the packaged catalog)"
    )


class RateLimitConfig(BaseModel):
    """Client-side token bucket for one provider."""

    capacity: int = Field(gt=0, description="Maximum burst of requests")
    refill_per_second: float = Field(gt=0.0, description="Tokens added per second")


class AdapterConfig(BaseModel):
    """Network settings shared by the vendor adapters."""

    timeout: float = Field(default=60.0, gt=0.0, description="Request timeout (s)")
    base_urls: dict[str, str] = Field(
        default_factory=dict,
        description="Per-provider base URL overrides (e.g. a proxy)",
    )


class AppConfig(BaseModel):
    """Top-level application configuration."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    credentials: CredentialsConfig = Field(default_factory=CredentialsConfig)
    selection: SelectionConfig = Field(default_factory=SelectionConfig)
    catalog: CatalogConfig = Field(default_factory=CatalogConfig)
    rate_limits: dict[str, RateLimitConfig] = Field(
        default_factory=dict, description="Client-side rate limits per provider"
    )
    adapters: AdapterConfig = Field(default_factory=AdapterConfig)

    @classmethod
    def from_dict(cls, config_dict: dict[str, Any]) -> AppConfig:
        return cls.model_validate(config_dict)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)

    @classmethod
    def section_names(cls) -> set[str]:
        return set(cls.model_fields.keys())
