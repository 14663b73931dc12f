"""Configuration models using Pydantic."""

import logging
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, SecretStr, field_validator, model_validator

from bubble.config.paths import get_memory_path, get_system_timezone, get_usage_path

logger = logging.getLogger(__name__)

DEFAULT_NATIVE_MODEL = "gemini-2.5-flash"

DEFAULT_MEMORY_LAYERS = [
    "inner_personal",
    "outer_personal",
    "personal",
    "interests",
    "preferences",
    "custom",
    "codebase",
    "aesthetic",
    "project",
]


class ProviderConfig(BaseModel):
    """Provider-level configuration."""

    api_key: SecretStr | None = None


class AgentSettings(BaseModel):
    """Limits and knobs for the autonomous agent loop."""

    max_loops: int = Field(default=6, ge=1)
    thinking_budget: int = Field(default=2048, ge=0)
    # Model id substrings that qualify for deep reasoning
    thinking_markers: list[str] = Field(
        default_factory=lambda: ["gemini-2.5", "gemini-3"]
    )
    memory_layers: list[str] = Field(
        default_factory=lambda: list(DEFAULT_MEMORY_LAYERS)
    )


class RetrySettings(BaseModel):
    """Rate-limit backoff for native provider calls.

    Delay for attempt n is 2**n * base_delay_ms + offset_ms.
    """

    max_retries: int = Field(default=3, ge=0)
    base_delay_ms: int = Field(default=2000, ge=0)
    offset_ms: int = Field(default=1000, ge=0)


class RouterSettings(BaseModel):
    """Configuration for the semantic action router."""

    model: str = "gemini-2.5-flash-lite"


class ImageSettings(BaseModel):
    """Configuration for image generation."""

    preferred_model: str = "nano_banana"
    imagen_model: str = "imagen-4.0-generate-001"
    flash_model: str = "gemini-2.5-flash-image"


class ResearchSettings(BaseModel):
    """Configuration for grounded web research."""

    model: str = DEFAULT_NATIVE_MODEL


class MemorySettings(BaseModel):
    """Configuration for the layered memory store."""

    path: Path = Field(default_factory=get_memory_path)


class UsageSettings(BaseModel):
    """Configuration for the usage counter."""

    path: Path = Field(default_factory=get_usage_path)


class BubbleConfig(BaseModel):
    """Root configuration model."""

    default_model: str = DEFAULT_NATIVE_MODEL
    timezone: str = Field(default_factory=get_system_timezone)
    # Provider-level API keys
    gemini: ProviderConfig = Field(default_factory=ProviderConfig)
    openrouter: ProviderConfig = Field(default_factory=ProviderConfig)
    agent: AgentSettings = Field(default_factory=AgentSettings)
    retry: RetrySettings = Field(default_factory=RetrySettings)
    router: RouterSettings = Field(default_factory=RouterSettings)
    image: ImageSettings = Field(default_factory=ImageSettings)
    research: ResearchSettings = Field(default_factory=ResearchSettings)
    memory: MemorySettings = Field(default_factory=MemorySettings)
    usage: UsageSettings = Field(default_factory=UsageSettings)

    @field_validator("timezone")
    @classmethod
    def _validate_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning("Unknown timezone %r, using UTC", value)
            return "UTC"
        return value

    @model_validator(mode="after")
    def _validate_default_model(self) -> "BubbleConfig":
        """The fallback target must be a native model."""
        from bubble.llm.models import is_native_model

        if not is_native_model(self.default_model):
            raise ValueError(
                f"default_model must be a native Gemini model, got {self.default_model!r}"
            )
        return self

    def resolve_gemini_key(self) -> SecretStr | None:
        """Resolve the native credential, or None when unset."""
        return self.gemini.api_key

    def resolve_openrouter_key(self) -> SecretStr | None:
        """Resolve the aggregator credential, or None when unset."""
        return self.openrouter.api_key
