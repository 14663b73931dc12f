"""LLM provider abstraction layer."""

from bubble.llm.base import TextProvider
from bubble.llm.errors import (
    AggregatorError,
    MaxRetriesExceededError,
    ModelUnavailableError,
    ProviderError,
)
from bubble.llm.gemini import GeminiProvider
from bubble.llm.models import friendly_model_name, is_native_model, supports_thinking
from bubble.llm.openrouter import OpenRouterProvider
from bubble.llm.registry import ProviderFactory, create_provider_factory
from bubble.llm.retry import RetryConfig, is_rate_limit_error, with_retry
from bubble.llm.streaming import prime_stream
from bubble.llm.types import (
    Attachment,
    Delta,
    GroundingReference,
    Message,
    RetryNotice,
    Role,
    StreamRequest,
)

__all__ = [
    # Base
    "TextProvider",
    # Providers
    "GeminiProvider",
    "OpenRouterProvider",
    # Registry
    "ProviderFactory",
    "create_provider_factory",
    # Errors
    "AggregatorError",
    "MaxRetriesExceededError",
    "ModelUnavailableError",
    "ProviderError",
    # Models
    "friendly_model_name",
    "is_native_model",
    "supports_thinking",
    # Retry
    "RetryConfig",
    "is_rate_limit_error",
    "with_retry",
    # Streaming
    "prime_stream",
    # Types
    "Attachment",
    "Delta",
    "GroundingReference",
    "Message",
    "RetryNotice",
    "Role",
    "StreamRequest",
]
