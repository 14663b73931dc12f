"""Provider construction from credentials."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
from pydantic import SecretStr

from bubble.llm.gemini import GeminiProvider
from bubble.llm.openrouter import OpenRouterProvider
from bubble.llm.retry import RetryConfig, Sleep

if TYPE_CHECKING:
    from bubble.config.models import BubbleConfig


def _reveal(api_key: str | SecretStr | None) -> str | None:
    return api_key.get_secret_value() if isinstance(api_key, SecretStr) else api_key


class ProviderFactory:
    """Builds provider instances for a turn's credentials.

    The agent asks for providers per turn because credentials are
    user-scoped. Tests substitute a factory that returns fakes.
    """

    def __init__(
        self,
        retry: RetryConfig | None = None,
        *,
        sleep: Sleep | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._retry = retry or RetryConfig()
        self._sleep = sleep
        self._http_client = http_client

    def native(self, api_key: str | SecretStr | None) -> GeminiProvider:
        """Create the native provider."""
        return GeminiProvider(_reveal(api_key), retry=self._retry, sleep=self._sleep)

    def aggregator(self, api_key: str | SecretStr) -> OpenRouterProvider:
        """Create the aggregator provider.

        Raises:
            ValueError: If no key is given.
        """
        key = _reveal(api_key)
        if not key:
            raise ValueError("OpenRouter provider requires an API key")
        return OpenRouterProvider(key, http_client=self._http_client)


def create_provider_factory(config: BubbleConfig) -> ProviderFactory:
    """Create a factory using the configured retry policy."""
    return ProviderFactory(
        RetryConfig(
            max_retries=config.retry.max_retries,
            base_delay_ms=config.retry.base_delay_ms,
            offset_ms=config.retry.offset_ms,
        )
    )
