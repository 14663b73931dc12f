"""OpenRouter aggregator provider.

Talks to the OpenAI-compatible chat completions endpoint over a raw
server-sent-events stream.
"""

import json
import logging
from collections.abc import AsyncIterator
from typing import Any

import httpx

from bubble.llm.base import TextProvider
from bubble.llm.errors import AggregatorError, ModelUnavailableError
from bubble.llm.types import Delta, Message, RetryNotice, Role, StreamRequest

logger = logging.getLogger(__name__)

OPENROUTER_URL = "https://openrouter.ai/api/v1/chat/completions"
APP_REFERER = "https://bubble.ai"
APP_TITLE = "Bubble AI"
NO_PROVIDERS_MARKER = "No allowed providers"
DEFAULT_TIMEOUT = httpx.Timeout(60.0, connect=10.0)

SSE_DATA_PREFIX = "data: "
SSE_DONE = "[DONE]"


def parse_sse_line(line: str) -> str | None | bool:
    """Parse one server-sent-events line.

    Returns:
        The content fragment, None when the line carries nothing usable,
        or False when the stream is finished.
    """
    if not line.startswith(SSE_DATA_PREFIX):
        return None
    data = line[len(SSE_DATA_PREFIX) :].strip()
    if data == SSE_DONE:
        return False
    try:
        payload = json.loads(data)
        content = payload["choices"][0]["delta"].get("content")
    except (json.JSONDecodeError, KeyError, IndexError, TypeError, AttributeError):
        logger.debug("openrouter_fragment_skipped", extra={"fragment": data[:200]})
        return None
    return content or None


def error_for_response(model: str, status_code: int, body: str) -> AggregatorError:
    """Translate a non-success response into a user-appropriate error."""
    try:
        data = json.loads(body)
    except json.JSONDecodeError:
        data = None

    error = data.get("error") if isinstance(data, dict) else None
    if isinstance(error, dict):
        message = error.get("message") or ""
        if status_code == 404 and (
            NO_PROVIDERS_MARKER in message or error.get("code") == 404
        ):
            return ModelUnavailableError(model, status_code=status_code)
        if message:
            return AggregatorError(message, status_code=status_code)

    if data is None and body:
        return AggregatorError(
            f"OpenRouter Error ({status_code}): {body}", status_code=status_code
        )
    return AggregatorError(f"OpenRouter Error ({status_code})", status_code=status_code)


class OpenRouterProvider(TextProvider):
    """OpenRouter provider for non-native models."""

    def __init__(
        self,
        api_key: str,
        *,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._api_key = api_key
        self._http_client = http_client

    @property
    def name(self) -> str:
        return "openrouter"

    @property
    def is_native(self) -> bool:
        return False

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
            "HTTP-Referer": APP_REFERER,
            "X-Title": APP_TITLE,
        }

    def _convert_messages(
        self, messages: list[Message], system: str | None
    ) -> list[dict[str, Any]]:
        result: list[dict[str, Any]] = []
        if system:
            result.append({"role": "system", "content": system})
        for msg in messages:
            if msg.role == Role.SYSTEM:
                continue
            result.append({"role": msg.role.value, "content": msg.text})
        return result

    async def stream(
        self,
        request: StreamRequest,
        *,
        on_retry: RetryNotice | None = None,
    ) -> AsyncIterator[Delta]:
        payload = {
            "model": request.model,
            "messages": self._convert_messages(request.messages, request.system),
            "stream": True,
        }

        client = self._http_client or httpx.AsyncClient(timeout=DEFAULT_TIMEOUT)
        try:
            logger.debug(f"Streaming {request.model} via OpenRouter")
            async with client.stream(
                "POST", OPENROUTER_URL, json=payload, headers=self._headers()
            ) as response:
                if not response.is_success:
                    body = (await response.aread()).decode("utf-8", errors="replace")
                    raise error_for_response(request.model, response.status_code, body)

                async for line in response.aiter_lines():
                    content = parse_sse_line(line)
                    if content is False:
                        break
                    if content:
                        yield Delta(text=content)
            logger.debug("Stream complete")
        finally:
            if self._http_client is None:
                await client.aclose()
