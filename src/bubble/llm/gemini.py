"""Google Gemini LLM provider."""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from typing import Any

from google import genai
from google.genai import types

from bubble.config.models import DEFAULT_NATIVE_MODEL
from bubble.llm.base import TextProvider
from bubble.llm.retry import RetryConfig, Sleep, with_retry
from bubble.llm.streaming import prime_stream
from bubble.llm.types import (
    Delta,
    GroundingReference,
    Message,
    RetryNotice,
    Role,
    StreamRequest,
)

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str | None], Any]


def create_client(api_key: str | None) -> genai.Client:
    """Create a google-genai client for a credential."""
    return genai.Client(api_key=api_key)


def grounding_from_chunk(chunk: Any) -> list[GroundingReference]:
    """Extract web citations from a response chunk, if any."""
    candidates = getattr(chunk, "candidates", None)
    if not candidates:
        return []
    metadata = getattr(candidates[0], "grounding_metadata", None)
    grounding_chunks = getattr(metadata, "grounding_chunks", None) if metadata else None
    if not grounding_chunks:
        return []

    references = []
    for grounding_chunk in grounding_chunks:
        web = getattr(grounding_chunk, "web", None)
        if web is None or not web.uri:
            continue
        references.append(GroundingReference(uri=web.uri, title=web.title or web.uri))
    return references


class GeminiProvider(TextProvider):
    """Google Gemini provider with rate-limit backoff."""

    def __init__(
        self,
        api_key: str | None = None,
        *,
        retry: RetryConfig | None = None,
        sleep: Sleep | None = None,
        client: Any = None,
    ):
        self._client = client if client is not None else create_client(api_key)
        self._retry = retry or RetryConfig()
        self._sleep = sleep or asyncio.sleep

    @property
    def name(self) -> str:
        return "gemini"

    @property
    def is_native(self) -> bool:
        return True

    @property
    def default_model(self) -> str:
        return DEFAULT_NATIVE_MODEL

    def _resolve_model(self, model: str | None) -> str:
        if not model:
            logger.warning(
                "gemini_model_missing", extra={"model.default": self.default_model}
            )
            return self.default_model
        return model

    def _convert_messages(self, messages: list[Message]) -> list[types.Content]:
        contents = []
        for msg in messages:
            if msg.role == Role.SYSTEM:
                continue
            parts = [
                types.Part.from_bytes(data=a.data, mime_type=a.mime_type)
                for a in msg.attachments
            ]
            parts.append(types.Part(text=msg.text))
            role = "user" if msg.role == Role.USER else "model"
            contents.append(types.Content(role=role, parts=parts))
        return contents

    def _build_config(self, request: StreamRequest) -> types.GenerateContentConfig:
        config = types.GenerateContentConfig()
        if request.system:
            config.system_instruction = request.system
        if request.thinking_budget is not None:
            config.thinking_config = types.ThinkingConfig(
                thinking_budget=request.thinking_budget
            )
            logger.debug(
                f"Thinking enabled with budget={request.thinking_budget}"
            )
        return config

    async def _iter_deltas(self, response: AsyncIterator[Any]) -> AsyncIterator[Delta]:
        async for chunk in response:
            text = chunk.text or ""
            grounding = grounding_from_chunk(chunk)
            if text or grounding:
                yield Delta(text=text, grounding=grounding)

    async def stream(
        self,
        request: StreamRequest,
        *,
        on_retry: RetryNotice | None = None,
    ) -> AsyncIterator[Delta]:
        model = self._resolve_model(request.model)
        contents = self._convert_messages(request.messages)
        config = self._build_config(request)

        async def _open() -> AsyncIterator[Delta]:
            # The request is only sent on first iteration
            response = await self._client.aio.models.generate_content_stream(
                model=model, contents=contents, config=config
            )
            return await prime_stream(self._iter_deltas(response))

        logger.debug(f"Streaming {model}")
        deltas = await with_retry(
            _open,
            config=self._retry,
            operation_name=f"Gemini {model}",
            on_retry=on_retry,
            sleep=self._sleep,
        )
        async for delta in deltas:
            yield delta
        logger.debug("Stream complete")

    async def complete_json(
        self,
        model: str | None,
        prompt: str,
        *,
        on_retry: RetryNotice | None = None,
    ) -> str:
        """Issue one non-streaming call that answers in JSON.

        Returns:
            The raw JSON text (empty if the model returned nothing).
        """
        model = self._resolve_model(model)
        config = types.GenerateContentConfig(response_mime_type="application/json")

        async def _make_request() -> Any:
            return await self._client.aio.models.generate_content(
                model=model, contents=prompt, config=config
            )

        response = await with_retry(
            _make_request,
            config=self._retry,
            operation_name=f"Gemini {model}",
            on_retry=on_retry,
            sleep=self._sleep,
        )
        return response.text or ""
