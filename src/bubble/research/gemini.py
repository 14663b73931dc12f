"""Web research using Gemini's Google Search grounding tool."""

from __future__ import annotations

import logging

from google.genai import types

from bubble.llm.gemini import ClientFactory, create_client, grounding_from_chunk
from bubble.research.types import ProgressCallback, ResearchResult

logger = logging.getLogger(__name__)

DEFAULT_RESEARCH_MODEL = "gemini-2.5-flash"

RESEARCH_PROMPT = """Research the following query using web search. Write a
detailed, factual summary of what the sources say, noting dates and
disagreements between sources.

QUERY: {query}"""


class GeminiResearchService:
    """Grounded search backed by a single Gemini call with google_search."""

    def __init__(
        self,
        model: str = DEFAULT_RESEARCH_MODEL,
        *,
        client_factory: ClientFactory = create_client,
    ) -> None:
        self._model = model
        self._client_factory = client_factory

    async def deep_research(
        self,
        query: str,
        credential: str | None,
        progress: ProgressCallback,
    ) -> ResearchResult:
        progress(f"Searching the web for: {query}")
        client = self._client_factory(credential)
        response = await client.aio.models.generate_content(
            model=self._model,
            contents=RESEARCH_PROMPT.format(query=query),
            config=types.GenerateContentConfig(
                tools=[types.Tool(google_search=types.GoogleSearch())]
            ),
        )

        sources: list[str] = []
        for reference in grounding_from_chunk(response):
            if reference.uri not in sources:
                sources.append(reference.uri)
        if sources:
            progress(f"Read {len(sources)} sources")

        logger.info(
            "research_complete",
            extra={"model": self._model, "source_count": len(sources)},
        )
        return ResearchResult(answer=response.text or "", sources=sources)
