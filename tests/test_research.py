"""Tests for grounded web research."""

from bubble.research import GeminiResearchService
from tests.conftest import genai_chunk


class TestGeminiResearchService:
    async def test_returns_answer_and_sources(self, genai_client):
        genai_client.models.content_responses.append(
            genai_chunk(
                "Rust 1.80 was released in July 2024.",
                refs=(
                    ("https://blog.rust-lang.org/a", "blog.rust-lang.org"),
                    ("https://news.example/b", "news.example"),
                    ("https://blog.rust-lang.org/a", "blog.rust-lang.org"),
                ),
            )
        )
        service = GeminiResearchService("research-model", client_factory=genai_client.factory)
        progress: list[str] = []

        result = await service.deep_research("latest rust", "key-1", progress.append)

        assert result.answer == "Rust 1.80 was released in July 2024."
        assert result.sources == ["https://blog.rust-lang.org/a", "https://news.example/b"]
        assert progress == ["Searching the web for: latest rust", "Read 2 sources"]
        assert genai_client.credentials == ["key-1"]

        call = genai_client.models.calls_to("generate_content")[0]
        assert call["model"] == "research-model"
        assert "latest rust" in call["contents"]
        assert call["config"].tools[0].google_search is not None

    async def test_ungrounded_answer(self, genai_client):
        genai_client.models.content_responses.append(genai_chunk(None))
        service = GeminiResearchService(client_factory=genai_client.factory)
        progress: list[str] = []

        result = await service.deep_research("q", None, progress.append)

        assert result.answer == ""
        assert result.sources == []
        assert progress == ["Searching the web for: q"]
