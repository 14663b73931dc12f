"""Tests for the Gemini provider."""

import pytest

from bubble.llm.errors import MaxRetriesExceededError
from bubble.llm.gemini import GeminiProvider, grounding_from_chunk
from bubble.llm.retry import RetryConfig
from bubble.llm.types import Attachment, GroundingReference, Message, Role, StreamRequest
from tests.conftest import genai_chunk


class RecordingSleep:
    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def provider(genai_client, sleep) -> GeminiProvider:
    return GeminiProvider(client=genai_client, sleep=sleep)


def user_request(text: str = "Hi", **kwargs) -> StreamRequest:
    return StreamRequest(
        model=kwargs.pop("model", "gemini-2.5-flash"),
        messages=[Message(role=Role.USER, text=text)],
        **kwargs,
    )


class TestGroundingFromChunk:
    def test_extracts_web_references(self):
        chunk = genai_chunk("x", refs=(("https://a.example/1", "A"),))
        assert grounding_from_chunk(chunk) == [
            GroundingReference(uri="https://a.example/1", title="A")
        ]

    def test_no_candidates(self):
        assert grounding_from_chunk(genai_chunk("x")) == []


class TestGeminiProvider:
    def test_identity(self, provider):
        assert provider.name == "gemini"
        assert provider.is_native is True

    async def test_streams_text_and_grounding(self, provider, genai_client):
        genai_client.models.stream_scripts.append(
            [
                genai_chunk("Hello"),
                genai_chunk(None),
                genai_chunk(" world", refs=(("https://docs.example", "Docs"),)),
            ]
        )

        deltas = [d async for d in provider.stream(user_request())]

        assert "".join(d.text for d in deltas) == "Hello world"
        assert deltas[-1].grounding == [
            GroundingReference(uri="https://docs.example", title="Docs")
        ]

    async def test_request_conversion(self, provider, genai_client):
        genai_client.models.stream_scripts.append([genai_chunk("ok")])
        request = StreamRequest(
            model="gemini-2.5-pro",
            messages=[
                Message(role=Role.USER, text="earlier"),
                Message(role=Role.ASSISTANT, text="reply"),
                Message(
                    role=Role.USER,
                    text="describe this",
                    attachments=[Attachment(data=b"\x89PNG", mime_type="image/png")],
                ),
            ],
            system="You are Bubble.",
            thinking_budget=2048,
        )

        [d async for d in provider.stream(request)]

        call = genai_client.models.calls_to("generate_content_stream")[0]
        assert call["model"] == "gemini-2.5-pro"
        assert [c.role for c in call["contents"]] == ["user", "model", "user"]
        last_parts = call["contents"][-1].parts
        assert last_parts[0].inline_data.mime_type == "image/png"
        assert last_parts[-1].text == "describe this"
        assert call["config"].system_instruction == "You are Bubble."
        assert call["config"].thinking_config.thinking_budget == 2048

    async def test_missing_model_uses_default(self, provider, genai_client):
        genai_client.models.stream_scripts.append([genai_chunk("ok")])

        [d async for d in provider.stream(user_request(model=""))]

        call = genai_client.models.calls_to("generate_content_stream")[0]
        assert call["model"] == "gemini-2.5-flash"

    async def test_retries_rate_limit_on_first_chunk(
        self, provider, genai_client, sleep
    ):
        genai_client.models.stream_scripts.extend(
            [
                [Exception("429 RESOURCE_EXHAUSTED")],
                [genai_chunk("Recovered")],
            ]
        )
        notices: list[str] = []

        deltas = [d async for d in provider.stream(user_request(), on_retry=notices.append)]

        assert [d.text for d in deltas] == ["Recovered"]
        assert notices == ["(Rate limit hit. Retrying in 3s...)"]
        assert sleep.delays == [3.0]
        assert len(genai_client.models.calls_to("generate_content_stream")) == 2

    async def test_retry_exhaustion(self, genai_client, sleep):
        provider = GeminiProvider(
            client=genai_client, retry=RetryConfig(max_retries=1), sleep=sleep
        )
        genai_client.models.stream_scripts.extend(
            [Exception("429"), Exception("429")]
        )

        with pytest.raises(MaxRetriesExceededError):
            [d async for d in provider.stream(user_request())]
        assert sleep.delays == [3.0]

    async def test_non_rate_limit_error_propagates(self, provider, genai_client, sleep):
        genai_client.models.stream_scripts.append(Exception("API key not valid"))

        with pytest.raises(Exception, match="API key not valid"):
            [d async for d in provider.stream(user_request())]
        assert sleep.delays == []

    async def test_complete_json(self, provider, genai_client):
        genai_client.models.content_responses.append(genai_chunk('{"a.py": "main"}'))

        result = await provider.complete_json("gemini-2.5-flash", "Build it")

        assert result == '{"a.py": "main"}'
        call = genai_client.models.calls_to("generate_content")[0]
        assert call["contents"] == "Build it"
        assert call["config"].response_mime_type == "application/json"

    async def test_complete_json_empty(self, provider, genai_client):
        genai_client.models.content_responses.append(genai_chunk(None))
        assert await provider.complete_json("gemini-2.5-flash", "x") == ""
