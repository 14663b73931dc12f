"""Shared test fixtures and factories."""

from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from types import SimpleNamespace
from typing import Any

import pytest

from bubble.core.context import ContextAssembler
from bubble.core.sink import BufferSink
from bubble.core.types import AgentConfig, AgentExecutionResult, AgentInput, OutputMessage
from bubble.images.base import ImageGenerationError
from bubble.images.types import GeneratedImage
from bubble.llm.types import Delta, GroundingReference, RetryNotice, StreamRequest
from bubble.research.types import ProgressCallback, ResearchResult
from bubble.routing.types import RouterAction, RoutingDecision

FIXED_NOW = datetime(2025, 3, 14, 15, 9, 26, tzinfo=UTC)

# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def config_toml_content() -> str:
    """Valid TOML config content."""
    return """
default_model = "gemini-2.5-flash"
timezone = "UTC"

[gemini]
api_key = "gemini-test-key"

[agent]
max_loops = 4
thinking_budget = 1024

[retry]
max_retries = 2
"""


@pytest.fixture
def config_file(tmp_path: Path, config_toml_content: str) -> Path:
    """Create a temporary config file."""
    config_path = tmp_path / "config.toml"
    config_path.write_text(config_toml_content)
    return config_path


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point BUBBLE_HOME at a temp dir and clear provider keys."""
    from bubble.config.paths import get_bubble_home

    home = tmp_path / "bubble-home"
    monkeypatch.setenv("BUBBLE_HOME", str(home))
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("OPENROUTER_API_KEY", raising=False)
    get_bubble_home.cache_clear()
    yield home
    get_bubble_home.cache_clear()


# =============================================================================
# Provider Mocks
# =============================================================================


class MockTextProvider:
    """Mock streaming provider.

    Each stream call consumes the next script: a list of deltas (or plain
    strings), or an exception raised when the stream is opened.
    """

    def __init__(
        self,
        scripts: list[list[Delta | str] | Exception] | None = None,
        *,
        name: str = "mock",
        is_native: bool = True,
        json_response: str = '{"src/main.py": "entry point"}',
    ):
        self.scripts = list(scripts or [])
        self._name = name
        self._is_native = is_native
        self.json_response = json_response
        self.stream_calls: list[StreamRequest] = []
        self.json_calls: list[dict[str, Any]] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def is_native(self) -> bool:
        return self._is_native

    async def stream(
        self,
        request: StreamRequest,
        *,
        on_retry: RetryNotice | None = None,
    ) -> AsyncIterator[Delta]:
        self.stream_calls.append(request)
        script: list[Delta | str] | Exception = (
            self.scripts.pop(0) if self.scripts else ["Mock ", "response"]
        )
        if isinstance(script, Exception):
            raise script
        for item in script:
            yield Delta(text=item) if isinstance(item, str) else item

    async def complete_json(
        self,
        model: str | None,
        prompt: str,
        *,
        on_retry: RetryNotice | None = None,
    ) -> str:
        self.json_calls.append({"model": model, "prompt": prompt})
        return self.json_response


class MockProviderFactory:
    """Hands out the same mock providers for every turn."""

    def __init__(
        self,
        native: MockTextProvider | None = None,
        aggregator: MockTextProvider | None = None,
    ):
        self.native_provider = native or MockTextProvider()
        self.aggregator_provider = aggregator or MockTextProvider(
            name="aggregator", is_native=False
        )
        self.native_keys: list[Any] = []
        self.aggregator_keys: list[Any] = []

    def native(self, api_key: Any) -> MockTextProvider:
        self.native_keys.append(api_key)
        return self.native_provider

    def aggregator(self, api_key: Any) -> MockTextProvider:
        self.aggregator_keys.append(api_key)
        return self.aggregator_provider


# =============================================================================
# Collaborator Mocks
# =============================================================================


class MockRouter:
    """Router returning a fixed decision (or raising)."""

    def __init__(
        self,
        action: RouterAction = RouterAction.SIMPLE,
        parameters: dict[str, Any] | None = None,
        error: Exception | None = None,
    ):
        self.action = action
        self.parameters = parameters or {}
        self.error = error
        self.calls: list[dict[str, Any]] = []

    async def route(
        self, prompt: str, user_id: str, credential: str | None, file_count: int
    ) -> RoutingDecision:
        self.calls.append(
            {
                "prompt": prompt,
                "user_id": user_id,
                "credential": credential,
                "file_count": file_count,
            }
        )
        if self.error is not None:
            raise self.error
        return RoutingDecision(action=self.action, parameters=dict(self.parameters))


class MockResearch:
    def __init__(
        self,
        answer: str = "Search answer",
        sources: list[str] | None = None,
        progress_messages: list[str] | None = None,
    ):
        self.answer = answer
        self.sources = sources if sources is not None else []
        self.progress_messages = progress_messages or []
        self.calls: list[dict[str, Any]] = []

    async def deep_research(
        self, query: str, credential: str | None, progress: ProgressCallback
    ) -> ResearchResult:
        self.calls.append({"query": query, "credential": credential})
        for message in self.progress_messages:
            progress(message)
        return ResearchResult(answer=self.answer, sources=list(self.sources))


class MockImageGenerator:
    def __init__(self, image_base64: str = "aW1hZ2U=", error: Exception | None = None):
        self.image_base64 = image_base64
        self.error = error
        self.calls: list[dict[str, Any]] = []

    async def generate_image(
        self, prompt: str, credential: str | None, model_preference: str | None
    ) -> GeneratedImage:
        self.calls.append(
            {"prompt": prompt, "credential": credential, "preference": model_preference}
        )
        if self.error is not None:
            raise self.error
        return GeneratedImage(image_base64=self.image_base64)


class MockMemory:
    def __init__(
        self,
        context: dict[str, dict[str, Any]] | None = None,
        error: Exception | None = None,
    ):
        self.context = context or {}
        self.error = error
        self.calls: list[dict[str, Any]] = []

    async def get_context(
        self, layers: list[str], *, user_id: str
    ) -> dict[str, dict[str, Any]]:
        self.calls.append({"layers": layers, "user_id": user_id})
        if self.error is not None:
            raise self.error
        return {layer: dict(self.context.get(layer, {})) for layer in layers}


class MockUsageCounter:
    def __init__(self, error: Exception | None = None):
        self.error = error
        self.calls: list[tuple[str | None, str]] = []

    async def increment_thinking_count(self, credential: str | None, user_id: str) -> None:
        self.calls.append((credential, user_id))
        if self.error is not None:
            raise self.error


class MockSubAgent:
    def __init__(self, text: str = "Canvas built", plan: dict[str, Any] | None = None):
        self.text = text
        self.plan = plan
        self.inputs: list[AgentInput] = []

    async def run(self, agent_input: AgentInput) -> AgentExecutionResult:
        self.inputs.append(agent_input)
        return AgentExecutionResult(
            messages=[
                OutputMessage(
                    project_id=agent_input.project_id,
                    chat_id=agent_input.chat_id,
                    text=self.text,
                )
            ],
            updated_plan=self.plan,
        )


@dataclass
class AgentHarness:
    """An agent wired to mocks, with handles on every collaborator."""

    agent: Any
    providers: MockProviderFactory
    router: MockRouter
    research: MockResearch
    images: MockImageGenerator
    memory: MockMemory
    usage: MockUsageCounter
    sub_agent: MockSubAgent | None
    sink: BufferSink = field(default_factory=BufferSink)

    @property
    def native(self) -> MockTextProvider:
        return self.providers.native_provider

    @property
    def aggregator(self) -> MockTextProvider:
        return self.providers.aggregator_provider

    def make_input(self, prompt: str = "Hello", **kwargs: Any) -> AgentInput:
        defaults: dict[str, Any] = {
            "model": "gemini-2.5-flash",
            "user_id": "user-1",
            "api_key": "gemini-key",
            "sink": self.sink,
            "project_id": "project-1",
            "chat_id": "chat-1",
        }
        defaults.update(kwargs)
        return AgentInput(prompt=prompt, **defaults)


def make_harness(
    *,
    native: MockTextProvider | None = None,
    aggregator: MockTextProvider | None = None,
    router: MockRouter | None = None,
    research: MockResearch | None = None,
    images: MockImageGenerator | None = None,
    memory: MockMemory | None = None,
    usage: MockUsageCounter | None = None,
    sub_agent: MockSubAgent | None = None,
    config: AgentConfig | None = None,
) -> AgentHarness:
    from bubble.core.agent import AutonomousAgent

    config = config or AgentConfig()
    providers = MockProviderFactory(native=native, aggregator=aggregator)
    router = router or MockRouter()
    research = research or MockResearch()
    images = images or MockImageGenerator()
    memory = memory or MockMemory()
    usage = usage or MockUsageCounter()
    agent = AutonomousAgent(
        providers=providers,  # type: ignore[arg-type]
        router=router,
        research=research,
        images=images,
        usage=usage,
        sub_agent=sub_agent,
        config=config,
        assembler=ContextAssembler(
            memory, layers=config.memory_layers, clock=lambda: FIXED_NOW
        ),
    )
    return AgentHarness(
        agent=agent,
        providers=providers,
        router=router,
        research=research,
        images=images,
        memory=memory,
        usage=usage,
        sub_agent=sub_agent,
    )


@pytest.fixture
def harness() -> AgentHarness:
    """Agent wired to default mocks."""
    return make_harness()


def grounded(text: str, *refs: tuple[str, str]) -> Delta:
    """Delta carrying grounding references."""
    return Delta(
        text=text, grounding=[GroundingReference(uri=uri, title=title) for uri, title in refs]
    )


# =============================================================================
# google-genai Client Fakes
# =============================================================================


def genai_chunk(text: str | None = None, refs: tuple[tuple[str, str], ...] = ()) -> Any:
    """Response (or stream chunk) shaped like google-genai's."""
    candidates = None
    if refs:
        web_chunks = [
            SimpleNamespace(web=SimpleNamespace(uri=uri, title=title))
            for uri, title in refs
        ]
        candidates = [
            SimpleNamespace(
                grounding_metadata=SimpleNamespace(grounding_chunks=web_chunks)
            )
        ]
    return SimpleNamespace(text=text, candidates=candidates)


async def _iter_chunks(chunks: list[Any]) -> AsyncIterator[Any]:
    for chunk in chunks:
        if isinstance(chunk, Exception):
            raise chunk
        yield chunk


class FakeGenaiModels:
    """Scripted stand-in for ``client.aio.models``.

    Each call pops the next scripted item; exceptions are raised. Stream
    scripts are lists of chunks, and an exception inside the list is
    raised when iteration reaches it.
    """

    def __init__(self):
        self.stream_scripts: list[Any] = []
        self.content_responses: list[Any] = []
        self.image_responses: list[Any] = []
        self.calls: list[tuple[str, dict[str, Any]]] = []

    @staticmethod
    def _next(script: list[Any]) -> Any:
        item = script.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    async def generate_content_stream(self, **kwargs: Any) -> AsyncIterator[Any]:
        self.calls.append(("generate_content_stream", kwargs))
        return _iter_chunks(self._next(self.stream_scripts))

    async def generate_content(self, **kwargs: Any) -> Any:
        self.calls.append(("generate_content", kwargs))
        return self._next(self.content_responses)

    async def generate_images(self, **kwargs: Any) -> Any:
        self.calls.append(("generate_images", kwargs))
        return self._next(self.image_responses)

    def calls_to(self, method: str) -> list[dict[str, Any]]:
        return [kwargs for name, kwargs in self.calls if name == method]


class FakeGenaiClient:
    def __init__(self):
        self.models = FakeGenaiModels()
        self.aio = SimpleNamespace(models=self.models)
        self.credentials: list[str | None] = []

    def factory(self, credential: str | None) -> "FakeGenaiClient":
        self.credentials.append(credential)
        return self


@pytest.fixture
def genai_client() -> FakeGenaiClient:
    return FakeGenaiClient()


# =============================================================================
# CLI Fixtures
# =============================================================================


@pytest.fixture
def cli_runner():
    """Create a Typer CLI test runner with colors disabled."""
    from typer.testing import CliRunner

    return CliRunner(env={"NO_COLOR": "1"})


__all__ = [
    "FIXED_NOW",
    "AgentHarness",
    "FakeGenaiClient",
    "ImageGenerationError",
    "MockImageGenerator",
    "MockMemory",
    "MockProviderFactory",
    "MockResearch",
    "MockRouter",
    "MockSubAgent",
    "MockTextProvider",
    "MockUsageCounter",
    "genai_chunk",
    "grounded",
    "make_harness",
]
