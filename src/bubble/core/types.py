"""Core type definitions for the agent module."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

from bubble.config.models import DEFAULT_MEMORY_LAYERS, DEFAULT_NATIVE_MODEL
from bubble.llm.models import DEFAULT_THINKING_MARKERS
from bubble.llm.types import Attachment, GroundingReference
from bubble.routing.types import RouterAction, RoutingDecision

if TYPE_CHECKING:
    from bubble.config.models import BubbleConfig
    from bubble.core.sink import StreamSink
    from bubble.llm.gemini import GeminiProvider

MAX_LOOPS = 6
DEFAULT_THINKING_BUDGET = 2048


@dataclass(frozen=True)
class ChatTurn:
    """A prior turn in the conversation."""

    sender: str  # "user" or "ai"
    text: str

    @property
    def is_user(self) -> bool:
        return self.sender == "user"


@dataclass(frozen=True)
class UserSettings:
    """User-scoped preferences and credentials."""

    openrouter_api_key: str | None = None
    # "nano_banana" or "imagen_*" for the premium tier
    preferred_image_model: str = "nano_banana"


@dataclass(frozen=True, kw_only=True)
class AgentInput:
    """Everything the agent needs for one turn. Never mutated."""

    prompt: str
    model: str | None
    user_id: str
    api_key: str | None
    sink: StreamSink
    history: tuple[ChatTurn, ...] = ()
    files: tuple[Attachment, ...] = ()
    settings: UserSettings = field(default_factory=UserSettings)
    project_id: str | None = None
    chat_id: str | None = None


@dataclass
class OutputMessage:
    """A message produced by the agent."""

    project_id: str | None
    chat_id: str | None
    text: str
    sender: str = "ai"
    image_base64: str | None = None
    grounding_metadata: list[GroundingReference] | None = None


@dataclass
class AgentExecutionResult:
    """Outcome of one turn."""

    messages: list[OutputMessage]
    updated_plan: dict[str, Any] | None = None
    hops: int = 0
    hop_budget_exhausted: bool = False

    @property
    def text(self) -> str:
        return self.messages[0].text if self.messages else ""


class SubAgent(Protocol):
    """Specialised agent the loop can delegate a turn to."""

    async def run(self, agent_input: AgentInput) -> AgentExecutionResult: ...


@dataclass
class AgentConfig:
    """Configuration for the agent loop."""

    default_model: str = DEFAULT_NATIVE_MODEL
    max_loops: int = MAX_LOOPS
    thinking_budget: int = DEFAULT_THINKING_BUDGET
    thinking_markers: tuple[str, ...] = DEFAULT_THINKING_MARKERS
    memory_layers: tuple[str, ...] = tuple(DEFAULT_MEMORY_LAYERS)

    @classmethod
    def from_settings(cls, config: BubbleConfig) -> AgentConfig:
        return cls(
            default_model=config.default_model,
            max_loops=config.agent.max_loops,
            thinking_budget=config.agent.thinking_budget,
            thinking_markers=tuple(config.agent.thinking_markers),
            memory_layers=tuple(config.agent.memory_layers),
        )


# Internal types below - not part of public API


@dataclass
class LoopState:
    """Mutable state of one turn. Created per run, never shared."""

    action: RouterAction
    prompt: str
    original_prompt: str
    model: str
    is_native: bool
    routing: RoutingDecision
    response_text: str = ""
    grounding: list[GroundingReference] = field(default_factory=list)
    hops: int = 0
    fallback_search_context: str = ""
    image_base64: str | None = None
    updated_plan: dict[str, Any] | None = None
    native_provider: GeminiProvider | None = None
