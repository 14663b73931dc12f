"""Autonomous agent: a bounded action-routing loop.

Each turn is routed to an initial action. Every hop runs exactly one
action; conversational hops may emit a directive tag that selects the
next action. The loop ends when an action resolves the turn or the hop
budget runs out.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import replace
from typing import TYPE_CHECKING
from urllib.parse import urlparse

from bubble.core.context import ContextAssembler, TurnContext
from bubble.core.directives import scan_directives
from bubble.core.errors import user_friendly_error
from bubble.core.sink import IMAGE_GENERATION_START, StreamSink, status_marker
from bubble.core.types import (
    AgentConfig,
    AgentExecutionResult,
    AgentInput,
    ChatTurn,
    LoopState,
    OutputMessage,
    SubAgent,
)
from bubble.images.base import ImageGenerator
from bubble.llm.errors import AggregatorError, ModelUnavailableError
from bubble.llm.gemini import GeminiProvider
from bubble.llm.models import is_native_model, supports_thinking
from bubble.llm.registry import ProviderFactory
from bubble.llm.streaming import prime_stream
from bubble.llm.types import Delta, GroundingReference, Message, Role, StreamRequest
from bubble.memory.types import MemoryProvider
from bubble.research.types import ResearchService
from bubble.routing.overrides import detect_video_override
from bubble.routing.router import ActionRouter, route_with_fallback
from bubble.routing.types import RouterAction
from bubble.usage import UsageCounter

if TYPE_CHECKING:
    from bubble.config.models import BubbleConfig

logger = logging.getLogger(__name__)

SEARCH_STATUS = "\nSearching sources... 🌐\n"
THINK_STATUS = "\nThinking deeply... 🧠\n"
PROJECT_STATUS = "\nBuilding project structure... 🏗️\n"
STUDY_STATUS = "\nCreating study plan... 🎓\n"
KEY_MISSING_NOTICE = "\n*(OpenRouter key missing, falling back to Gemini...)*\n"
IMAGE_START_MARKER = IMAGE_GENERATION_START

SYNTHESIS_PROMPT = (
    "USER QUERY: {query}\n\n"
    "SEARCH CONTEXT:\n{context}\n\n"
    "INSTRUCTIONS: Synthesize a comprehensive answer to the user's query based "
    "ONLY on the provided search context. Cite sources using [1], [2] format "
    "where appropriate."
)
PROJECT_PROMPT = (
    "Build a complete file structure for a project: {task}. Return a JSON object "
    "with filenames and brief content descriptions."
)
PROJECT_SUMMARY = (
    "\nI've designed the project structure based on your request.\n\n{structure}"
    "\n\n(Open the project workspace to fully hydrate and edit these files.)"
)
STUDY_PROMPT = (
    "Create a structured study plan for: {task}. "
    "Include learning objectives and key concepts."
)

# None means "continue with the next hop"
HopResult = AgentExecutionResult | None
Handler = Callable[[LoopState, AgentInput, TurnContext], Awaitable[HopResult]]


def source_title(url: str) -> str:
    """Short label for a source URL: its hostname without ``www.``."""
    try:
        hostname = urlparse(url).hostname
    except ValueError:
        hostname = None
    return hostname.replace("www.", "", 1) if hostname else "Source"


def unavailable_notice(model: str) -> str:
    return f"\n*(Model {model} unavailable, switching to Gemini...)*\n"


def _to_message(turn: ChatTurn) -> Message:
    return Message(role=Role.USER if turn.is_user else Role.ASSISTANT, text=turn.text)


def history_messages(
    history: tuple[ChatTurn, ...], *, drop_trailing_user: bool = False
) -> list[Message]:
    """Convert prior turns to provider messages, skipping empty ones.

    The caller's history may already include the current prompt as its
    last user turn; ``drop_trailing_user`` removes it.
    """
    turns = list(history)
    if drop_trailing_user and turns and turns[-1].is_user:
        turns = turns[:-1]
    return [_to_message(turn) for turn in turns if turn.text.strip()]


def _is_fallback_eligible(error: AggregatorError) -> bool:
    return isinstance(error, ModelUnavailableError) or error.status_code == 404


class AutonomousAgent:
    """Runs one user turn through the action-routing loop.

    Holds only collaborators, so one instance may serve concurrent turns.
    """

    def __init__(
        self,
        *,
        providers: ProviderFactory,
        router: ActionRouter,
        research: ResearchService,
        images: ImageGenerator,
        memory: MemoryProvider | None = None,
        usage: UsageCounter | None = None,
        sub_agent: SubAgent | None = None,
        config: AgentConfig | None = None,
        assembler: ContextAssembler | None = None,
    ) -> None:
        self._config = config or AgentConfig()
        self._providers = providers
        self._router = router
        self._research = research
        self._images = images
        self._usage = usage
        self._sub_agent = sub_agent
        self._assembler = assembler or ContextAssembler(
            memory, layers=self._config.memory_layers
        )
        self._handlers: dict[RouterAction, Handler] = {
            RouterAction.SEARCH: self._run_search,
            RouterAction.DEEP_SEARCH: self._run_search,
            RouterAction.THINK: self._run_think,
            RouterAction.IMAGE: self._run_image,
            RouterAction.CANVAS: self._run_canvas,
            RouterAction.PROJECT: self._run_project,
            RouterAction.STUDY: self._run_study,
            RouterAction.SIMPLE: self._run_simple,
        }

    @property
    def config(self) -> AgentConfig:
        return self._config

    async def run(self, agent_input: AgentInput) -> AgentExecutionResult:
        """Run one turn. Never raises; failures become an error message."""
        try:
            return await self._run_turn(agent_input)
        except Exception as e:
            logger.error(
                "agent_turn_failed",
                extra={
                    "user.id": agent_input.user_id,
                    "error.message": str(e),
                    "error.type": type(e).__name__,
                },
                exc_info=True,
            )
            # Aggregator messages are already written for users
            message = str(e) if isinstance(e, AggregatorError) else user_friendly_error(e)
            return AgentExecutionResult(
                messages=[
                    OutputMessage(
                        project_id=agent_input.project_id,
                        chat_id=agent_input.chat_id,
                        text=f"An error occurred: {message}",
                    )
                ]
            )

    async def _run_turn(self, agent_input: AgentInput) -> AgentExecutionResult:
        sink = agent_input.sink
        model = (agent_input.model or "").strip() or self._config.default_model

        if not is_native_model(model) and not agent_input.settings.openrouter_api_key:
            sink.send(KEY_MISSING_NOTICE)
            logger.warning(
                "agent_fallback",
                extra={"reason": "openrouter_key_missing", "model": model},
            )
            model = self._config.default_model

        prompt = agent_input.prompt
        override = detect_video_override(prompt)
        if override is not None:
            prompt = override.prompt

        routing = await route_with_fallback(
            self._router,
            prompt,
            agent_input.user_id,
            agent_input.api_key,
            len(agent_input.files),
        )
        routing.action = RouterAction.parse(routing.action)
        if override is not None:
            routing.action = RouterAction.SEARCH
            routing.parameters = {}

        context = await self._assembler.assemble(model, agent_input.user_id)

        state = LoopState(
            action=routing.action,
            prompt=prompt,
            original_prompt=prompt,
            model=model,
            is_native=is_native_model(model),
            routing=routing,
        )

        while state.hops < self._config.max_loops:
            state.hops += 1
            logger.info(
                "agent_hop",
                extra={
                    "hop": state.hops,
                    "action": state.action.value,
                    "model": state.model,
                },
            )
            handler = self._handlers.get(state.action, self._run_simple)
            result = await handler(state, agent_input, context)
            if result is not None:
                return result

        logger.warning(
            "agent_hop_budget_exhausted",
            extra={"max_loops": self._config.max_loops, "action": state.action.value},
        )
        return self._result(state, agent_input, hop_budget_exhausted=True)

    def _result(
        self,
        state: LoopState,
        agent_input: AgentInput,
        *,
        hop_budget_exhausted: bool = False,
    ) -> AgentExecutionResult:
        message = OutputMessage(
            project_id=agent_input.project_id,
            chat_id=agent_input.chat_id,
            text=state.response_text,
            image_base64=state.image_base64,
            grounding_metadata=list(state.grounding) or None,
        )
        return AgentExecutionResult(
            messages=[message],
            updated_plan=state.updated_plan,
            hops=state.hops,
            hop_budget_exhausted=hop_budget_exhausted,
        )

    def _native(self, state: LoopState, agent_input: AgentInput) -> GeminiProvider:
        if state.native_provider is None:
            state.native_provider = self._providers.native(agent_input.api_key)
        return state.native_provider

    async def _consume(
        self,
        stream: AsyncIterator[Delta],
        state: LoopState,
        sink: StreamSink,
        *,
        collect_grounding: bool,
    ) -> str:
        """Forward a stream to the sink. Returns the text of this hop."""
        hop_text = ""
        async for delta in stream:
            if delta.text:
                hop_text += delta.text
                state.response_text += delta.text
                sink.send(delta.text)
            if collect_grounding and delta.grounding:
                state.grounding.extend(delta.grounding)
        return hop_text

    async def _record_thinking(self, agent_input: AgentInput) -> None:
        if self._usage is None:
            return
        try:
            await self._usage.increment_thinking_count(
                agent_input.api_key, agent_input.user_id
            )
        except Exception as e:
            logger.warning(
                "usage_increment_failed",
                extra={"user.id": agent_input.user_id, "error.message": str(e)},
                exc_info=True,
            )

    async def _run_search(
        self, state: LoopState, agent_input: AgentInput, context: TurnContext
    ) -> HopResult:
        sink = agent_input.sink
        sink.send(SEARCH_STATUS)

        result = await self._research.deep_research(
            state.prompt,
            agent_input.api_key,
            lambda msg: sink.send(f"\n*{msg}*"),
        )
        if result.sources:
            state.grounding = [
                GroundingReference(uri=url, title=source_title(url))
                for url in result.sources
            ]

        state.fallback_search_context = result.answer
        state.prompt = SYNTHESIS_PROMPT.format(query=state.prompt, context=result.answer)
        state.action = RouterAction.SIMPLE
        return None

    async def _run_think(
        self, state: LoopState, agent_input: AgentInput, context: TurnContext
    ) -> HopResult:
        if not supports_thinking(state.model, self._config.thinking_markers):
            logger.info("think_downgraded", extra={"model": state.model})
            state.action = RouterAction.SIMPLE
            return None

        sink = agent_input.sink
        sink.send(THINK_STATUS)
        await self._record_thinking(agent_input)

        messages = history_messages(agent_input.history)
        messages.append(Message(role=Role.USER, text=context.task_prompt(state.prompt)))
        request = StreamRequest(
            model=state.model,
            messages=messages,
            thinking_budget=self._config.thinking_budget,
        )
        stream = self._native(state, agent_input).stream(request, on_retry=sink.send)
        await self._consume(stream, state, sink, collect_grounding=False)
        return self._result(state, agent_input)

    async def _run_image(
        self, state: LoopState, agent_input: AgentInput, context: TurnContext
    ) -> HopResult:
        sink = agent_input.sink
        sink.send(status_marker(IMAGE_START_MARKER, text=state.response_text))

        image_prompt = state.routing.parameters.get("prompt") or state.prompt
        try:
            image = await self._images.generate_image(
                image_prompt,
                agent_input.api_key,
                agent_input.settings.preferred_image_model,
            )
        except Exception as e:
            logger.warning(
                "image_generation_failed",
                extra={"error.message": str(e), "error.type": type(e).__name__},
                exc_info=True,
            )
            failure = f"\n\n(Image generation failed: {str(e) or 'Unknown error'})"
            state.response_text += failure
            sink.send(failure)
            return self._result(state, agent_input)

        state.image_base64 = image.image_base64
        return self._result(state, agent_input)

    async def _run_canvas(
        self, state: LoopState, agent_input: AgentInput, context: TurnContext
    ) -> HopResult:
        if self._sub_agent is None:
            logger.info("canvas_unavailable")
            state.action = RouterAction.SIMPLE
            return None

        result = await self._sub_agent.run(replace(agent_input, prompt=state.prompt))
        state.response_text = result.messages[0].text if result.messages else ""
        state.updated_plan = result.updated_plan
        return self._result(state, agent_input)

    async def _run_project(
        self, state: LoopState, agent_input: AgentInput, context: TurnContext
    ) -> HopResult:
        if not state.is_native:
            state.action = RouterAction.SIMPLE
            return None

        sink = agent_input.sink
        sink.send(PROJECT_STATUS)
        structure = await self._native(state, agent_input).complete_json(
            self._config.default_model,
            PROJECT_PROMPT.format(task=state.prompt),
            on_retry=sink.send,
        )
        summary = PROJECT_SUMMARY.format(structure=structure)
        state.response_text += summary
        sink.send(summary)
        return self._result(state, agent_input)

    async def _run_study(
        self, state: LoopState, agent_input: AgentInput, context: TurnContext
    ) -> HopResult:
        if not state.is_native:
            state.action = RouterAction.SIMPLE
            return None

        sink = agent_input.sink
        sink.send(STUDY_STATUS)
        request = StreamRequest(
            model=self._config.default_model,
            messages=[Message(role=Role.USER, text=STUDY_PROMPT.format(task=state.prompt))],
        )
        stream = self._native(state, agent_input).stream(request, on_retry=sink.send)
        await self._consume(stream, state, sink, collect_grounding=False)
        return self._result(state, agent_input)

    async def _open_aggregator(
        self, state: LoopState, agent_input: AgentInput, request: StreamRequest
    ) -> tuple[AsyncIterator[Delta], bool]:
        """Open the aggregator stream, falling back to the native default.

        Returns:
            The stream, and whether the native fallback is serving it.
        """
        key = agent_input.settings.openrouter_api_key
        assert key is not None
        aggregator = self._providers.aggregator(key)
        try:
            return await prime_stream(aggregator.stream(request)), False
        except AggregatorError as e:
            if not _is_fallback_eligible(e):
                raise
            logger.warning(
                "agent_fallback",
                extra={
                    "reason": "model_unavailable",
                    "model": state.model,
                    "fallback_model": self._config.default_model,
                },
            )
            agent_input.sink.send(unavailable_notice(state.model))
            fallback = replace(request, model=self._config.default_model)
            stream = self._native(state, agent_input).stream(
                fallback, on_retry=agent_input.sink.send
            )
            return stream, True

    async def _run_simple(
        self, state: LoopState, agent_input: AgentInput, context: TurnContext
    ) -> HopResult:
        sink = agent_input.sink

        messages = history_messages(agent_input.history, drop_trailing_user=True)
        attachments = list(agent_input.files) if state.is_native else []
        messages.append(Message(role=Role.USER, text=state.prompt, attachments=attachments))
        request = StreamRequest(
            model=state.model, messages=messages, system=context.system_prompt
        )

        if state.is_native:
            stream = self._native(state, agent_input).stream(request, on_retry=sink.send)
            used_fallback = False
        else:
            stream, used_fallback = await self._open_aggregator(
                state, agent_input, request
            )

        hop_text = await self._consume(
            stream,
            state,
            sink,
            collect_grounding=state.is_native or used_fallback,
        )

        directive = scan_directives(hop_text)
        if directive is not None:
            logger.info(
                "agent_directive",
                extra={"hop": state.hops, "action": directive.action.value},
            )
            state.action = directive.action
            state.prompt = directive.payload
            if directive.action == RouterAction.THINK and not directive.payload:
                state.prompt = state.original_prompt
            if directive.action == RouterAction.IMAGE:
                state.routing.parameters = {"prompt": directive.payload}
            return None

        if not state.response_text.strip() and state.fallback_search_context:
            state.response_text = state.fallback_search_context
            sink.send(state.fallback_search_context)

        return self._result(state, agent_input)


def create_agent(
    config: BubbleConfig, *, sub_agent: SubAgent | None = None
) -> AutonomousAgent:
    """Build an agent wired to the bundled Gemini collaborators."""
    from bubble.images.gemini import GeminiImageGenerator
    from bubble.llm.registry import create_provider_factory
    from bubble.memory.store import LayeredMemoryStore
    from bubble.research.gemini import GeminiResearchService
    from bubble.routing.router import GeminiSemanticRouter
    from bubble.usage import FileUsageCounter

    agent_config = AgentConfig.from_settings(config)
    memory = LayeredMemoryStore(config.memory.path)

    return AutonomousAgent(
        providers=create_provider_factory(config),
        router=GeminiSemanticRouter(config.router.model),
        research=GeminiResearchService(config.research.model),
        images=GeminiImageGenerator(
            imagen_model=config.image.imagen_model,
            flash_model=config.image.flash_model,
        ),
        usage=FileUsageCounter(config.usage.path),
        sub_agent=sub_agent,
        config=agent_config,
        assembler=ContextAssembler(
            memory,
            layers=agent_config.memory_layers,
            timezone=config.timezone,
        ),
    )
