"""Per-turn prompt context assembly.

The context is built once per turn and reused by every hop: the base
instruction with the model identity filled in, the user's memory layers
and the current wall-clock time.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from bubble.core.prompt import AUTONOMOUS_INSTRUCTION, render_instruction
from bubble.llm.models import friendly_model_name
from bubble.memory.types import MemoryProvider

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%A, %B %d, %Y at %I:%M:%S %p %Z"

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(UTC)


def format_timestamp(now: datetime, timezone: str = "UTC") -> str:
    """Render a moment in the configured timezone."""
    try:
        tz = ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError):
        tz = ZoneInfo("UTC")
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    return now.astimezone(tz).strftime(TIMESTAMP_FORMAT)


@dataclass(frozen=True)
class TurnContext:
    """Prompt material shared by all hops of a turn."""

    instruction: str
    memory: dict[str, dict[str, Any]]
    timestamp: str

    @property
    def memory_block(self) -> str:
        payload = json.dumps(
            self.memory, ensure_ascii=False, separators=(",", ":"), default=str
        )
        return f"[MEMORY]\n{payload}"

    @property
    def datetime_block(self) -> str:
        return f"[CURRENT DATE & TIME]\n{self.timestamp}\n"

    @property
    def system_prompt(self) -> str:
        """System instruction for conversational hops."""
        return f"{self.instruction}\n\n{self.memory_block}\n\n{self.datetime_block}"

    def task_prompt(self, task: str) -> str:
        """Single user message carrying the full context plus a task."""
        return (
            f"{self.instruction}\n\n{self.datetime_block}\n\n"
            f"{self.memory_block}\n\n[TASK]\n{task}"
        )


class ContextAssembler:
    """Builds the TurnContext for a model and user."""

    def __init__(
        self,
        memory: MemoryProvider | None,
        *,
        layers: Sequence[str],
        timezone: str = "UTC",
        template: str = AUTONOMOUS_INSTRUCTION,
        clock: Clock = _utc_now,
    ) -> None:
        self._memory = memory
        self._layers = list(layers)
        self._timezone = timezone
        self._template = template
        self._clock = clock

    async def _load_memory(self, user_id: str) -> dict[str, dict[str, Any]]:
        if self._memory is None:
            return {}
        try:
            return await self._memory.get_context(self._layers, user_id=user_id)
        except Exception as e:
            logger.warning(
                "memory_retrieval_failed",
                extra={"user.id": user_id, "error.message": str(e)},
                exc_info=True,
            )
            return {}

    async def assemble(self, model: str, user_id: str) -> TurnContext:
        return TurnContext(
            instruction=render_instruction(friendly_model_name(model), self._template),
            memory=await self._load_memory(user_id),
            timestamp=format_timestamp(self._clock(), self._timezone),
        )
