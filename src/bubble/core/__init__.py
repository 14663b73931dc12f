"""Core agent functionality."""

from bubble.core.agent import AutonomousAgent, create_agent
from bubble.core.context import ContextAssembler, TurnContext, format_timestamp
from bubble.core.directives import Directive, scan_directives
from bubble.core.errors import user_friendly_error
from bubble.core.sink import (
    IMAGE_GENERATION_START,
    BufferSink,
    CallbackSink,
    NullSink,
    StreamSink,
    split_status_markers,
    status_marker,
)
from bubble.core.types import (
    MAX_LOOPS,
    AgentConfig,
    AgentExecutionResult,
    AgentInput,
    ChatTurn,
    OutputMessage,
    SubAgent,
    UserSettings,
)

__all__ = [
    "IMAGE_GENERATION_START",
    "MAX_LOOPS",
    "AgentConfig",
    "AgentExecutionResult",
    "AgentInput",
    "AutonomousAgent",
    "BufferSink",
    "CallbackSink",
    "ChatTurn",
    "ContextAssembler",
    "Directive",
    "NullSink",
    "OutputMessage",
    "StreamSink",
    "SubAgent",
    "TurnContext",
    "UserSettings",
    "create_agent",
    "format_timestamp",
    "scan_directives",
    "split_status_markers",
    "status_marker",
    "user_friendly_error",
]
