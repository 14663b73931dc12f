"""LLM message types and data structures."""

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum


class Role(str, Enum):
    """Message role."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


@dataclass(frozen=True)
class Attachment:
    """A file attached to the user's turn."""

    data: bytes
    mime_type: str
    name: str | None = None


@dataclass
class Message:
    """A message in the conversation."""

    role: Role
    text: str
    attachments: list[Attachment] = field(default_factory=list)


@dataclass(frozen=True)
class GroundingReference:
    """A citation attached to generated text."""

    uri: str
    title: str


@dataclass
class Delta:
    """An incremental piece of streamed output."""

    text: str
    grounding: list[GroundingReference] = field(default_factory=list)


@dataclass
class StreamRequest:
    """Everything a provider needs to open one stream."""

    model: str
    messages: list[Message]
    system: str | None = None
    thinking_budget: int | None = None


# Receives human-readable notices (e.g. rate-limit backoff) during a call
RetryNotice = Callable[[str], None]
