"""Streaming sinks for incremental agent output.

Status markers are JSON objects with a ``type`` field sent as their own
chunk (e.g. ``{"type": "image_generation_start", "text": "..."}``).
Display layers strip them with :func:`split_status_markers`.
"""

import json
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol

IMAGE_GENERATION_START = "image_generation_start"
STATUS_MARKER_TYPES = frozenset({IMAGE_GENERATION_START})

_MARKER_START = re.compile(r'\{\s*"type"\s*:')
_decoder = json.JSONDecoder()


class StreamSink(Protocol):
    """Receives output chunks in generation order."""

    def send(self, text: str) -> None: ...


class CallbackSink:
    """Forwards every chunk to a callable."""

    def __init__(self, callback: Callable[[str], Any]) -> None:
        self._callback = callback

    def send(self, text: str) -> None:
        self._callback(text)


@dataclass
class BufferSink:
    """Collects chunks in memory."""

    chunks: list[str] = field(default_factory=list)

    def send(self, text: str) -> None:
        self.chunks.append(text)

    @property
    def text(self) -> str:
        return "".join(self.chunks)


class NullSink:
    """Discards all output."""

    def send(self, text: str) -> None:
        pass


def status_marker(marker_type: str, **fields: Any) -> str:
    """Serialize a status marker chunk."""
    return json.dumps({"type": marker_type, **fields}, ensure_ascii=False)


def split_status_markers(chunk: str) -> tuple[str, list[dict[str, Any]]]:
    """Separate status markers from displayable text.

    Only objects whose ``type`` is in :data:`STATUS_MARKER_TYPES` count as
    markers; any other JSON in model output is left in place.

    Returns:
        The chunk with markers removed, and the decoded markers in order.
    """
    markers: list[dict[str, Any]] = []
    pieces: list[str] = []
    pos = 0
    while match := _MARKER_START.search(chunk, pos):
        start = match.start()
        try:
            value, end = _decoder.raw_decode(chunk, start)
        except json.JSONDecodeError:
            value, end = None, start + 1
        if not isinstance(value, dict) or value.get("type") not in STATUS_MARKER_TYPES:
            pieces.append(chunk[pos : start + 1])
            pos = start + 1
            continue
        pieces.append(chunk[pos:start])
        markers.append(value)
        pos = end
    pieces.append(chunk[pos:])
    return "".join(pieces), markers
