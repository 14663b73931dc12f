"""Layered user memory."""

from bubble.memory.jsonl import TypedJSONL
from bubble.memory.store import LayeredMemoryStore
from bubble.memory.types import MemoryEntry, MemoryProvider

__all__ = [
    "LayeredMemoryStore",
    "MemoryEntry",
    "MemoryProvider",
    "TypedJSONL",
]
