"""CLI command modules."""

from bubble.cli.commands import chat, memory

__all__ = [
    "chat",
    "memory",
]
