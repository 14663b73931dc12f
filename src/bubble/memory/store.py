"""Filesystem-backed layered memory store.

Each user has one JSONL file. Writes append; on read the latest entry
for a (layer, key) pair wins. ``compact`` rewrites the file keeping only
the live entries.
"""

from __future__ import annotations

import asyncio
import logging
import re
from pathlib import Path
from typing import Any

from bubble.config.paths import get_memory_path
from bubble.memory.jsonl import TypedJSONL
from bubble.memory.types import MemoryEntry

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class LayeredMemoryStore:
    """Per-user memory organised in named layers."""

    def __init__(self, base_path: Path | None = None) -> None:
        self._base_path = base_path or get_memory_path()
        self._write_lock = asyncio.Lock()

    def _jsonl(self, user_id: str) -> TypedJSONL[MemoryEntry]:
        filename = _UNSAFE_CHARS.sub("_", user_id) or "_"
        return TypedJSONL(self._base_path / f"{filename}.jsonl", MemoryEntry)

    async def _live_entries(self, user_id: str) -> dict[tuple[str, str], MemoryEntry]:
        live: dict[tuple[str, str], MemoryEntry] = {}
        for entry in await self._jsonl(user_id).load_all():
            live[(entry.layer, entry.key)] = entry
        return live

    async def store(self, user_id: str, layer: str, key: str, value: Any) -> None:
        """Set a value, replacing any previous value for the same key."""
        async with self._write_lock:
            await self._jsonl(user_id).append(
                MemoryEntry(layer=layer, key=key, value=value)
            )
        logger.debug(
            "memory_stored",
            extra={"user.id": user_id, "memory.layer": layer, "memory.key": key},
        )

    async def get(self, user_id: str, layer: str, key: str) -> Any | None:
        """Get a single value, or None when unset."""
        entry = (await self._live_entries(user_id)).get((layer, key))
        return entry.value if entry else None

    async def get_all(self, user_id: str, layer: str) -> dict[str, Any]:
        """Get every key/value pair in a layer."""
        return {
            key: entry.value
            for (entry_layer, key), entry in (await self._live_entries(user_id)).items()
            if entry_layer == layer
        }

    async def get_context(
        self, layers: list[str], *, user_id: str
    ) -> dict[str, dict[str, Any]]:
        """Get the selected layers, each mapped to its key/value pairs."""
        live = await self._live_entries(user_id)
        context: dict[str, dict[str, Any]] = {layer: {} for layer in layers}
        for (layer, key), entry in live.items():
            if layer in context:
                context[layer][key] = entry.value
        return context

    async def compact(self, user_id: str) -> int:
        """Drop superseded entries.

        Returns:
            Number of entries removed.
        """
        async with self._write_lock:
            jsonl = self._jsonl(user_id)
            if not jsonl.exists():
                return 0
            total = len(await jsonl.load_all())
            live = list((await self._live_entries(user_id)).values())
            await jsonl.rewrite(live)
        return total - len(live)
