"""Per-user usage counters."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Protocol

import aiofiles

from bubble.config.paths import get_usage_path

logger = logging.getLogger(__name__)

THINKING_COUNTER = "thinking"


class UsageCounter(Protocol):
    """Records metered skill usage."""

    async def increment_thinking_count(
        self, credential: str | None, user_id: str
    ) -> None: ...


class FileUsageCounter:
    """Usage counts kept in a single JSON document.

    Layout: ``{"<user_id>": {"thinking": 3}}``.
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or get_usage_path()
        self._lock = asyncio.Lock()

    async def _load(self) -> dict[str, dict[str, int]]:
        if not self._path.exists():
            return {}
        async with aiofiles.open(self._path, encoding="utf-8") as f:
            raw = await f.read()
        try:
            data: Any = json.loads(raw) if raw.strip() else {}
        except json.JSONDecodeError:
            logger.warning("usage_file_corrupted", extra={"file.name": self._path.name})
            return {}
        return data if isinstance(data, dict) else {}

    async def get_counts(self, user_id: str) -> dict[str, int]:
        """Get all counters for a user."""
        return dict((await self._load()).get(user_id, {}))

    async def increment(self, user_id: str, counter: str) -> int:
        """Increment a counter and return its new value."""
        async with self._lock:
            data = await self._load()
            counts = data.setdefault(user_id, {})
            counts[counter] = counts.get(counter, 0) + 1
            self._path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(self._path, "w", encoding="utf-8") as f:
                await f.write(json.dumps(data, indent=2, sort_keys=True))
            return counts[counter]

    async def increment_thinking_count(
        self, credential: str | None, user_id: str
    ) -> None:
        await self.increment(user_id, THINKING_COUNTER)
