"""JSONL file operations for memory storage.

Provides a generic TypedJSONL[T] for append and atomic rewrite of any
entry type that implements to_dict/from_dict.
"""

from __future__ import annotations

import json
import logging
import tempfile
from pathlib import Path
from typing import Any, Protocol, Self

import aiofiles

logger = logging.getLogger(__name__)


class Serializable(Protocol):
    """Protocol for types that can be serialized to/from JSON dicts."""

    def to_dict(self) -> dict[str, Any]: ...

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Self: ...


def _encode(entry: Serializable) -> str:
    return json.dumps(entry.to_dict(), ensure_ascii=False, separators=(",", ":"))


class TypedJSONL[T: Serializable]:
    """Generic JSONL file of typed entries."""

    def __init__(self, path: Path, entry_type: type[T]) -> None:
        self.path = path
        self._entry_type = entry_type
        self.last_error_count: int = 0

    def _ensure_parent(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)

    async def append(self, entry: T) -> None:
        """Append an entry to the file."""
        self._ensure_parent()
        async with aiofiles.open(self.path, "a", encoding="utf-8") as f:
            await f.write(_encode(entry) + "\n")

    async def load_all(self) -> list[T]:
        """Load all entries from the file.

        Malformed lines are skipped with a warning; the count is kept in
        ``last_error_count``.
        """
        if not self.path.exists():
            self.last_error_count = 0
            return []

        entries: list[T] = []
        error_count = 0
        async with aiofiles.open(self.path, encoding="utf-8") as f:
            async for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    entries.append(self._entry_type.from_dict(json.loads(line)))
                except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
                    error_count += 1
                    logger.warning(
                        "malformed_jsonl_line", extra={"error.message": str(e)}
                    )

        self.last_error_count = error_count
        if error_count > 0:
            logger.warning(
                "jsonl_file_corrupted",
                extra={"file.name": self.path.name, "error_count": error_count},
            )
        return entries

    async def rewrite(self, entries: list[T]) -> None:
        """Atomically rewrite the file (write to temp, then rename)."""
        self._ensure_parent()

        temp_fd, temp_path = tempfile.mkstemp(
            dir=self.path.parent,
            prefix=f".{self.path.stem}_",
            suffix=".tmp",
        )

        try:
            async with aiofiles.open(temp_fd, "w", encoding="utf-8") as f:
                for entry in entries:
                    await f.write(_encode(entry) + "\n")
            Path(temp_path).replace(self.path)
        except Exception:
            try:
                Path(temp_path).unlink()
            except OSError:
                pass
            raise

    def exists(self) -> bool:
        return self.path.exists()
