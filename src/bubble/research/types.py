"""Types for web research."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

ProgressCallback = Callable[[str], None]


@dataclass(slots=True)
class ResearchResult:
    """A grounded answer and the URLs it was drawn from."""

    answer: str
    sources: list[str] = field(default_factory=list)


class ResearchService(Protocol):
    """Contract for web research backends."""

    async def deep_research(
        self,
        query: str,
        credential: str | None,
        progress: ProgressCallback,
    ) -> ResearchResult:
        """Research a query, reporting progress as short messages."""
        ...
