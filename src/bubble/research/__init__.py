"""Web research collaborators."""

from bubble.research.gemini import GeminiResearchService
from bubble.research.types import ProgressCallback, ResearchResult, ResearchService

__all__ = [
    "GeminiResearchService",
    "ProgressCallback",
    "ResearchResult",
    "ResearchService",
]
