"""Abstract text provider interface."""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator

from bubble.llm.types import Delta, RetryNotice, StreamRequest


class TextProvider(ABC):
    """Abstract interface for streaming text providers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider identifier (e.g., 'gemini', 'openrouter')."""
        ...

    @property
    @abstractmethod
    def is_native(self) -> bool:
        """Whether this is the first-party provider.

        Only native streams carry grounding metadata and accept attachments.
        """
        ...

    @abstractmethod
    def stream(
        self,
        request: StreamRequest,
        *,
        on_retry: RetryNotice | None = None,
    ) -> AsyncIterator[Delta]:
        """Generate a streaming completion.

        Args:
            request: Model, conversation and system instruction.
            on_retry: Receives user-facing notices when the call backs off.

        Yields:
            Deltas in generation order.
        """
        ...
