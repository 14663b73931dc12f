"""Retry utilities for native provider calls."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from bubble.llm.errors import MaxRetriesExceededError
from bubble.llm.types import RetryNotice

logger = logging.getLogger(__name__)

RATE_LIMIT_MARKERS = ("429", "quota", "RESOURCE_EXHAUSTED")

Sleep = Callable[[float], Awaitable[None]]


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""

    enabled: bool = True
    max_retries: int = 3
    base_delay_ms: int = 2000  # 2 seconds
    offset_ms: int = 1000  # added after the exponential term

    def delay_ms(self, attempt: int) -> int:
        """Backoff before retrying after the given zero-based attempt."""
        return (2**attempt) * self.base_delay_ms + self.offset_ms


def is_rate_limit_error(error: Exception) -> bool:
    """Check if an error means the caller is being rate limited.

    Matches a 429 status or code attribute (google-genai sets ``code`` and
    ``status``, httpx-style errors set ``status_code``), or a message
    mentioning 429, quota or RESOURCE_EXHAUSTED.
    """
    for attr in ("code", "status", "status_code"):
        value = getattr(error, attr, None)
        if value == 429 or value == "429" or value == "RESOURCE_EXHAUSTED":
            return True

    message = str(error)
    return any(marker in message for marker in RATE_LIMIT_MARKERS)


def retry_notice(delay_ms: int) -> str:
    """User-facing text announcing a backoff wait."""
    return f"(Rate limit hit. Retrying in {round(delay_ms / 1000)}s...)"


async def with_retry[T](
    func: Callable[[], Awaitable[T]],
    config: RetryConfig | None = None,
    operation_name: str = "API call",
    on_retry: RetryNotice | None = None,
    sleep: Sleep = asyncio.sleep,
) -> T:
    """Execute an async function, backing off exponentially on rate limits.

    Args:
        func: Async function to execute.
        config: Retry configuration.
        operation_name: Name for logging.
        on_retry: Receives a notice before each wait.
        sleep: Coroutine used to wait; replaced in tests.

    Returns:
        Result of the function.

    Raises:
        MaxRetriesExceededError: If the call is still rate limited after
            all retries. Chained from the last rate-limit error.
        Exception: Any non rate-limit error, unchanged and immediately.
    """
    config = config or RetryConfig()

    if not config.enabled:
        return await func()

    for attempt in range(config.max_retries + 1):
        try:
            return await func()
        except Exception as e:
            if not is_rate_limit_error(e):
                raise

            if attempt >= config.max_retries:
                logger.warning(
                    "retry_exhausted",
                    extra={
                        "operation": operation_name,
                        "attempts": config.max_retries + 1,
                        "error.message": str(e),
                        "error.type": type(e).__name__,
                    },
                )
                raise MaxRetriesExceededError(config.max_retries + 1) from e

            delay_ms = config.delay_ms(attempt)

            logger.info(
                "retry_attempt",
                extra={
                    "operation": operation_name,
                    "attempt": attempt + 1,
                    "max_attempts": config.max_retries + 1,
                    "retry_delay_s": round(delay_ms / 1000, 1),
                    "error.message": str(e),
                    "error.type": type(e).__name__,
                },
            )

            if on_retry is not None:
                on_retry(retry_notice(delay_ms))

            await sleep(delay_ms / 1000)

    # Unreachable: the loop either returns or raises
    raise MaxRetriesExceededError(config.max_retries + 1)
