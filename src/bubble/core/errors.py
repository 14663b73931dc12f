"""Translation of failures into messages fit for end users."""

import httpx

from bubble.llm.errors import MaxRetriesExceededError

CONNECTION_MESSAGE = (
    "AI service connection failed. Please check your internet connection "
    "and disable any browser extensions (like ad-blockers), then try again."
)
INVALID_KEY_MESSAGE = "Your API key is not valid. Please check it in your settings."
QUOTA_MESSAGE = "You've exceeded your API quota. Please try again later."


def _error_message(error: BaseException) -> str:
    # google-genai APIError keeps the upstream text in .message
    message = getattr(error, "message", None)
    if isinstance(message, str) and message:
        return message
    return str(error) or type(error).__name__


def user_friendly_error(error: BaseException) -> str:
    """Map an exception to a short, actionable message."""
    message = _error_message(error)

    if (
        isinstance(error, (httpx.ConnectError, httpx.ConnectTimeout))
        or "Rpc failed" in message
        or "fetch" in message
    ):
        return CONNECTION_MESSAGE
    if "API key not valid" in message:
        return INVALID_KEY_MESSAGE
    if (
        isinstance(error, MaxRetriesExceededError)
        or "quota" in message
        or "429" in message
    ):
        return QUOTA_MESSAGE
    return f"Something went wrong. Details: {message}"
