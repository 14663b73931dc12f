"""Model identifier helpers."""

import re
from collections.abc import Sequence

NATIVE_PREFIXES = ("gemini", "veo")
DEFAULT_THINKING_MARKERS = ("gemini-2.5", "gemini-3")


def is_native_model(model_id: str | None) -> bool:
    """Whether a model id is served by the native Gemini provider.

    An empty id counts as native, so callers fall back to the default model.
    """
    if not model_id:
        return True
    return model_id.startswith(NATIVE_PREFIXES) or "google" in model_id


def supports_thinking(
    model_id: str | None,
    markers: Sequence[str] = DEFAULT_THINKING_MARKERS,
) -> bool:
    """Whether a model accepts a thinking budget."""
    if not model_id or not is_native_model(model_id):
        return False
    return any(marker in model_id for marker in markers)


def friendly_model_name(model_id: str) -> str:
    """Human-readable model name.

    >>> friendly_model_name("openai/gpt-4o-mini")
    'Gpt 4o Mini'
    """
    raw = model_id.split("/")[-1] or model_id
    spaced = raw.replace("-", " ").replace("_", " ")
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), spaced)
