"""Types for image generation."""

from __future__ import annotations

from dataclasses import dataclass

PREMIUM_PREFIX = "imagen_"
DEFAULT_IMAGE_PREFERENCE = "nano_banana"


@dataclass(slots=True)
class GeneratedImage:
    """A generated image, base64-encoded."""

    image_base64: str
    fallback_occurred: bool = False
    model: str | None = None


def is_premium_preference(preference: str | None) -> bool:
    """Whether a user's image preference selects the Imagen tier."""
    return bool(preference) and preference.startswith(PREMIUM_PREFIX)
