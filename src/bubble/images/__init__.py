"""Image generation subsystem."""

from bubble.images.base import ImageGenerationError, ImageGenerator
from bubble.images.gemini import GeminiImageGenerator
from bubble.images.types import GeneratedImage, is_premium_preference

__all__ = [
    "GeminiImageGenerator",
    "GeneratedImage",
    "ImageGenerationError",
    "ImageGenerator",
    "is_premium_preference",
]
