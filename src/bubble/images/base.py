"""Image generation interface."""

from __future__ import annotations

from typing import Protocol

from bubble.images.types import GeneratedImage


class ImageGenerationError(Exception):
    """No backend could produce an image."""


class ImageGenerator(Protocol):
    """Contract for text-to-image backends."""

    async def generate_image(
        self,
        prompt: str,
        credential: str | None,
        model_preference: str | None,
    ) -> GeneratedImage:
        """Generate one image.

        Raises:
            ImageGenerationError: If generation failed.
        """
        ...
