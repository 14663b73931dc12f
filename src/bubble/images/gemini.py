"""Gemini image generation: Imagen with a flash-image fallback."""

from __future__ import annotations

import base64
import logging
from typing import Any

from google.genai import types

from bubble.images.base import ImageGenerationError
from bubble.images.types import DEFAULT_IMAGE_PREFERENCE, GeneratedImage, is_premium_preference
from bubble.llm.gemini import ClientFactory, create_client

logger = logging.getLogger(__name__)

DEFAULT_IMAGEN_MODEL = "imagen-4.0-generate-001"
DEFAULT_FLASH_IMAGE_MODEL = "gemini-2.5-flash-image"


def _to_base64(data: bytes | str) -> str:
    if isinstance(data, str):
        return data
    return base64.b64encode(data).decode("ascii")


class GeminiImageGenerator:
    """Generates images with Google models.

    Imagen is tried first for premium preferences; any Imagen failure or
    empty answer falls back to the flash image model.
    """

    def __init__(
        self,
        *,
        imagen_model: str = DEFAULT_IMAGEN_MODEL,
        flash_model: str = DEFAULT_FLASH_IMAGE_MODEL,
        client_factory: ClientFactory = create_client,
    ) -> None:
        self._imagen_model = imagen_model
        self._flash_model = flash_model
        self._client_factory = client_factory

    async def generate_image(
        self,
        prompt: str,
        credential: str | None,
        model_preference: str | None = DEFAULT_IMAGE_PREFERENCE,
    ) -> GeneratedImage:
        client = self._client_factory(credential)
        fallback_occurred = False

        if is_premium_preference(model_preference):
            try:
                image = await self._generate_imagen(client, prompt)
                if image is not None:
                    return GeneratedImage(image_base64=image, model=self._imagen_model)
                logger.warning(
                    "imagen_empty_response", extra={"model": self._imagen_model}
                )
            except Exception as e:
                logger.warning(
                    "imagen_failed",
                    extra={
                        "model": self._imagen_model,
                        "error.message": str(e),
                        "error.type": type(e).__name__,
                    },
                )
            fallback_occurred = True

        try:
            image = await self._generate_flash(client, prompt)
        except ImageGenerationError:
            raise
        except Exception as e:
            raise ImageGenerationError(str(e)) from e

        return GeneratedImage(
            image_base64=image,
            fallback_occurred=fallback_occurred,
            model=self._flash_model,
        )

    async def _generate_imagen(self, client: Any, prompt: str) -> str | None:
        response = await client.aio.models.generate_images(
            model=self._imagen_model,
            prompt=prompt,
            config=types.GenerateImagesConfig(
                number_of_images=1,
                output_mime_type="image/png",
                aspect_ratio="1:1",
            ),
        )
        generated = response.generated_images or []
        if not generated or generated[0].image is None:
            return None
        data = generated[0].image.image_bytes
        return _to_base64(data) if data else None

    async def _generate_flash(self, client: Any, prompt: str) -> str:
        response = await client.aio.models.generate_content(
            model=self._flash_model,
            contents=[types.Content(role="user", parts=[types.Part(text=prompt)])],
            config=types.GenerateContentConfig(response_modalities=["IMAGE"]),
        )
        candidates = response.candidates or []
        if not candidates:
            raise ImageGenerationError(
                "The AI service could not generate an image for this prompt. "
                "It may have been flagged by safety filters."
            )
        content = candidates[0].content
        parts = content.parts if content is not None else None
        if not parts:
            raise ImageGenerationError("Content parts are missing.")

        for part in parts:
            inline = part.inline_data
            if inline is not None and inline.data:
                return _to_base64(inline.data)

        raise ImageGenerationError(
            "The image model did not return an image. "
            "The prompt might have been blocked or the service is busy."
        )
