"""
Image Service Adapter.

Stateless wrapper over the Gemini image models. Each operation builds a fresh
client from the current credential, sends one ``generate_content`` request and
returns the first inline image of the response as a data URL.

Provider failures are translated at this boundary:

- a message containing ``Requested entity was not found`` means the key is no
  longer valid -> ``CredentialExpiredError``
- anything else -> ``RemoteOperationFailedError`` with the provider message
"""
from __future__ import annotations

import logging
from typing import Callable, Optional

from google.genai import types

from space_ai.config import NANO_IMAGE_MODEL, PRO_IMAGE_MODEL
from space_ai.errors import (
    CredentialExpiredError,
    ImageServiceError,
    InvalidImageError,
    NoImageReturnedError,
    RemoteOperationFailedError,
)
from space_ai.models import AspectRatio, HIGHEST_RESOLUTION, Operation, Resolution
from space_ai.payload import decode_data_url, encode_data_url

logger = logging.getLogger(__name__)

CREDENTIAL_EXPIRED_MARKER = "Requested entity was not found"
NO_IMAGE_MESSAGE = "No image data returned from model."
NO_UPSCALE_IMAGE_MESSAGE = "Upscaling failed to return image data."

UPSCALE_INSTRUCTION = (
    "Upscale this image to ultra-high 4K resolution, enhancing fine details and "
    "textures while maintaining the original composition: {prompt}"
)


# ---------------- Helpers ----------------
def translate_error(exc: Exception) -> ImageServiceError:
    text = str(exc)
    message = getattr(exc, "message", None) or text
    if CREDENTIAL_EXPIRED_MARKER in text or CREDENTIAL_EXPIRED_MARKER in str(message):
        return CredentialExpiredError(message)
    return RemoteOperationFailedError(message or exc.__class__.__name__)


def extract_image(response, empty_message: str = NO_IMAGE_MESSAGE) -> str:
    """Return the first inline image part of the first candidate as a data URL."""
    candidates = getattr(response, "candidates", None) or []
    if candidates:
        content = getattr(candidates[0], "content", None)
        for part in getattr(content, "parts", None) or []:
            inline = getattr(part, "inline_data", None)
            if inline is not None and getattr(inline, "data", None):
                return encode_data_url(inline.data, getattr(inline, "mime_type", None))
    raise NoImageReturnedError(empty_message)


def _image_part(payload: str) -> types.Part:
    try:
        mime_type, raw = decode_data_url(payload)
    except InvalidImageError as e:
        raise RemoteOperationFailedError(str(e)) from e
    return types.Part.from_bytes(data=raw, mime_type=mime_type)


# ---------------- Service ----------------
class ImageService:
    def __init__(self, client_factory: Callable, nano_model: str = NANO_IMAGE_MODEL,
                 pro_model: str = PRO_IMAGE_MODEL):
        self.client_factory = client_factory
        self.nano_model = nano_model
        self.pro_model = pro_model

    def model_for(self, resolution: Resolution) -> str:
        # 2K/4K output needs the pro model
        if Resolution(resolution) is Resolution.ONE_K:
            return self.nano_model
        return self.pro_model

    def generate(self, prompt: str, resolution: Resolution, aspect_ratio: AspectRatio) -> str:
        config = types.GenerateContentConfig(
            image_config=types.ImageConfig(
                aspect_ratio=AspectRatio(aspect_ratio).value,
                image_size=Resolution(resolution).value,
            )
        )
        return self._call(
            Operation.GENERATE,
            self.model_for(resolution),
            [types.Part.from_text(text=prompt)],
            config,
        )

    def edit(self, payload: str, prompt: str) -> str:
        parts = [_image_part(payload), types.Part.from_text(text=prompt)]
        return self._call(Operation.EDIT, self.nano_model, parts)

    def upscale(self, payload: str, original_prompt: str) -> str:
        parts = [
            _image_part(payload),
            types.Part.from_text(text=UPSCALE_INSTRUCTION.format(prompt=original_prompt)),
        ]
        config = types.GenerateContentConfig(
            image_config=types.ImageConfig(image_size=HIGHEST_RESOLUTION.value)
        )
        return self._call(Operation.UPSCALE, self.pro_model, parts, config,
                          empty_message=NO_UPSCALE_IMAGE_MESSAGE)

    def _call(self, operation: Operation, model: str, parts: list,
              config: Optional[types.GenerateContentConfig] = None,
              empty_message: str = NO_IMAGE_MESSAGE) -> str:
        logger.info("Requesting %s from %s", operation.value, model)
        try:
            client = self.client_factory()
            response = client.models.generate_content(
                model=model,
                contents=types.Content(role="user", parts=parts),
                config=config,
            )
        except ImageServiceError:
            raise
        except Exception as e:
            err = translate_error(e)
            logger.warning("%s failed (%s): %s", operation.value, err.code, err)
            raise err from e
        return extract_image(response, empty_message)
