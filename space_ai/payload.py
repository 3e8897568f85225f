"""
Image payload codec.

An image payload is a data URL (``data:<mime>;base64,<data>``). It is directly
usable as an ``st.image`` source and as a download artifact once decoded.
"""
from __future__ import annotations

import base64
import binascii
from io import BytesIO
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError

from space_ai.errors import InvalidImageError

DEFAULT_MIME_TYPE = "image/png"


def encode_data_url(data: bytes, mime_type: Optional[str] = None) -> str:
    b64 = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type or DEFAULT_MIME_TYPE};base64,{b64}"


def decode_data_url(url: str) -> Tuple[str, bytes]:
    """Split a data URL into ``(mime_type, raw_bytes)``."""
    if not url or not url.startswith("data:") or "," not in url:
        raise InvalidImageError("Image payload is not a data URL.")
    header, b64 = url.split(",", 1)
    meta = header[len("data:"):]
    mime_type = meta.split(";")[0] or DEFAULT_MIME_TYPE
    if ";base64" not in meta:
        raise InvalidImageError("Image payload is not base64 encoded.")
    try:
        return mime_type, base64.b64decode(b64, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidImageError(f"Image payload is not valid base64: {e}") from e


def payload_from_upload(raw: bytes, filename: Optional[str] = None) -> str:
    """
    Turn uploaded file bytes into an image payload.

    The bytes are kept as uploaded; Pillow is only used to check that they are
    an image and to find the MIME type.
    """
    if not raw:
        raise InvalidImageError("Uploaded file is empty.")
    try:
        with Image.open(BytesIO(raw)) as img:
            img.verify()
            fmt = img.format
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        name = filename or "upload"
        raise InvalidImageError(f"Could not read {name} as an image: {e}") from e
    mime_type = Image.MIME.get(fmt or "", DEFAULT_MIME_TYPE)
    return encode_data_url(raw, mime_type)
