from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Resolution(str, Enum):
    ONE_K = "1K"
    TWO_K = "2K"
    FOUR_K = "4K"


class AspectRatio(str, Enum):
    SQUARE = "1:1"
    LANDSCAPE = "16:9"
    PORTRAIT = "9:16"
    PHOTO = "4:3"
    TALL = "3:4"


class Operation(str, Enum):
    GENERATE = "generate"
    EDIT = "edit"
    UPSCALE = "upscale"


# ---------------- Constants ----------------
HIGHEST_RESOLUTION = Resolution.FOUR_K
DEFAULT_RESOLUTION = Resolution.TWO_K
DEFAULT_ASPECT_RATIO = AspectRatio.SQUARE

EDIT_PREFIX = "Edited: "
UPSCALE_PREFIX = "4K Upscale: "
FALLBACK_UPSCALE_PROMPT = "Cosmic scene"

PROMPT_HISTORY_LIMIT = 20
EXPORT_FILENAME = "space-ai-export.png"


@dataclass(frozen=True)
class GeneratedImage:
    """
    One entry of the session image history.

    id:
        Millisecond timestamp for generated images, "edit-<ms>" / "upscale-<ms>"
        for derived ones.
    url:
        Self-describing data URL (see space_ai.payload).
    prompt:
        Human readable prompt; derived images carry the EDIT_PREFIX or
        UPSCALE_PREFIX tag.
    timestamp:
        Creation instant, epoch milliseconds.
    """
    id: str
    url: str
    prompt: str
    timestamp: int
    resolution: Resolution


def image_id(operation: Operation, timestamp_ms: int) -> str:
    if operation is Operation.GENERATE:
        return str(timestamp_ms)
    return f"{operation.value}-{timestamp_ms}"
