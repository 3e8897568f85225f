"""Space AI: prompt-driven image generation, editing and upscaling on Gemini."""

from space_ai.models import AspectRatio, GeneratedImage, Operation, Resolution
from space_ai.orchestrator import RequestOrchestrator
from space_ai.state import SessionState, reduce

__version__ = "3.1.0"

__all__ = [
    "AspectRatio",
    "GeneratedImage",
    "Operation",
    "RequestOrchestrator",
    "Resolution",
    "SessionState",
    "reduce",
]
