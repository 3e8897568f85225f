"""
Cosmetic loading feedback.

Pure functions of elapsed time; nothing here knows whether the remote call has
finished.
"""
from __future__ import annotations

from space_ai.models import Resolution

LOADING_MESSAGES = (
    "Igniting propulsion systems...",
    "Calculating warp trajectory...",
    "Scanning sector for cosmic anomalies...",
    "Synthesizing starlight data...",
    "Materializing high-resolution photons...",
    "Calibrating orbital sensors...",
    "Downloading spectral map...",
    "Finalizing atmospheric rendering...",
)

UPSCALE_MESSAGES = (
    "Enhancing cosmic resolution...",
    "De-noising deep space signals...",
    "Reconstructing stellar textures...",
    "Injecting 4K photon density...",
    "Polishing nebula gradients...",
    "Deep-learning spectral upscale...",
    "Finalizing 4K hyper-render...",
)

MESSAGE_INTERVAL = 3.0
PROGRESS_CEILING = 90.0
# percent per second
GENERATE_RATE = 10.0
UPSCALE_RATE = 4.0


def loading_message(elapsed: float, upscaling: bool = False) -> str:
    messages = UPSCALE_MESSAGES if upscaling else LOADING_MESSAGES
    step = int(max(elapsed, 0.0) // MESSAGE_INTERVAL)
    return messages[step % len(messages)]


def simulated_progress(elapsed: float, upscaling: bool = False) -> float:
    rate = UPSCALE_RATE if upscaling else GENERATE_RATE
    return min(max(elapsed, 0.0) * rate, PROGRESS_CEILING)


def render_mode_label(resolution: Resolution, upscaling: bool = False) -> str:
    return "Ultra 4K" if upscaling else Resolution(resolution).value
