from io import BytesIO
from types import SimpleNamespace

import pytest
from PIL import Image

from space_ai.config import Settings
from space_ai.credentials import KeySelector
from space_ai.orchestrator import RequestOrchestrator
from space_ai.payload import encode_data_url


def make_png(color=(20, 40, 200), size=(4, 4)) -> bytes:
    buf = BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()


def image_response(data: bytes, mime_type="image/png"):
    """Shape of a genai GenerateContentResponse carrying one inline image."""
    part = SimpleNamespace(text=None, inline_data=SimpleNamespace(data=data, mime_type=mime_type))
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part]))])


class FakeImageService:
    """Records calls and returns successive data URLs, or raises ``error``."""

    def __init__(self):
        self.calls = []
        self.error = None
        self._count = 0

    def _next(self, name, *args):
        self.calls.append((name, *args))
        if self.error is not None:
            raise self.error
        self._count += 1
        return encode_data_url(make_png((self._count, 0, 0)))

    def generate(self, prompt, resolution, aspect_ratio):
        return self._next("generate", prompt, resolution, aspect_ratio)

    def edit(self, payload, prompt):
        return self._next("edit", payload, prompt)

    def upscale(self, payload, original_prompt):
        return self._next("upscale", payload, original_prompt)


class MemoryHistoryStore:
    def __init__(self, prompts=None):
        self.prompts = list(prompts or [])
        self.saves = []

    def load(self):
        return list(self.prompts)

    def save(self, prompts):
        self.prompts = list(prompts)
        self.saves.append(list(prompts))


class Clock:
    def __init__(self, start=1_700_000_000.0):
        self.now = start

    def __call__(self):
        return self.now


@pytest.fixture
def png_bytes():
    return make_png()


@pytest.fixture
def png_payload(png_bytes):
    return encode_data_url(png_bytes, "image/png")


@pytest.fixture
def inline_response():
    return image_response


@pytest.fixture
def service():
    return FakeImageService()


@pytest.fixture
def history_store():
    return MemoryHistoryStore()


@pytest.fixture
def session_store():
    return {}


@pytest.fixture
def capability(session_store):
    return KeySelector(Settings(api_key="test-key"), session_store)


@pytest.fixture
def orchestrator(service, capability, history_store):
    orch = RequestOrchestrator(service, capability, history_store, clock=Clock())
    orch.start()
    return orch
