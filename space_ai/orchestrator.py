"""
Request Orchestrator.

Owns the session's ``SessionState`` and is the only place it changes. The three
remote operations (generate, edit, upscale) share one busy flag: a trigger
while busy, with a blank prompt or without a selected image is refused with no
state change.
"""
from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from space_ai.errors import (
    CredentialExpiredError,
    CredentialUnavailableError,
    ImageServiceError,
    InvalidImageError,
)
from space_ai.models import (
    AspectRatio,
    EDIT_PREFIX,
    FALLBACK_UPSCALE_PROMPT,
    GeneratedImage,
    HIGHEST_RESOLUTION,
    Operation,
    Resolution,
    UPSCALE_PREFIX,
    image_id,
)
from space_ai.payload import payload_from_upload
from space_ai.state import (
    AspectRatioChanged,
    CredentialChecked,
    CredentialSelected,
    DraftEdited,
    EditModeCancelled,
    HistoryImageSelected,
    ImageUploaded,
    OperationFailed,
    OperationInterrupted,
    OperationStarted,
    OperationSucceeded,
    PromptHistoryLoaded,
    PromptHistoryPicked,
    PromptHistoryToggled,
    ResolutionChanged,
    SessionState,
    UploadRejected,
    reduce,
)

logger = logging.getLogger(__name__)


class RequestOrchestrator:
    def __init__(self, service, capability, history_store, clock: Callable[[], float] = time.time):
        self.service = service
        self.capability = capability
        self.history_store = history_store
        self.clock = clock
        self.state = SessionState()
        self._last_ms = 0

    def dispatch(self, action) -> SessionState:
        self.state = reduce(self.state, action)
        return self.state

    def start(self) -> SessionState:
        self.dispatch(PromptHistoryLoaded(tuple(self.history_store.load())))
        return self.dispatch(CredentialChecked(self.capability.has_credential()))

    # ---------------- Credential Gate ----------------
    def select_credential(self, api_key: Optional[str] = None) -> bool:
        try:
            selected = self.capability.open_selector(api_key)
        except CredentialUnavailableError as e:
            logger.error("Failed to open key selector: %s", e)
            return False
        if selected:
            self.dispatch(CredentialSelected())
        return bool(selected)

    # ---------------- Remote operations ----------------
    def generate(self, prompt: str) -> Optional[GeneratedImage]:
        text = (prompt or "").strip()
        if not text or self.state.is_busy:
            return None
        resolution = self.state.current_resolution
        aspect_ratio = self.state.current_aspect_ratio
        return self._run(
            Operation.GENERATE,
            lambda: self.service.generate(text, resolution, aspect_ratio),
            display_prompt=prompt,
            resolution=resolution,
            record_prompt=text,
        )

    def edit(self, prompt: str) -> Optional[GeneratedImage]:
        text = (prompt or "").strip()
        selected = self.state.selected_image
        if not text or not selected or self.state.is_busy:
            return None
        return self._run(
            Operation.EDIT,
            lambda: self.service.edit(selected, text),
            display_prompt=f"{EDIT_PREFIX}{prompt}",
            resolution=self.state.current_resolution,
            record_prompt=text,
        )

    def upscale(self) -> Optional[GeneratedImage]:
        selected = self.state.selected_image
        if not selected or self.state.is_busy:
            return None
        original_prompt = self.prompt_for(selected) or FALLBACK_UPSCALE_PROMPT
        return self._run(
            Operation.UPSCALE,
            lambda: self.service.upscale(selected, original_prompt),
            display_prompt=f"{UPSCALE_PREFIX}{original_prompt}",
            resolution=HIGHEST_RESOLUTION,
        )

    def prompt_for(self, url: str) -> Optional[str]:
        for image in self.state.history:
            if image.url == url:
                return image.prompt
        return None

    def _run(self, operation: Operation, call, display_prompt: str,
             resolution: Resolution, record_prompt: Optional[str] = None) -> Optional[GeneratedImage]:
        self.dispatch(OperationStarted(operation))
        try:
            url = call()
        except CredentialExpiredError as e:
            logger.warning("%s rejected, credential reset required: %s", operation.value, e)
            self.dispatch(OperationFailed(operation, str(e), credential_expired=True))
            return None
        except ImageServiceError as e:
            logger.warning("%s failed: %s", operation.value, e)
            self.dispatch(OperationFailed(operation, str(e)))
            return None
        except BaseException:
            # abandoned before the call settled (Streamlit rerun/stop) or a bug
            self.dispatch(OperationInterrupted(operation))
            raise

        timestamp = self._next_timestamp_ms()
        image = GeneratedImage(
            id=image_id(operation, timestamp),
            url=url,
            prompt=display_prompt,
            timestamp=timestamp,
            resolution=resolution,
        )
        self.dispatch(OperationSucceeded(operation, image, prompt=record_prompt))
        if record_prompt is not None:
            self.history_store.save(self.state.prompt_history)
        logger.info("%s succeeded: %s", operation.value, image.id)
        return image

    def _next_timestamp_ms(self) -> int:
        now = int(self.clock() * 1000)
        self._last_ms = max(now, self._last_ms + 1)
        return self._last_ms

    # ---------------- Local actions ----------------
    def upload_image(self, raw: bytes, filename: Optional[str] = None) -> Optional[str]:
        try:
            url = payload_from_upload(raw, filename)
        except InvalidImageError as e:
            logger.warning("Rejected upload %s: %s", filename, e)
            self.dispatch(UploadRejected(str(e)))
            return None
        self.dispatch(ImageUploaded(url))
        return url

    def select_history_image(self, url: str) -> SessionState:
        return self.dispatch(HistoryImageSelected(url))

    def cancel_edit(self) -> SessionState:
        return self.dispatch(EditModeCancelled())

    def set_resolution(self, resolution: Resolution) -> SessionState:
        return self.dispatch(ResolutionChanged(Resolution(resolution)))

    def set_aspect_ratio(self, aspect_ratio: AspectRatio) -> SessionState:
        return self.dispatch(AspectRatioChanged(AspectRatio(aspect_ratio)))

    def edit_draft(self, text: str) -> SessionState:
        return self.dispatch(DraftEdited(text))

    def toggle_prompt_history(self, visible: Optional[bool] = None) -> SessionState:
        return self.dispatch(PromptHistoryToggled(visible))

    def pick_prompt(self, prompt: str) -> SessionState:
        return self.dispatch(PromptHistoryPicked(prompt))
