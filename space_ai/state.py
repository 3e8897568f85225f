"""
Session state and its transition function.

``SessionState`` is immutable; every change goes through ``reduce(state, action)``
so each transition can be checked without touching the remote model.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Optional, Tuple

from space_ai.models import (
    AspectRatio,
    DEFAULT_ASPECT_RATIO,
    DEFAULT_RESOLUTION,
    GeneratedImage,
    HIGHEST_RESOLUTION,
    Operation,
    Resolution,
)
from space_ai.prompt_history import push_prompt

CREDENTIAL_EXPIRED_MESSAGE = "Authentication expired. Please re-select your key."

FALLBACK_ERRORS = {
    Operation.GENERATE: "Failed to launch generation.",
    Operation.EDIT: "Edit failed.",
    Operation.UPSCALE: "Upscaling failed.",
}


@dataclass(frozen=True)
class SessionState:
    has_credential: bool = False
    is_busy: bool = False
    last_error: Optional[str] = None
    history: Tuple[GeneratedImage, ...] = ()
    prompt_history: Tuple[str, ...] = ()
    selected_image: Optional[str] = None
    current_resolution: Resolution = DEFAULT_RESOLUTION
    current_aspect_ratio: AspectRatio = DEFAULT_ASPECT_RATIO

    # Presentation flags driven by the orchestration
    is_editing: bool = False
    is_upscaling: bool = False
    show_prompt_history: bool = False
    draft_prompt: str = ""
    draft_revision: int = 0


# ---------------- Actions ----------------
@dataclass(frozen=True)
class CredentialChecked:
    has_credential: bool


@dataclass(frozen=True)
class CredentialSelected:
    pass


@dataclass(frozen=True)
class PromptHistoryLoaded:
    prompts: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ResolutionChanged:
    resolution: Resolution


@dataclass(frozen=True)
class AspectRatioChanged:
    aspect_ratio: AspectRatio


@dataclass(frozen=True)
class DraftEdited:
    text: str


@dataclass(frozen=True)
class PromptHistoryToggled:
    visible: Optional[bool] = None


@dataclass(frozen=True)
class PromptHistoryPicked:
    prompt: str


@dataclass(frozen=True)
class EditModeCancelled:
    pass


@dataclass(frozen=True)
class HistoryImageSelected:
    url: str


@dataclass(frozen=True)
class ImageUploaded:
    url: str


@dataclass(frozen=True)
class UploadRejected:
    message: str


@dataclass(frozen=True)
class OperationStarted:
    operation: Operation


@dataclass(frozen=True)
class OperationSucceeded:
    operation: Operation
    image: GeneratedImage
    prompt: Optional[str] = None


@dataclass(frozen=True)
class OperationFailed:
    operation: Operation
    message: Optional[str] = None
    credential_expired: bool = False


@dataclass(frozen=True)
class OperationInterrupted:
    operation: Operation


# ---------------- Reducer ----------------
def _replace_draft(state: SessionState, text: str, **changes) -> SessionState:
    return replace(state, draft_prompt=text, draft_revision=state.draft_revision + 1, **changes)


def _succeeded(state: SessionState, action: OperationSucceeded) -> SessionState:
    changes = dict(
        is_busy=False,
        history=(action.image, *state.history),
        selected_image=action.image.url,
    )
    if action.prompt is not None:
        changes["prompt_history"] = tuple(push_prompt(state.prompt_history, action.prompt))

    if action.operation is Operation.UPSCALE:
        return replace(state, current_resolution=HIGHEST_RESOLUTION, is_upscaling=False, **changes)
    if action.operation is Operation.GENERATE:
        changes["is_editing"] = False
    # the edited image stays the editing target so edits can be chained
    return _replace_draft(state, "", show_prompt_history=False, **changes)


def _failed(state: SessionState, action: OperationFailed) -> SessionState:
    if action.credential_expired:
        return replace(state, is_busy=False, is_upscaling=False,
                       has_credential=False, last_error=CREDENTIAL_EXPIRED_MESSAGE)
    message = action.message or FALLBACK_ERRORS[action.operation]
    return replace(state, is_busy=False, is_upscaling=False, last_error=message)


def reduce(state: SessionState, action) -> SessionState:
    if isinstance(action, OperationStarted):
        return replace(state, is_busy=True, last_error=None,
                       is_upscaling=action.operation is Operation.UPSCALE)
    if isinstance(action, OperationSucceeded):
        return _succeeded(state, action)
    if isinstance(action, OperationFailed):
        return _failed(state, action)
    if isinstance(action, OperationInterrupted):
        return replace(state, is_busy=False, is_upscaling=False)

    if isinstance(action, CredentialChecked):
        return replace(state, has_credential=bool(action.has_credential))
    if isinstance(action, CredentialSelected):
        return replace(state, has_credential=True)
    if isinstance(action, PromptHistoryLoaded):
        return replace(state, prompt_history=tuple(action.prompts))

    if isinstance(action, ResolutionChanged):
        return replace(state, current_resolution=Resolution(action.resolution))
    if isinstance(action, AspectRatioChanged):
        return replace(state, current_aspect_ratio=AspectRatio(action.aspect_ratio))

    if isinstance(action, DraftEdited):
        return replace(state, draft_prompt=action.text)
    if isinstance(action, PromptHistoryToggled):
        visible = not state.show_prompt_history if action.visible is None else action.visible
        return replace(state, show_prompt_history=visible)
    if isinstance(action, PromptHistoryPicked):
        return _replace_draft(state, action.prompt, show_prompt_history=False)

    if isinstance(action, EditModeCancelled):
        return replace(state, is_editing=False)
    if isinstance(action, (HistoryImageSelected, ImageUploaded)):
        return replace(state, selected_image=action.url, is_editing=True, is_upscaling=False)
    if isinstance(action, UploadRejected):
        return replace(state, last_error=action.message)

    raise TypeError(f"Unknown action: {action!r}")
