import pytest

from space_ai.models import AspectRatio, GeneratedImage, Operation, Resolution
from space_ai.state import (
    CREDENTIAL_EXPIRED_MESSAGE,
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


def _image(n, url=None, prompt="p", resolution=Resolution.TWO_K):
    return GeneratedImage(id=str(n), url=url or f"data:image/png;base64,{n}", prompt=prompt,
                          timestamp=n, resolution=resolution)


def test_initial_state_defaults():
    s = SessionState()
    assert s.has_credential is False
    assert s.is_busy is False
    assert s.last_error is None
    assert s.history == ()
    assert s.current_resolution is Resolution.TWO_K
    assert s.current_aspect_ratio is AspectRatio.SQUARE


def test_operation_started_sets_busy_and_clears_error():
    s = SessionState(last_error="old")
    s = reduce(s, OperationStarted(Operation.GENERATE))
    assert s.is_busy is True
    assert s.last_error is None
    assert s.is_upscaling is False


def test_upscale_started_enters_upscale_mode():
    s = reduce(SessionState(), OperationStarted(Operation.UPSCALE))
    assert s.is_upscaling is True


def test_generate_succeeded_prepends_and_resets_prompt_ui():
    first = _image(1)
    s = SessionState(history=(first,), is_busy=True, is_editing=True, show_prompt_history=True,
                     draft_prompt="a red planet", draft_revision=3)
    new = _image(2, prompt="a red planet")
    s = reduce(s, OperationSucceeded(Operation.GENERATE, new, prompt="a red planet"))
    assert s.history == (new, first)
    assert s.selected_image == new.url
    assert s.is_busy is False
    assert s.is_editing is False
    assert s.show_prompt_history is False
    assert s.draft_prompt == ""
    assert s.draft_revision == 4
    assert s.prompt_history == ("a red planet",)


def test_edit_succeeded_stays_in_edit_mode():
    s = SessionState(is_busy=True, is_editing=True, draft_prompt="neon")
    s = reduce(s, OperationSucceeded(Operation.EDIT, _image(1, prompt="Edited: neon"), prompt="neon"))
    assert s.is_editing is True
    assert s.draft_prompt == ""


def test_upscale_succeeded_forces_highest_resolution_and_keeps_prompts():
    s = SessionState(is_busy=True, is_upscaling=True, prompt_history=("x",),
                     current_resolution=Resolution.ONE_K, draft_prompt="keep me")
    img = _image(1, resolution=Resolution.FOUR_K)
    s = reduce(s, OperationSucceeded(Operation.UPSCALE, img))
    assert s.current_resolution is Resolution.FOUR_K
    assert s.is_upscaling is False
    assert s.prompt_history == ("x",)
    assert s.draft_prompt == "keep me"


@pytest.mark.parametrize("operation", list(Operation))
def test_credential_expiry_resets_flag_with_visible_message(operation):
    img = _image(1)
    s = SessionState(has_credential=True, is_busy=True, history=(img,), selected_image=img.url)
    s = reduce(s, OperationFailed(operation, "Requested entity was not found.", credential_expired=True))
    assert s.has_credential is False
    assert s.is_busy is False
    assert s.last_error == CREDENTIAL_EXPIRED_MESSAGE
    assert s.history == (img,)
    assert s.selected_image == img.url


@pytest.mark.parametrize("operation, fallback", [
    (Operation.GENERATE, "Failed to launch generation."),
    (Operation.EDIT, "Edit failed."),
    (Operation.UPSCALE, "Upscaling failed."),
])
def test_generic_failure_uses_message_or_fallback(operation, fallback):
    s = SessionState(is_busy=True, has_credential=True)
    assert reduce(s, OperationFailed(operation, "quota exceeded")).last_error == "quota exceeded"
    failed = reduce(s, OperationFailed(operation, None))
    assert failed.last_error == fallback
    assert failed.has_credential is True
    assert failed.is_busy is False


def test_interrupted_clears_busy():
    s = reduce(SessionState(is_busy=True, is_upscaling=True), OperationInterrupted(Operation.UPSCALE))
    assert s.is_busy is False
    assert s.is_upscaling is False


def test_credential_actions():
    s = reduce(SessionState(), CredentialChecked(True))
    assert s.has_credential is True
    s = reduce(SessionState(), CredentialSelected())
    assert s.has_credential is True


def test_selection_changes():
    s = reduce(SessionState(), ResolutionChanged(Resolution.ONE_K))
    assert s.current_resolution is Resolution.ONE_K
    s = reduce(s, AspectRatioChanged(AspectRatio("16:9")))
    assert s.current_aspect_ratio is AspectRatio.LANDSCAPE


def test_upload_and_history_selection_enter_edit_mode():
    s = SessionState(is_upscaling=True)
    s = reduce(s, ImageUploaded("data:image/png;base64,AA=="))
    assert s.selected_image == "data:image/png;base64,AA=="
    assert s.is_editing and not s.is_upscaling
    s = reduce(s, EditModeCancelled())
    assert s.is_editing is False
    s = reduce(s, HistoryImageSelected("data:image/png;base64,BB=="))
    assert s.is_editing is True
    assert s.selected_image == "data:image/png;base64,BB=="


def test_upload_rejected_sets_error_only():
    s = reduce(SessionState(selected_image="x"), UploadRejected("not an image"))
    assert s.last_error == "not an image"
    assert s.selected_image == "x"


def test_prompt_ui_actions():
    s = reduce(SessionState(), PromptHistoryLoaded(("a", "b")))
    assert s.prompt_history == ("a", "b")
    s = reduce(s, PromptHistoryToggled())
    assert s.show_prompt_history is True
    s = reduce(s, PromptHistoryToggled())
    assert s.show_prompt_history is False
    s = reduce(s, PromptHistoryToggled(True))
    s = reduce(s, DraftEdited("typing"))
    assert s.draft_prompt == "typing"
    assert s.draft_revision == 0
    s = reduce(s, PromptHistoryPicked("b"))
    assert s.draft_prompt == "b"
    assert s.draft_revision == 1
    assert s.show_prompt_history is False


def test_unknown_action_raises():
    with pytest.raises(TypeError):
        reduce(SessionState(), object())
