# app.py
import concurrent.futures
import datetime
import logging
import time

import streamlit as st

from space_ai.config import configure_logging, load_settings
from space_ai.credentials import client_factory_for, resolve_capability
from space_ai.errors import InvalidImageError
from space_ai.image_service import ImageService
from space_ai.models import EXPORT_FILENAME, AspectRatio, Resolution
from space_ai.orchestrator import RequestOrchestrator
from space_ai.payload import decode_data_url
from space_ai.progress import loading_message, render_mode_label, simulated_progress
from space_ai.prompt_history import PromptHistoryStore

logger = logging.getLogger("space_ai.app")
POLL_SECONDS = 0.25

# ---------------- Page config ----------------
st.set_page_config(page_title="SPACE AI", page_icon="🪐", layout="wide")


# ---------------- Session initialization ----------------
def read_secrets():
    try:
        return dict(st.secrets)
    except Exception as e:  # no secrets.toml is a normal setup
        logger.debug("Streamlit secrets unavailable: %s", e)
        return {}


def build_orchestrator(settings):
    capability = resolve_capability(settings, st.session_state)
    service = ImageService(client_factory_for(capability), settings.nano_model, settings.pro_model)
    orchestrator = RequestOrchestrator(service, capability, PromptHistoryStore(settings.prompt_history_path))
    orchestrator.start()
    return orchestrator


def safe_init_session():
    try:
        _ = st.session_state
    except RuntimeError:
        return False
    if "orchestrator" not in st.session_state:
        settings = load_settings(read_secrets())
        configure_logging(settings.log_level)
        st.session_state["orchestrator"] = build_orchestrator(settings)
    st.session_state.setdefault("last_upload_id", None)
    return True


safe_init_session()
orch = st.session_state["orchestrator"]
state = orch.state


# ---------------- Helpers ----------------
def show_image_safe(payload, caption="Image"):
    try:
        _, raw = decode_data_url(payload)
    except InvalidImageError as e:
        st.error(f"Failed to display image: {e}")
        return
    st.image(raw, caption=caption, width="stretch")


def run_with_progress(call, *args):
    """Run an orchestrator call on a worker thread while the status bar ramps."""
    status = st.empty()
    bar = st.progress(0)
    started = time.monotonic()
    with concurrent.futures.ThreadPoolExecutor(max_workers=1) as executor:
        future = executor.submit(call, *args)
        while not future.done():
            elapsed = time.monotonic() - started
            current = orch.state
            mode = render_mode_label(current.current_resolution, current.is_upscaling)
            status.caption(f"{loading_message(elapsed, current.is_upscaling)} ({mode} Render Mode)")
            bar.progress(int(simulated_progress(elapsed, current.is_upscaling)))
            time.sleep(POLL_SECONDS)
    bar.progress(100)
    return future.result()


def format_ts(timestamp_ms):
    return datetime.datetime.fromtimestamp(timestamp_ms / 1000).strftime("%H:%M:%S")


# ---------------- Credential barrier ----------------
if not state.has_credential:
    st.title("Initialize Mission")
    st.write(
        "To unlock the full potential of Space AI, including 2K and 4K cosmic rendering, "
        "you must select your AI Studio API key."
    )
    if orch.capability.available:
        api_key = st.text_input("Gemini API key", type="password", key="barrier_api_key")
    else:
        api_key = None
        st.info("Set GEMINI_API_KEY (environment, .env or Streamlit secrets) or a "
                "'gcp_service_account' secret, then reload the page.")
    if st.button("Select API Key"):
        if orch.select_credential(api_key):
            st.rerun()
        elif orch.capability.available:
            st.warning("No key entered. Paste a key and try again.")
        else:
            st.error("Key selector unavailable in this deployment.")
    st.caption("Make sure your key is from a project with billing enabled. "
               "[Learn more](https://ai.google.dev/gemini-api/docs/billing)")
    st.stop()


# ---------------- Sidebar ----------------
with st.sidebar:
    resolutions = list(Resolution)
    res = st.radio(
        "Resolution",
        resolutions,
        index=resolutions.index(state.current_resolution),
        format_func=lambda r: f"{r.value} Cosmic HQ",
        disabled=state.is_busy,
    )
    if res != state.current_resolution:
        state = orch.set_resolution(res)
    if state.current_resolution is not Resolution.ONE_K:
        st.caption("Gemini 3 Pro Engine Activated")

    ratios = list(AspectRatio)
    ratio = st.radio(
        "Aspect Ratio",
        ratios,
        index=ratios.index(state.current_aspect_ratio),
        format_func=lambda r: r.value,
        horizontal=True,
        disabled=state.is_busy,
    )
    if ratio != state.current_aspect_ratio:
        state = orch.set_aspect_ratio(ratio)

    st.markdown("---")
    st.caption("Space Status: Orbit Stable")


# ---------------- Header ----------------
st.title("SPACE AI")
st.caption("Cosmic image generation & intelligence · v3.1")

col_upload, col_upscale, col_export = st.columns([2, 1, 1])

with col_upload:
    uploaded_file = st.file_uploader("Upload Specimen", type=["png", "jpg", "jpeg", "webp"])
    if uploaded_file:
        upload_id = getattr(uploaded_file, "file_id", None) or f"{uploaded_file.name}:{uploaded_file.size}"
        if upload_id != st.session_state["last_upload_id"]:
            st.session_state["last_upload_id"] = upload_id
            orch.upload_image(uploaded_file.getvalue(), uploaded_file.name)
            state = orch.state

with col_upscale:
    if state.selected_image:
        if st.button("⚡ 4K Upscale", disabled=state.is_busy):
            run_with_progress(orch.upscale)
            st.rerun()

with col_export:
    if state.selected_image:
        mime, raw = decode_data_url(state.selected_image)
        st.download_button("⬇️ Export", data=raw, file_name=EXPORT_FILENAME, mime=mime, key="export")


# ---------------- Viewer ----------------
if state.selected_image:
    if state.is_editing and not state.is_busy:
        st.markdown("**🟣 EDIT MODE**")
    show_image_safe(state.selected_image, caption="Generated Space View")
else:
    st.info("Ready for ignition. Enter a prompt to begin your cosmic exploration.")


# ---------------- Prompt bar ----------------
if st.button("🕘 Recent Logs", disabled=not state.prompt_history):
    state = orch.toggle_prompt_history()

if state.show_prompt_history and state.prompt_history:
    with st.container(border=True):
        for idx, p in enumerate(state.prompt_history):
            st.button(p, key=f"recent_{idx}", on_click=orch.pick_prompt, args=(p,))

placeholder = ("Add a retro filter... Remove background... Transform to neon..."
               if state.is_editing else
               "A galaxy made of glass shards floating in a neon sea...")

with st.form("prompt_form"):
    prompt = st.text_input(
        "Prompt",
        value=state.draft_prompt,
        placeholder=placeholder,
        key=f"prompt_{state.draft_revision}",
    )
    submitted = st.form_submit_button("Transform" if state.is_editing else "Launch",
                                      disabled=state.is_busy)

if submitted:
    orch.edit_draft(prompt)
    if not prompt.strip():
        st.warning("Please enter a prompt before running.")
    else:
        if orch.state.is_editing:
            run_with_progress(orch.edit, prompt)
        else:
            run_with_progress(orch.generate, prompt)
        st.rerun()

if state.is_editing:
    st.button("Cancel", on_click=orch.cancel_edit, disabled=state.is_busy)

if state.last_error:
    st.error(state.last_error)

st.markdown("---")


# ---------------- History gallery ----------------
if state.history:
    st.markdown("### Mission Log")
    cols = st.columns(4)
    for idx, img in enumerate(state.history):
        with cols[idx % 4]:
            show_image_safe(img.url, caption=img.prompt[:80])
            st.caption(f"{img.resolution.value} · {format_ts(img.timestamp)}")
            st.button("✏️ Select", key=f"select_{img.id}",
                      on_click=orch.select_history_image, args=(img.url,))
