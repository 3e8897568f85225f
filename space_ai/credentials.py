"""
Credential Gate.

Two capability variants are resolved once at startup:

- ``KeySelector``: an interactive selector is available. The user pastes a
  Gemini API key, which is kept in a session-scoped mapping
  (``st.session_state`` in the app). A statically configured credential is
  still honoured until a key is selected.
- ``StaticCredential``: no selector. The credential comes only from
  configuration, either an API key or a GCP service account (Vertex AI).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, MutableMapping, Optional

from google import genai
from google.oauth2 import service_account

from space_ai.config import DEFAULT_LOCATION, Settings
from space_ai.errors import CredentialExpiredError, CredentialUnavailableError

logger = logging.getLogger(__name__)

CLOUD_PLATFORM_SCOPE = "https://www.googleapis.com/auth/cloud-platform"


@dataclass(frozen=True)
class Credential:
    api_key: Optional[str] = None
    service_account_info: Optional[Mapping[str, Any]] = None
    project: Optional[str] = None
    location: str = DEFAULT_LOCATION


class StaticCredential:
    available = False

    def __init__(self, settings: Settings):
        self.settings = settings

    def credential(self) -> Optional[Credential]:
        s = self.settings
        if s.api_key:
            return Credential(api_key=s.api_key)
        if s.service_account_info:
            return Credential(
                service_account_info=s.service_account_info,
                project=s.project_id,
                location=s.location,
            )
        return None

    def has_credential(self) -> bool:
        return self.credential() is not None

    def open_selector(self, api_key: Optional[str] = None) -> bool:
        raise CredentialUnavailableError(
            "No key selector in this deployment. Set GEMINI_API_KEY or "
            "'gcp_service_account' in Streamlit secrets and reload."
        )


class KeySelector(StaticCredential):
    available = True
    SESSION_KEY = "space_ai_api_key"

    def __init__(self, settings: Settings, store: MutableMapping[str, Any]):
        super().__init__(settings)
        self.store = store

    def credential(self) -> Optional[Credential]:
        selected = self.store.get(self.SESSION_KEY)
        if selected:
            return Credential(api_key=selected)
        return super().credential()

    def open_selector(self, api_key: Optional[str] = None) -> bool:
        key = (api_key or "").strip()
        if not key:
            logger.info("Key selector dismissed without a key")
            return False
        self.store[self.SESSION_KEY] = key
        return True


def resolve_capability(settings: Settings, store: MutableMapping[str, Any]):
    if settings.key_selector_enabled:
        return KeySelector(settings, store)
    return StaticCredential(settings)


def build_client(credential: Optional[Credential]) -> genai.Client:
    if credential is None:
        raise CredentialExpiredError("No API credential configured.")
    if credential.api_key:
        return genai.Client(api_key=credential.api_key)
    creds = service_account.Credentials.from_service_account_info(
        dict(credential.service_account_info), scopes=[CLOUD_PLATFORM_SCOPE]
    )
    return genai.Client(
        vertexai=True,
        project=credential.project,
        location=credential.location,
        credentials=creds,
    )


def client_factory_for(capability) -> Callable[[], genai.Client]:
    """Client factory reading the capability's credential on every call."""
    return lambda: build_client(capability.credential())
