"""
Runtime configuration.

Values are read from Streamlit secrets first (``.streamlit/secrets.toml``), then
from the process environment, which ``load_dotenv`` seeds from a local ``.env``.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

from dotenv import load_dotenv

NANO_IMAGE_MODEL = "gemini-2.5-flash-image"
PRO_IMAGE_MODEL = "gemini-3-pro-image-preview"
DEFAULT_LOCATION = "us-central1"
DEFAULT_DATA_DIR = "~/.space-ai"
PROMPT_HISTORY_SLOT = "space-ai-prompt-history"

_FALSEY = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    api_key: Optional[str] = None
    service_account_info: Optional[Mapping[str, Any]] = None
    location: str = DEFAULT_LOCATION
    nano_model: str = NANO_IMAGE_MODEL
    pro_model: str = PRO_IMAGE_MODEL
    data_dir: Path = Path(DEFAULT_DATA_DIR).expanduser()
    key_selector_enabled: bool = True
    log_level: str = "INFO"

    @property
    def prompt_history_path(self) -> Path:
        return self.data_dir / f"{PROMPT_HISTORY_SLOT}.json"

    @property
    def project_id(self) -> Optional[str]:
        if not self.service_account_info:
            return None
        return self.service_account_info.get("project_id")


def load_settings(secrets: Optional[Mapping[str, Any]] = None,
                  environ: Optional[Mapping[str, str]] = None) -> Settings:
    if environ is None:
        load_dotenv()
        environ = os.environ
    secrets = secrets or {}

    def lookup(*names, default=None):
        # TOML secrets may hold false or 0, which must not fall through
        for name in names:
            for source in (secrets, environ):
                value = source.get(name)
                if value is not None and value != "":
                    return value
        return default

    service_account = secrets.get("gcp_service_account")
    if service_account and not service_account.get("project_id"):
        service_account = None

    return Settings(
        api_key=lookup("GEMINI_API_KEY", "API_KEY"),
        service_account_info=dict(service_account) if service_account else None,
        location=lookup("GOOGLE_CLOUD_LOCATION", default=DEFAULT_LOCATION),
        nano_model=lookup("SPACE_AI_NANO_MODEL", default=NANO_IMAGE_MODEL),
        pro_model=lookup("SPACE_AI_PRO_MODEL", default=PRO_IMAGE_MODEL),
        data_dir=Path(lookup("SPACE_AI_DATA_DIR", default=DEFAULT_DATA_DIR)).expanduser(),
        key_selector_enabled=str(lookup("SPACE_AI_KEY_SELECTOR", default="1")).strip().lower() not in _FALSEY,
        log_level=str(lookup("SPACE_AI_LOG_LEVEL", default="INFO")).upper(),
    )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
