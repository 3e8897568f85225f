from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable, List, Sequence

from space_ai.models import PROMPT_HISTORY_LIMIT

logger = logging.getLogger(__name__)


def push_prompt(history: Sequence[str], prompt: str, limit: int = PROMPT_HISTORY_LIMIT) -> List[str]:
    """Move ``prompt`` to the front of ``history``, without duplicates, capped at ``limit``."""
    return [prompt, *(p for p in history if p != prompt)][:limit]


class PromptHistoryStore:
    """Single JSON slot holding the prompt history between sessions."""

    def __init__(self, path, limit: int = PROMPT_HISTORY_LIMIT):
        self.path = Path(path)
        self.limit = limit

    def load(self) -> List[str]:
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.error("Failed to parse prompt history at %s: %s", self.path, e)
            return []
        if not isinstance(data, list):
            logger.error("Prompt history at %s is not a list", self.path)
            return []
        return [p for p in data if isinstance(p, str)][:self.limit]

    def save(self, prompts: Iterable[str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(list(prompts)[:self.limit]), encoding="utf-8")
