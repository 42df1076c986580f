from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from ..services.model_catalog import DEFAULT_MODEL_ID, is_valid_model_id

logger = logging.getLogger(__name__)

STORAGE_KEY = "ai-model"


def _default_path() -> Path:
    configured = os.getenv("FORGE_PREFERENCES_PATH")
    if configured:
        return Path(configured).expanduser()
    return Path.home() / ".forge" / "preferences.json"


class ModelPreferenceStore:
    """Remembers the chosen model id between runs, like browser local storage."""

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = Path(path) if path else _default_path()
        self._model_id = DEFAULT_MODEL_ID
        self.load()

    @property
    def model_id(self) -> str:
        return self._model_id

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            logger.warning("Ignoring unreadable preferences file %s", self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def load(self) -> str:
        stored = self._read().get(STORAGE_KEY)
        if isinstance(stored, str) and is_valid_model_id(stored):
            self._model_id = stored
        else:
            if stored is not None:
                logger.info("Stored model id %r is not recognised; using %s", stored, DEFAULT_MODEL_ID)
            self._model_id = DEFAULT_MODEL_ID
        return self._model_id

    def save(self, model_id: str) -> None:
        if not is_valid_model_id(model_id):
            raise ValueError(f"Unknown model id: {model_id}")
        data = self._read()
        data[STORAGE_KEY] = model_id
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        self._model_id = model_id
