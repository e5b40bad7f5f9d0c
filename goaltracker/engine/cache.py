"""Local cache — synchronous JSON persistence of the single AppState document.

Scoped per installation: one fixed key, one file. Reads never fail; anything
unreadable falls back to a freshly seeded default.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from pydantic import ValidationError

from goaltracker.engine.models import AppState
from goaltracker.engine.seed import default_state

logger = logging.getLogger(__name__)

STORAGE_KEY = "goaladmin_tracker_web_v1"


class LocalCache:
    def __init__(self, directory: str | Path, key: str = STORAGE_KEY):
        self.path = Path(directory) / f"{key}.json"

    def load(self) -> AppState:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.info("No cached state at %s, seeding defaults", self.path)
            return default_state()
        except OSError as e:
            logger.warning("Cannot read cached state at %s: %s", self.path, e)
            return default_state()

        try:
            return AppState.model_validate_json(raw)
        except (ValidationError, ValueError) as e:
            logger.warning("Discarding unreadable cached state at %s: %s", self.path, e)
            return default_state()

    def save(self, state: AppState) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(".tmp")
        tmp.write_text(json.dumps(state.to_document(), ensure_ascii=False), encoding="utf-8")
        os.replace(tmp, self.path)

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
