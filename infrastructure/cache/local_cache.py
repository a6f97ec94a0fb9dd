"""
Local fallback cache - owner-scoped key/value lists stored as JSON files.
"""

import json
import os
import re
import tempfile
from pathlib import Path
from typing import Any, Dict, List

from utils.logging_config import get_logger


def _safe_key(key: str) -> str:
    return re.sub(r"[^a-zA-Z0-9._-]", "_", key) or "_"


class LocalCache:
    """
    Minimal get-all/set-all store. Each key maps to one JSON file holding a
    list of records; a missing or unreadable file reads as an empty list.
    """

    def __init__(self, cache_dir: str):
        self.logger = get_logger(__name__)
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.cache_dir / f"{_safe_key(key)}.json"

    def get_all(self, key: str) -> List[Dict[str, Any]]:
        path = self._path(key)
        if not path.exists():
            return []

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            self.logger.warning(f"Ignoring unreadable cache entry {path.name}: {e}")
            return []

        if not isinstance(data, list):
            self.logger.warning(f"Ignoring malformed cache entry {path.name}")
            return []
        return data

    def set_all(self, key: str, items: List[Dict[str, Any]]) -> None:
        path = self._path(key)
        # Atomic replace
        fd, tmp_path = tempfile.mkstemp(dir=self.cache_dir, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(items, handle, ensure_ascii=False)
            os.replace(tmp_path, path)
        except OSError:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def clear(self, key: str) -> None:
        path = self._path(key)
        if path.exists():
            path.unlink()
