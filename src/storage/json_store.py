# src/storage/json_store.py
"""JSON file-based key-value store (default STORAGE_BACKEND=json).

Each key is stored as its own file under STORAGE_ROOT. File names are the
percent-encoded key, so any key round-trips through get_all_keys().
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from urllib.parse import quote, unquote

from muscleai.storage.base_kv_store import BaseKeyValueStore

logger = logging.getLogger(__name__)

_SUFFIX = ".json"


class JsonFileKeyValueStore(BaseKeyValueStore):
    """File-per-key store using JSON documents."""

    def __init__(self, root: Path | str) -> None:
        self._root = Path(root).expanduser()
        self._root.mkdir(parents=True, exist_ok=True)

    async def get_item(self, key: str) -> str | None:
        path = self._entry_path(key)
        if not path.exists():
            return None
        try:
            record = json.loads(path.read_text(encoding="utf-8"))
            return record["value"]
        except (json.JSONDecodeError, KeyError, TypeError) as e:
            logger.warning("Corrupt storage record %s: %s", key, e)
            return None

    async def set_item(self, key: str, value: str) -> None:
        path = self._entry_path(key)
        tmp = path.with_name(path.name + ".tmp")
        tmp.write_text(json.dumps({"key": key, "value": value}), encoding="utf-8")
        os.replace(tmp, path)

    async def remove_item(self, key: str) -> None:
        path = self._entry_path(key)
        if path.exists():
            path.unlink()

    async def get_all_keys(self) -> list[str]:
        if not self._root.is_dir():
            return []
        return [
            unquote(path.name[: -len(_SUFFIX)])
            for path in sorted(self._root.glob(f"*{_SUFFIX}"))
        ]

    def _entry_path(self, key: str) -> Path:
        """Return file path for a storage key."""
        return self._root / f"{quote(key, safe='')}{_SUFFIX}"
