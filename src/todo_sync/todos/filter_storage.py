# src/todo_sync/todos/filter_storage.py

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from ..core.ports import KeyValueStorage
from .todo_models import TodoFilter

logger = logging.getLogger(__name__)

FILTER_STORAGE_KEY = "todo-app-filter"
ARCHIVE_FILTER_STORAGE_KEY = "todo-app-archive-filter"


class JsonFileStorage:
    """
    Key/value strings kept in one JSON object on disk.

    Writes go through a temp file + os.replace so a crash never leaves a
    half-written file behind. Read errors propagate (OSError, ValueError);
    the filter helpers below decide how to degrade.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        data = json.loads(self._path.read_text("utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"{self._path} does not hold a JSON object")
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _write_all(self, data: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(".tmp")
        tmp.write_text(json.dumps(data, ensure_ascii=False, indent=2), "utf-8")
        os.replace(tmp, self._path)

    def _read_for_update(self) -> dict[str, str]:
        try:
            return self._read_all()
        except ValueError:
            logger.warning("Storage file %s is corrupt; starting from an empty object", self._path)
            return {}

    def get_item(self, key: str) -> str | None:
        return self._read_all().get(key)

    def set_item(self, key: str, value: str) -> None:
        data = self._read_for_update()
        data[key] = value
        self._write_all(data)

    def remove_item(self, key: str) -> None:
        data = self._read_for_update()
        if data.pop(key, None) is not None:
            self._write_all(data)


def load_filter(storage: KeyValueStorage | None, key: str, default: TodoFilter) -> TodoFilter:
    """
    Restore the last-used filter, merged over `default`.

    Missing key, corrupt JSON or an unavailable backend all fall back to the
    default silently (logged for diagnostics only).
    """
    if storage is None:
        return default
    try:
        raw = storage.get_item(key)
        if not raw:
            return default
        stored = json.loads(raw)
        if not isinstance(stored, dict):
            raise TypeError("stored filter is not an object")
        return TodoFilter.from_dict({**default.to_dict(), **stored})
    except Exception:
        logger.warning("Failed to load filter from storage (%s); using default.", key, exc_info=True)
        return default


def save_filter(storage: KeyValueStorage | None, key: str, todo_filter: TodoFilter) -> None:
    """Persist the filter. Best-effort: storage failures are logged, never raised."""
    if storage is None:
        return
    try:
        storage.set_item(key, json.dumps(todo_filter.to_dict(), ensure_ascii=False))
    except Exception:
        logger.warning("Failed to save filter to storage (%s).", key, exc_info=True)



def forget_filter(storage: KeyValueStorage | None, key: str) -> None:
    """Drop the stored filter so the next start uses the default. Best-effort, like save_filter."""
    if storage is None:
        return
    try:
        storage.remove_item(key)
    except Exception:
        logger.warning("Failed to remove filter from storage (%s).", key, exc_info=True)
