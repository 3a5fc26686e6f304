# tests/test_filter_storage.py

from __future__ import annotations

import json
from pathlib import Path

import pytest

from todo_sync.todos.filter_storage import (
    FILTER_STORAGE_KEY,
    JsonFileStorage,
    forget_filter,
    load_filter,
    save_filter,
)
from todo_sync.todos.todo_filters import DEFAULT_TODO_FILTER
from todo_sync.todos.todo_models import FilterStatus, Priority, TodoFilter

from .fakes import BrokenStorage, InMemoryStorage


def test_json_file_storage_roundtrip(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "filters.json"
    storage = JsonFileStorage(path)

    assert storage.get_item("k") is None
    storage.set_item("k", "v")
    storage.set_item("other", "w")

    again = JsonFileStorage(path)
    assert again.get_item("k") == "v"

    again.remove_item("k")
    assert json.loads(path.read_text("utf-8")) == {"other": "w"}


def test_json_file_storage_recovers_from_corrupt_file_on_write(tmp_path: Path) -> None:
    path = tmp_path / "filters.json"
    path.write_text("[1, 2", "utf-8")
    storage = JsonFileStorage(path)

    with pytest.raises(ValueError):
        storage.get_item("k")

    storage.set_item("k", "v")
    assert storage.get_item("k") == "v"


def test_saved_filter_restores_merged_over_default() -> None:
    storage = InMemoryStorage()
    save_filter(storage, FILTER_STORAGE_KEY, TodoFilter(status=FilterStatus.PENDING, priority=Priority.HIGH))

    restored = load_filter(storage, FILTER_STORAGE_KEY, DEFAULT_TODO_FILTER)
    assert restored == TodoFilter(status=FilterStatus.PENDING, priority=Priority.HIGH)


def test_partial_stored_filter_keeps_default_for_missing_keys() -> None:
    storage = InMemoryStorage({FILTER_STORAGE_KEY: json.dumps({"tags": ["work"]})})

    restored = load_filter(storage, FILTER_STORAGE_KEY, DEFAULT_TODO_FILTER)
    assert restored == TodoFilter(status=FilterStatus.PENDING, tags=("work",))


@pytest.mark.parametrize(
    "raw",
    [
        None,
        "",
        "{not json",
        "[]",
        json.dumps({"status": "sideways"}),
        json.dumps({"tags": "work"}),
    ],
)
def test_unusable_stored_filter_falls_back_to_default(raw) -> None:
    storage = InMemoryStorage({} if raw is None else {FILTER_STORAGE_KEY: raw})

    assert load_filter(storage, FILTER_STORAGE_KEY, DEFAULT_TODO_FILTER) == DEFAULT_TODO_FILTER


def test_broken_backend_is_silent() -> None:
    assert load_filter(BrokenStorage(), FILTER_STORAGE_KEY, DEFAULT_TODO_FILTER) == DEFAULT_TODO_FILTER
    save_filter(BrokenStorage(), FILTER_STORAGE_KEY, DEFAULT_TODO_FILTER)
    forget_filter(BrokenStorage(), FILTER_STORAGE_KEY)
    assert load_filter(None, FILTER_STORAGE_KEY, DEFAULT_TODO_FILTER) == DEFAULT_TODO_FILTER


def test_filter_file_holds_plain_json(tmp_path: Path) -> None:
    storage = JsonFileStorage(tmp_path / "filters.json")
    save_filter(storage, FILTER_STORAGE_KEY, TodoFilter(search_text="milk"))

    stored = json.loads(storage.get_item(FILTER_STORAGE_KEY))
    assert stored == {"status": None, "priority": None, "tags": [], "searchText": "milk"}


def test_forgotten_filter_reloads_as_default(tmp_path: Path) -> None:
    storage = JsonFileStorage(tmp_path / "filters.json")
    save_filter(storage, FILTER_STORAGE_KEY, TodoFilter(priority=Priority.HIGH))

    forget_filter(storage, FILTER_STORAGE_KEY)

    assert storage.get_item(FILTER_STORAGE_KEY) is None
    assert load_filter(storage, FILTER_STORAGE_KEY, DEFAULT_TODO_FILTER) == DEFAULT_TODO_FILTER
