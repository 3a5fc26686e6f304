# src/todo_sync/todos/todo_filters.py

"""
Filter composition.

Pure helpers that turn a TodoFilter into:
- query parameters for GET /todos,
- a local predicate (used for the archive view, which is filtered client-side),
- short human-readable labels for the "active filters" line.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from ..core.errors import ValidationError
from .todo_models import ArchiveGroup, FilterStatus, Priority, Task, TodoFilter

DEFAULT_TODO_FILTER = TodoFilter(status=FilterStatus.PENDING)
DEFAULT_ARCHIVE_FILTER = TodoFilter()

FILTER_FIELDS = ("status", "priority", "tags", "search_text")


def _clean_search(text: str | None) -> str:
    return (text or "").strip()


def has_active_filter(todo_filter: TodoFilter | None) -> bool:
    if todo_filter is None:
        return False
    return bool(
        (todo_filter.status is not None and todo_filter.status is not FilterStatus.ALL)
        or todo_filter.priority is not None
        or todo_filter.tags
        or _clean_search(todo_filter.search_text)
    )


def to_query_params(todo_filter: TodoFilter | None) -> list[tuple[str, str]]:
    """
    status -> status, priority -> priority, each tag -> repeated `tags`,
    trimmed search -> search. Empty fields contribute nothing.
    """
    if todo_filter is None:
        return []
    params: list[tuple[str, str]] = []
    if todo_filter.status is not None:
        params.append(("status", todo_filter.status.value))
    if todo_filter.priority is not None:
        params.append(("priority", todo_filter.priority.value))
    for tag in todo_filter.tags:
        if tag:
            params.append(("tags", tag))
    search = _clean_search(todo_filter.search_text)
    if search:
        params.append(("search", search))
    return params


def matches(task: Task, todo_filter: TodoFilter | None) -> bool:
    if todo_filter is None:
        return True

    if todo_filter.status is FilterStatus.COMPLETED and not task.completed:
        return False
    if todo_filter.status is FilterStatus.PENDING and task.completed:
        return False

    if todo_filter.priority is not None and task.priority is not todo_filter.priority:
        return False

    # every required tag must be present
    if todo_filter.tags and not set(todo_filter.tags).issubset(task.tags):
        return False

    search = _clean_search(todo_filter.search_text).lower()
    if search and search not in task.title.lower():
        return False

    return True


def apply_filter(tasks: Iterable[Task], todo_filter: TodoFilter | None) -> list[Task]:
    return [t for t in tasks if matches(t, todo_filter)]


def filter_archive(groups: Iterable[ArchiveGroup], todo_filter: TodoFilter | None) -> list[ArchiveGroup]:
    """Filter archived tasks locally; counts are recomputed and empty days dropped."""
    groups = list(groups)
    if not has_active_filter(todo_filter):
        return groups
    out: list[ArchiveGroup] = []
    for group in groups:
        kept = tuple(apply_filter(group.tasks, todo_filter))
        if kept:
            out.append(ArchiveGroup(date=group.date, tasks=kept, count=len(kept)))
    return out


def describe_filter(todo_filter: TodoFilter | None) -> list[str]:
    """Display-only labels, e.g. ['Status: Completed', 'Tags: work, urgent', 'Search: "milk"']."""
    if todo_filter is None:
        return []
    labels: list[str] = []
    if todo_filter.status is not None and todo_filter.status is not FilterStatus.ALL:
        labels.append(f"Status: {todo_filter.status.value.capitalize()}")
    if todo_filter.priority is not None:
        labels.append(f"Priority: {todo_filter.priority.value.capitalize()}")
    if todo_filter.tags:
        labels.append(f"Tags: {', '.join(todo_filter.tags)}")
    search = _clean_search(todo_filter.search_text)
    if search:
        labels.append(f'Search: "{search}"')
    return labels


def _normalize_filter_tags(raw: Any) -> tuple[str, ...]:
    if raw is None:
        return ()
    if isinstance(raw, str):
        raw = raw.replace(",", " ").split()
    out: list[str] = []
    for tag in raw:
        tag = str(tag).strip()
        if tag and tag not in out:
            out.append(tag)
    return tuple(out)


def merge_filter(current: TodoFilter, changes: Mapping[str, Any]) -> TodoFilter:
    """
    Overlay `changes` on `current`.

    Keys that are not mentioned keep their value; a mentioned key with an
    empty value (None, "", []) clears that dimension.
    """
    unknown = set(changes) - set(FILTER_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown filter field(s): {', '.join(sorted(unknown))}")

    status = current.status
    priority = current.priority
    tags = current.tags
    search_text = current.search_text

    if "status" in changes:
        raw = changes["status"]
        try:
            status = FilterStatus(raw) if raw else None
        except ValueError:
            raise ValidationError(f"Invalid status: {raw}", field="status") from None

    if "priority" in changes:
        raw = changes["priority"]
        try:
            priority = Priority(raw) if raw else None
        except ValueError:
            raise ValidationError(f"Invalid priority: {raw}", field="priority") from None

    if "tags" in changes:
        tags = _normalize_filter_tags(changes["tags"])

    if "search_text" in changes:
        search_text = _clean_search(changes["search_text"]) or None

    return TodoFilter(status=status, priority=priority, tags=tags, search_text=search_text)
