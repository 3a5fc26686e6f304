# src/todo_sync/todos/validation.py

"""Local checks run before a create/update ever reaches the network."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace

from ..core.errors import ValidationError
from .todo_models import CreateTodoInput, Priority, UpdateTodoInput

MAX_TITLE_LENGTH = 200
MAX_TAGS = 10
MAX_TAG_LENGTH = 50


def normalize_title(title: str | None) -> str:
    cleaned = (title or "").strip()
    if not cleaned:
        raise ValidationError("Title is required", field="title")
    if len(cleaned) > MAX_TITLE_LENGTH:
        raise ValidationError(f"Title cannot exceed {MAX_TITLE_LENGTH} characters", field="title")
    return cleaned


def normalize_priority(priority: Priority | str | None) -> Priority | None:
    if priority is None:
        return None
    try:
        return Priority(priority)
    except ValueError:
        raise ValidationError(
            f"Priority must be one of: {', '.join(p.value for p in Priority)}",
            field="priority",
        ) from None


def normalize_tags(tags: Iterable[str] | None) -> tuple[str, ...] | None:
    if tags is None:
        return None
    out: list[str] = []
    seen: set[str] = set()
    for i, raw in enumerate(tags):
        tag = str(raw).strip()
        if not tag:
            raise ValidationError(f"Tag at index {i} cannot be empty", field="tags")
        if len(tag) > MAX_TAG_LENGTH:
            raise ValidationError(
                f"Tag at index {i} cannot exceed {MAX_TAG_LENGTH} characters", field="tags"
            )
        key = tag.lower()
        if key in seen:
            raise ValidationError("Tags must be unique (case-insensitive)", field="tags")
        seen.add(key)
        out.append(tag)
    if len(out) > MAX_TAGS:
        raise ValidationError(f"A task cannot have more than {MAX_TAGS} tags", field="tags")
    return tuple(out)


def validate_create(data: CreateTodoInput) -> CreateTodoInput:
    """Return a normalized copy (trimmed title and tags) or raise ValidationError."""
    return replace(
        data,
        title=normalize_title(data.title),
        priority=normalize_priority(data.priority),
        tags=normalize_tags(data.tags),
    )


def validate_update(patch: UpdateTodoInput) -> UpdateTodoInput:
    if patch.is_empty():
        raise ValidationError("Nothing to update")
    return replace(
        patch,
        title=normalize_title(patch.title) if patch.title is not None else None,
        priority=normalize_priority(patch.priority),
        tags=normalize_tags(patch.tags),
    )
