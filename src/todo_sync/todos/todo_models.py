# src/todo_sync/todos/todo_models.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import StrEnum
from typing import Any


class Priority(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @classmethod
    def from_api(cls, raw: Any) -> Priority:
        if not raw:
            return cls.MEDIUM
        try:
            return cls(str(raw))
        except ValueError:
            return cls.MEDIUM


class FilterStatus(StrEnum):
    ALL = "all"
    PENDING = "pending"
    COMPLETED = "completed"


def _parse_instant(raw: Any) -> datetime | None:
    if raw is None or raw == "":
        return None
    if isinstance(raw, datetime):
        return raw
    return datetime.fromisoformat(str(raw))


@dataclass(frozen=True, slots=True)
class Task:
    """
    One to-do item as the client sees it.

    is_pending / is_exiting are client-only animation flags: they are never
    part of a request payload and never written to storage.
    """

    id: str
    title: str
    completed: bool = False
    priority: Priority = Priority.MEDIUM
    tags: tuple[str, ...] = ()
    memo: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None
    completed_at: datetime | None = None

    is_pending: bool = False
    is_exiting: bool = False

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> Task:
        """Build from the server's camelCase JSON. Raises on a malformed payload."""
        if not isinstance(raw, dict):
            raise TypeError(f"task payload must be an object, got {type(raw).__name__}")
        tags = raw.get("tags") or []
        if not isinstance(tags, list):
            raise TypeError("task tags must be a list")
        return cls(
            id=str(raw["id"]),
            title=str(raw["title"]),
            completed=bool(raw.get("completed", False)),
            priority=Priority.from_api(raw.get("priority")),
            tags=tuple(str(t) for t in tags),
            memo=str(raw.get("memo") or ""),
            created_at=_parse_instant(raw.get("createdAt")),
            updated_at=_parse_instant(raw.get("updatedAt")),
            completed_at=_parse_instant(raw.get("completedAt")),
        )


@dataclass(frozen=True, slots=True)
class TodoFilter:
    """Which tasks to show. An empty field means "no constraint on this dimension"."""

    status: FilterStatus | None = None
    priority: Priority | None = None
    tags: tuple[str, ...] = ()
    search_text: str | None = None

    def to_dict(self) -> dict[str, Any]:
        # Cleared fields are written as null so they survive a merge over the defaults.
        return {
            "status": self.status.value if self.status is not None else None,
            "priority": self.priority.value if self.priority is not None else None,
            "tags": list(self.tags),
            "searchText": self.search_text or None,
        }

    @classmethod
    def from_dict(cls, raw: Any) -> TodoFilter:
        """Inverse of to_dict. Raises ValueError/TypeError on anything it cannot trust."""
        if not isinstance(raw, dict):
            raise TypeError("filter must be a JSON object")
        status = raw.get("status")
        priority = raw.get("priority")
        tags = raw.get("tags") or []
        search_text = raw.get("searchText")
        if not isinstance(tags, list):
            raise TypeError("filter tags must be a list")
        if search_text is not None and not isinstance(search_text, str):
            raise TypeError("filter searchText must be a string")
        return cls(
            status=FilterStatus(status) if status else None,
            priority=Priority(priority) if priority else None,
            tags=tuple(str(t) for t in tags),
            search_text=search_text or None,
        )


@dataclass(frozen=True, slots=True)
class CreateTodoInput:
    title: str
    priority: Priority | None = None
    tags: tuple[str, ...] | None = None
    memo: str | None = None

    def to_payload(self) -> dict[str, Any]:
        out: dict[str, Any] = {"title": self.title}
        if self.priority is not None:
            out["priority"] = self.priority.value
        if self.tags is not None:
            out["tags"] = list(self.tags)
        if self.memo is not None:
            out["memo"] = self.memo
        return out


@dataclass(frozen=True, slots=True)
class UpdateTodoInput:
    """Partial patch: only fields that are not None are sent."""

    title: str | None = None
    completed: bool | None = None
    priority: Priority | None = None
    tags: tuple[str, ...] | None = None
    memo: str | None = None

    def to_payload(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.title is not None:
            out["title"] = self.title
        if self.completed is not None:
            out["completed"] = self.completed
        if self.priority is not None:
            out["priority"] = self.priority.value
        if self.tags is not None:
            out["tags"] = list(self.tags)
        if self.memo is not None:
            out["memo"] = self.memo
        return out

    def is_empty(self) -> bool:
        return not self.to_payload()


@dataclass(frozen=True, slots=True)
class ArchiveGroup:
    """Completed tasks that share a completion day."""

    date: date
    tasks: tuple[Task, ...] = field(default_factory=tuple)
    count: int = 0

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> ArchiveGroup:
        if not isinstance(raw, dict):
            raise TypeError(f"archive group must be an object, got {type(raw).__name__}")
        tasks = raw.get("tasks") or []
        if not isinstance(tasks, list):
            raise TypeError("archive group tasks must be a list")
        parsed = tuple(Task.from_api(t) for t in tasks)
        return cls(
            date=date.fromisoformat(str(raw["date"])),
            tasks=parsed,
            count=int(raw.get("count", len(parsed))),
        )
