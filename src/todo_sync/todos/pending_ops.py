# src/todo_sync/todos/pending_ops.py

from __future__ import annotations

"""
In-flight optimistic operations.

Each record carries what the list looked like before the user's change
(the snapshot, or "was absent" for a create), so applying, confirming and
rolling back are pure functions of (list, record). The store never patches
its list by hand.
"""

import uuid
from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import datetime

from .todo_models import CreateTodoInput, Priority, Task, UpdateTodoInput

PLACEHOLDER_PREFIX = "temp-"


def new_op_id() -> str:
    return uuid.uuid4().hex


def is_placeholder_id(todo_id: str) -> bool:
    return todo_id.startswith(PLACEHOLDER_PREFIX)


@dataclass(frozen=True, slots=True)
class PendingCreate:
    """The task did not exist before; `placeholder` stands in for it until the server answers."""

    op_id: str
    placeholder: Task


@dataclass(frozen=True, slots=True)
class PendingUpdate:
    op_id: str
    snapshot: Task
    optimistic: Task


@dataclass(frozen=True, slots=True)
class PendingDelete:
    op_id: str
    snapshot: Task


PendingOperation = PendingCreate | PendingUpdate | PendingDelete


def make_placeholder(data: CreateTodoInput, op_id: str, now: datetime) -> Task:
    return Task(
        id=f"{PLACEHOLDER_PREFIX}{op_id}",
        title=data.title,
        completed=False,
        priority=data.priority or Priority.MEDIUM,
        tags=tuple(data.tags or ()),
        memo=data.memo or "",
        created_at=now,
        updated_at=now,
        completed_at=None,
        is_pending=True,
    )


def apply_patch(task: Task, patch: UpdateTodoInput, now: datetime) -> Task:
    """What the task should look like if the server accepts `patch`."""
    completed = task.completed if patch.completed is None else patch.completed
    completed_at = task.completed_at
    if completed and not task.completed:
        completed_at = now
    elif not completed:
        completed_at = None

    return replace(
        task,
        title=task.title if patch.title is None else patch.title,
        completed=completed,
        completed_at=completed_at,
        priority=task.priority if patch.priority is None else patch.priority,
        tags=task.tags if patch.tags is None else tuple(patch.tags),
        memo=task.memo if patch.memo is None else patch.memo,
        is_pending=True,
    )


def _replace_by_id(todos: list[Task], todo_id: str, new: Task) -> list[Task]:
    return [new if t.id == todo_id else t for t in todos]


def _contains(todos: list[Task], todo_id: str) -> bool:
    return any(t.id == todo_id for t in todos)


def apply_optimistic(todos: list[Task], op: PendingOperation) -> list[Task]:
    if isinstance(op, PendingCreate):
        if _contains(todos, op.placeholder.id):
            return list(todos)
        return [op.placeholder, *todos]
    if isinstance(op, PendingUpdate):
        return _replace_by_id(todos, op.snapshot.id, op.optimistic)
    if isinstance(op, PendingDelete):
        current = next((t for t in todos if t.id == op.snapshot.id), None)
        if current is None:
            return list(todos)
        return _replace_by_id(todos, op.snapshot.id, replace(current, is_exiting=True))
    raise TypeError(f"unknown pending operation: {op!r}")


def confirm(todos: list[Task], op: PendingOperation, server_task: Task | None = None) -> list[Task]:
    """Swap the optimistic state for the server's answer."""
    if isinstance(op, PendingCreate):
        if server_task is None:
            raise ValueError("a confirmed create needs the server task")
        temp_id = op.placeholder.id
        if _contains(todos, server_task.id):
            # A refresh already delivered the real task; drop the stand-in.
            return [server_task if t.id == server_task.id else t for t in todos if t.id != temp_id]
        if _contains(todos, temp_id):
            return _replace_by_id(todos, temp_id, server_task)
        return [server_task, *todos]
    if isinstance(op, PendingUpdate):
        if server_task is None:
            raise ValueError("a confirmed update needs the server task")
        return _replace_by_id(todos, op.snapshot.id, server_task)
    if isinstance(op, PendingDelete):
        return discard(todos, op.snapshot.id)
    raise TypeError(f"unknown pending operation: {op!r}")


def rollback(todos: list[Task], op: PendingOperation) -> list[Task]:
    """Put the list back the way it was before `op` was applied."""
    if isinstance(op, PendingCreate):
        return discard(todos, op.placeholder.id)
    if isinstance(op, PendingUpdate | PendingDelete):
        return _replace_by_id(todos, op.snapshot.id, replace(op.snapshot, is_exiting=False))
    raise TypeError(f"unknown pending operation: {op!r}")


def discard(todos: list[Task], todo_id: str) -> list[Task]:
    return [t for t in todos if t.id != todo_id]


def rebase(todos: Iterable[Task], ops: Iterable[PendingOperation]) -> list[Task]:
    """Re-apply still-pending operations on top of a freshly loaded list."""
    out = list(todos)
    for op in ops:
        out = apply_optimistic(out, op)
    return out
