# tests/test_pending_ops.py

from __future__ import annotations

from dataclasses import replace

from todo_sync.todos.pending_ops import (
    PendingCreate,
    PendingDelete,
    PendingUpdate,
    apply_optimistic,
    apply_patch,
    confirm,
    make_placeholder,
    rebase,
    rollback,
)
from todo_sync.todos.todo_models import CreateTodoInput, Priority, Task, UpdateTodoInput

from .fakes import FIXED_NOW

A = Task(id="a", title="A")
B = Task(id="b", title="B", completed=True, completed_at=FIXED_NOW)


def _create_op() -> PendingCreate:
    placeholder = make_placeholder(CreateTodoInput(title="New", tags=("x",)), "op1", FIXED_NOW)
    return PendingCreate(op_id="op1", placeholder=placeholder)


def test_create_prepends_then_confirm_replaces_in_place() -> None:
    op = _create_op()
    todos = apply_optimistic([A, B], op)
    assert [t.id for t in todos] == ["temp-op1", "a", "b"]
    assert todos[0].is_pending
    assert todos[0].priority is Priority.MEDIUM

    server = Task(id="42", title="New", tags=("x",))
    assert confirm(todos, op, server) == [server, A, B]


def test_confirm_create_drops_placeholder_when_refresh_already_has_it() -> None:
    op = _create_op()
    server = Task(id="42", title="New")
    todos = [op.placeholder, server, A]

    assert confirm(todos, op, server) == [server, A]


def test_create_rollback_removes_only_placeholder() -> None:
    op = _create_op()
    assert rollback(apply_optimistic([A], op), op) == [A]


def test_update_rollback_restores_snapshot() -> None:
    op = PendingUpdate(op_id="u", snapshot=A, optimistic=apply_patch(A, UpdateTodoInput(title="A2"), FIXED_NOW))
    todos = apply_optimistic([A, B], op)
    assert todos[0].title == "A2" and todos[0].is_pending

    assert rollback(todos, op) == [A, B]


def test_apply_patch_tracks_completed_at() -> None:
    done = apply_patch(A, UpdateTodoInput(completed=True), FIXED_NOW)
    assert done.completed and done.completed_at == FIXED_NOW

    reopened = apply_patch(B, UpdateTodoInput(completed=False), FIXED_NOW)
    assert not reopened.completed and reopened.completed_at is None

    untouched = apply_patch(B, UpdateTodoInput(memo="m"), FIXED_NOW)
    assert untouched.completed_at == FIXED_NOW


def test_delete_marks_exiting_and_rollback_clears_it() -> None:
    op = PendingDelete(op_id="d", snapshot=A)
    todos = apply_optimistic([A, B], op)
    assert todos[0].is_exiting

    assert rollback(todos, op) == [A, B]
    assert confirm(todos, op) == [B]


def test_rebase_reapplies_pending_ops_on_fresh_list() -> None:
    create = _create_op()
    delete = PendingDelete(op_id="d", snapshot=A)
    fresh = [replace(A, memo="server edit"), B]

    rebased = rebase(fresh, [create, delete])

    assert [t.id for t in rebased] == ["temp-op1", "a", "b"]
    assert rebased[1].is_exiting and rebased[1].memo == "server edit"
