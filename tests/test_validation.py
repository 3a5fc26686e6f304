# tests/test_validation.py

from __future__ import annotations

import pytest

from todo_sync.core.errors import ValidationError
from todo_sync.todos.todo_models import CreateTodoInput, Priority, UpdateTodoInput
from todo_sync.todos.validation import validate_create, validate_update


def test_create_is_normalized() -> None:
    data = validate_create(CreateTodoInput(title="  Buy milk  ", priority="high", tags=(" home ", "errands")))

    assert data.title == "Buy milk"
    assert data.priority is Priority.HIGH
    assert data.tags == ("home", "errands")


@pytest.mark.parametrize(
    ("data", "field"),
    [
        (CreateTodoInput(title=""), "title"),
        (CreateTodoInput(title="x" * 201), "title"),
        (CreateTodoInput(title="ok", priority="urgent"), "priority"),
        (CreateTodoInput(title="ok", tags=("a", " ")), "tags"),
        (CreateTodoInput(title="ok", tags=("Work", "work")), "tags"),
        (CreateTodoInput(title="ok", tags=("t" * 51,)), "tags"),
        (CreateTodoInput(title="ok", tags=tuple(f"t{i}" for i in range(11))), "tags"),
    ],
)
def test_create_rejections_name_the_field(data, field) -> None:
    with pytest.raises(ValidationError) as exc_info:
        validate_create(data)
    assert exc_info.value.field == field


def test_update_requires_something_to_change() -> None:
    with pytest.raises(ValidationError, match="Nothing to update"):
        validate_update(UpdateTodoInput())


def test_update_only_checks_given_fields() -> None:
    patch = validate_update(UpdateTodoInput(completed=True))
    assert patch.title is None and patch.tags is None

    with pytest.raises(ValidationError):
        validate_update(UpdateTodoInput(title="   "))
