# src/todo_sync/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The store and transport depend on Protocols instead of concrete implementations.
This keeps the HTTP gateway and the storage backend swappable and makes testing easier.
"""

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from ..todos.todo_models import (
        ArchiveGroup,
        CreateTodoInput,
        Task,
        TodoFilter,
        UpdateTodoInput,
    )


class NetworkReporter(Protocol):
    """Receives advisory connectivity signals from the transport."""

    def report_connection_success(self) -> None: ...
    def report_connection_error(self) -> None: ...


class KeyValueStorage(Protocol):
    """
    Durable client-side string storage (the browser localStorage equivalent).

    Implementations may raise OSError when the backend is unavailable;
    callers decide whether that is fatal.
    """

    def get_item(self, key: str) -> str | None: ...
    def set_item(self, key: str, value: str) -> None: ...
    def remove_item(self, key: str) -> None: ...


class TodoGateway(Protocol):
    """Typed remote operations. Every method may raise a TransportError subclass."""

    async def list_todos(self, todo_filter: TodoFilter | None = None) -> list[Task]: ...
    async def create_todo(self, data: CreateTodoInput) -> Task: ...
    async def update_todo(self, todo_id: str, patch: UpdateTodoInput) -> Task: ...
    async def toggle_completion(self, todo_id: str) -> Task: ...
    async def delete_todo(self, todo_id: str) -> None: ...
    async def list_tags(self) -> list[str]: ...
    async def list_archive(self) -> list[ArchiveGroup]: ...
