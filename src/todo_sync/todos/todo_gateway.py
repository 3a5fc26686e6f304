# src/todo_sync/todos/todo_gateway.py

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

from ..core.errors import NetworkError, NotFoundError
from ..transport.http_client import HttpClient
from .todo_filters import to_query_params
from .todo_models import ArchiveGroup, CreateTodoInput, Task, TodoFilter, UpdateTodoInput

logger = logging.getLogger(__name__)


class HttpTodoGateway:
    """
    Typed /todos operations on top of HttpClient.

    Transport errors propagate unchanged; nothing here retries. A 2xx payload
    of the wrong shape becomes a NetworkError that is also reported to the
    client's network reporter, like any other NetworkError.
    """

    def __init__(self, http: HttpClient) -> None:
        self.http = http

    @staticmethod
    def _item_path(todo_id: str) -> str:
        return f"/todos/{quote(str(todo_id), safe='')}"

    def _invalid_payload(self, what: str, payload: Any) -> NetworkError:
        logger.info("Rejected %s payload from server", what)
        return self.http.network_error(
            f"Invalid response format from server ({what})",
            raw_text=repr(payload)[:500],
        )

    def _decode_task(self, payload: Any) -> Task:
        try:
            return Task.from_api(payload)
        except (KeyError, TypeError, ValueError) as exc:
            raise self._invalid_payload("task", payload) from exc

    def _decode_tasks(self, payload: Any) -> list[Task]:
        if not isinstance(payload, list):
            raise self._invalid_payload("task list", payload)
        return [self._decode_task(item) for item in payload]

    async def list_todos(self, todo_filter: TodoFilter | None = None) -> list[Task]:
        params = to_query_params(todo_filter)
        payload = await self.http.get("/todos", params=params or None)
        return self._decode_tasks(payload)

    async def create_todo(self, data: CreateTodoInput) -> Task:
        payload = await self.http.post("/todos", data.to_payload())
        return self._decode_task(payload)

    async def update_todo(self, todo_id: str, patch: UpdateTodoInput) -> Task:
        payload = await self.http.put(self._item_path(todo_id), patch.to_payload())
        return self._decode_task(payload)

    async def toggle_completion(self, todo_id: str) -> Task:
        """
        Flip `completed` based on the server's current value.

        NOTE: read-then-write. Another client can change the task between the
        list and the update, and that change is overwritten. The race goes away
        once the server offers a toggle verb.
        """
        current = next((t for t in await self.list_todos() if t.id == todo_id), None)
        if current is None:
            raise NotFoundError("Todo item not found")
        logger.debug("toggle %s: server says completed=%s", todo_id, current.completed)
        return await self.update_todo(todo_id, UpdateTodoInput(completed=not current.completed))

    async def delete_todo(self, todo_id: str) -> None:
        await self.http.delete(self._item_path(todo_id))

    async def list_tags(self) -> list[str]:
        payload = await self.http.get("/todos/tags")
        if not isinstance(payload, list):
            raise self._invalid_payload("tag list", payload)
        return [str(tag) for tag in payload]

    async def list_archive(self) -> list[ArchiveGroup]:
        payload = await self.http.get("/todos/archive")
        if not isinstance(payload, list):
            raise self._invalid_payload("archive", payload)
        try:
            return [ArchiveGroup.from_api(group) for group in payload]
        except (KeyError, TypeError, ValueError) as exc:
            raise self._invalid_payload("archive group", payload) from exc
