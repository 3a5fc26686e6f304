# tests/test_bootstrap.py

from __future__ import annotations

import httpx
import pytest

from todo_sync.cli.bootstrap import create_initial_state
from todo_sync.todos.todo_models import CreateTodoInput
from todo_sync.transport.network_monitor import NetworkState

from .fakes import task_json


@pytest.mark.asyncio
async def test_wired_state_talks_to_the_api(settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET" and request.url.path == "/api/todos":
            return httpx.Response(200, json=[])
        if request.method == "POST" and request.url.path == "/api/todos":
            return httpx.Response(201, json=task_json("1", "Wired"))
        if request.url.path == "/api/todos/tags":
            return httpx.Response(200, json=[])
        return httpx.Response(404, json={"error": "NOT_FOUND", "message": "Route not found"})

    state = create_initial_state(settings=settings, transport=httpx.MockTransport(handler))
    try:
        assert settings.data_dir.is_dir()
        assert await state.store.load() is True

        created = await state.store.create(CreateTodoInput(title="Wired"))
        assert created.id == "1"
        assert state.network.state is NetworkState.ONLINE

        # filters persist to the configured file
        await state.store.set_filter(priority="high")
        assert settings.filter_storage_path.exists()
    finally:
        await state.aclose()


@pytest.mark.asyncio
async def test_unreachable_server_marks_network_offline(settings) -> None:
    def refused(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    state = create_initial_state(settings=settings, transport=httpx.MockTransport(refused))
    try:
        assert await state.store.load() is False
        assert state.network.state is NetworkState.OFFLINE
        assert state.store.error == "Network error: Unable to connect to server"
    finally:
        await state.aclose()
