# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import httpx
import pytest

from todo_sync.core.state import AppState
from todo_sync.todos.todo_store import TodoStore
from todo_sync.transport.http_client import HttpClient
from todo_sync.transport.network_monitor import NetworkMonitor

from .fakes import FIXED_NOW, FakeGateway, InMemoryStorage


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and bootstrap.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the developer's environment and .env.
    """
    return SimpleNamespace(
        app_name="todo-sync-test",
        log_level="DEBUG",
        api_base_url="http://test/api",
        health_url="http://test/health",
        request_timeout_seconds=None,
        slow_connection_seconds=3.0,
        probe_enabled=False,
        probe_interval_seconds=30.0,
        data_dir=tmp_path / "data",
        filter_storage_path=tmp_path / "data" / "filters.json",
    )


@pytest.fixture()
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture()
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture()
def store(gateway: FakeGateway, storage: InMemoryStorage) -> TodoStore:
    return TodoStore(gateway, storage=storage, now=lambda: FIXED_NOW)


@pytest.fixture()
def state(settings: SimpleNamespace, store: TodoStore) -> AppState:
    """
    AppState wired with the in-memory gateway.

    NOTE: the HttpClient is real but never reached by the store here; commands
    only talk to the store and the network monitor.
    """
    http = HttpClient(
        settings.api_base_url,
        transport=httpx.MockTransport(lambda request: httpx.Response(404)),
    )
    return AppState(settings=settings, http=http, network=NetworkMonitor(), store=store)
