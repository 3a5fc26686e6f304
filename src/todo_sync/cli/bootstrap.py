# src/todo_sync/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires transport -> gateway -> store and the network monitor into AppState.
"""

from __future__ import annotations

import logging

import httpx

from ..config import get_settings
from ..core.state import AppState
from ..todos.filter_storage import JsonFileStorage
from ..todos.todo_gateway import HttpTodoGateway
from ..todos.todo_store import TodoStore
from ..transport.http_client import HttpClient
from ..transport.network_monitor import NetworkMonitor

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.filter_storage_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None, transport: httpx.AsyncBaseTransport | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings (and the httpx transport) injectable makes the app easy to
    test and avoids hidden global config reads. If settings is None, falls back
    to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    network = NetworkMonitor(
        health_url=settings.health_url,
        transport=transport,
        slow_threshold_seconds=settings.slow_connection_seconds,
    )

    http = HttpClient(
        settings.api_base_url,
        transport=transport,
        network_reporter=network,
        timeout=settings.request_timeout_seconds,
    )

    store = TodoStore(
        HttpTodoGateway(http),
        storage=JsonFileStorage(settings.filter_storage_path),
    )

    logger.info("Wired store against %s (filters in %s)", settings.api_base_url, settings.filter_storage_path)
    return AppState(settings=settings, http=http, network=network, store=store)
