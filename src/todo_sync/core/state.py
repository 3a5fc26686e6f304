# src/todo_sync/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..todos.todo_store import TodoStore
    from ..transport.http_client import HttpClient
    from ..transport.network_monitor import NetworkMonitor


@dataclass
class AppState:
    """
    Everything a connector needs, wired once in cli/bootstrap.py and passed explicitly.

    settings is typed loosely so tests can hand in a SimpleNamespace.
    """

    settings: Any
    http: HttpClient
    network: NetworkMonitor
    store: TodoStore

    async def aclose(self) -> None:
        await self.http.aclose()
        await self.network.aclose()
