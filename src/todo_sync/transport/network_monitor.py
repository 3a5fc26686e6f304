# src/todo_sync/transport/network_monitor.py

from __future__ import annotations

"""
Network health monitor.

A small state machine (online / degraded / offline) fed by two sources:
- advisory signals from the HTTP client after each exchange,
- an independent probe (HEAD on the health endpoint, timed).

Read-only for everybody else: it never retries or blocks a request.
"""

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

import httpx

logger = logging.getLogger(__name__)


class NetworkState(StrEnum):
    ONLINE = "online"
    DEGRADED = "degraded"
    OFFLINE = "offline"


@dataclass(frozen=True, slots=True)
class NetworkStatus:
    state: NetworkState
    last_online_at: float | None
    last_latency_seconds: float | None = None

    @property
    def is_online(self) -> bool:
        return self.state is not NetworkState.OFFLINE

    @property
    def is_slow_connection(self) -> bool:
        return self.state is NetworkState.DEGRADED


NetworkListener = Callable[[NetworkStatus], None]


class NetworkMonitor:
    def __init__(
        self,
        *,
        health_url: str | None = None,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        slow_threshold_seconds: float = 3.0,
        clock: Callable[[], float] = time.monotonic,
        online: bool = True,
    ) -> None:
        self.health_url = health_url
        self.slow_threshold_seconds = float(slow_threshold_seconds)
        self._clock = clock
        self._client = client
        self._transport = transport
        self._owns_client = False

        self._state = NetworkState.ONLINE if online else NetworkState.OFFLINE
        self._last_online_at: float | None = clock() if online else None
        self._last_latency: float | None = None
        self._listeners: list[NetworkListener] = []

    # ---- read side ----

    @property
    def state(self) -> NetworkState:
        return self._state

    def status(self) -> NetworkStatus:
        return NetworkStatus(
            state=self._state,
            last_online_at=self._last_online_at,
            last_latency_seconds=self._last_latency,
        )

    def seconds_since_online(self) -> float | None:
        """0 while online/degraded, None if we have never been online this session."""
        if self._state is not NetworkState.OFFLINE:
            return 0.0
        if self._last_online_at is None:
            return None
        return max(0.0, self._clock() - self._last_online_at)

    def subscribe(self, listener: NetworkListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # ---- signals from the transport ----

    def report_connection_success(self) -> None:
        self._last_online_at = self._clock()
        if self._state is not NetworkState.ONLINE:
            self._transition(NetworkState.ONLINE, "request succeeded")

    def report_connection_error(self) -> None:
        if self._state is not NetworkState.OFFLINE:
            self._transition(NetworkState.OFFLINE, "request failed")

    # ---- probe ----

    def record_latency(self, seconds: float) -> None:
        """A probe reached the server in `seconds`: online, or degraded when too slow."""
        self._last_latency = seconds
        self._last_online_at = self._clock()
        target = NetworkState.DEGRADED if seconds > self.slow_threshold_seconds else NetworkState.ONLINE
        if target is not self._state:
            self._transition(target, f"probe latency {seconds:.2f}s")

    async def check_connection(self) -> bool:
        """Probe the health endpoint once. Never raises."""
        if not self.health_url:
            return self._state is not NetworkState.OFFLINE

        client = self._get_client()
        t0 = time.monotonic()
        try:
            response = await client.head(self.health_url, headers={"Cache-Control": "no-cache"})
        except httpx.HTTPError as exc:
            logger.debug("Health probe failed: %s", exc.__class__.__name__)
            if self._state is not NetworkState.OFFLINE:
                self._transition(NetworkState.OFFLINE, "probe failed")
            return False

        elapsed = time.monotonic() - t0
        if not response.is_success:
            logger.debug("Health probe returned %s", response.status_code)
            if self._state is not NetworkState.OFFLINE:
                self._transition(NetworkState.OFFLINE, f"probe status {response.status_code}")
            return False

        self.record_latency(elapsed)
        return True

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
            self._owns_client = False

    # ---- internals ----

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                transport=self._transport,
                timeout=max(self.slow_threshold_seconds * 3, 5.0),
            )
            self._owns_client = True
        return self._client

    def _transition(self, new_state: NetworkState, reason: str) -> None:
        old = self._state
        self._state = new_state
        if new_state is NetworkState.OFFLINE:
            logger.warning("Network: %s -> %s (%s)", old, new_state, reason)
        else:
            logger.info("Network: %s -> %s (%s)", old, new_state, reason)
        self._notify()

    def _notify(self) -> None:
        snapshot = self.status()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Network listener crashed.")


async def run_network_probe(
        monitor: NetworkMonitor,
        *,
        interval_seconds: float = 30.0,
) -> None:
    """
    Periodic connectivity probe.

    Every interval_seconds: HEAD the health endpoint and let the monitor
    update its state. To stop the probe, cancel the coroutine/task.
    """
    sleep_s = max(0.01, float(interval_seconds))

    while True:
        try:
            await monitor.check_connection()
        except Exception:
            logger.exception("Network probe iteration failed")

        await asyncio.sleep(sleep_s)
