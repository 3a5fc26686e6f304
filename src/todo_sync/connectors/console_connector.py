# src/todo_sync/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState
from ..transport.network_monitor import NetworkState, NetworkStatus

logger = logging.getLogger(__name__)

ReadLine = Callable[[str], Awaitable[str]]


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


async def _read_stdin(prompt: str) -> str:
    # input() blocks; keep the event loop free for the probe and in-flight requests.
    return await asyncio.to_thread(input, prompt)


def _network_banner(status: NetworkStatus) -> str:
    if status.state is NetworkState.OFFLINE:
        return "[NET] You are offline. Changes will fail until the connection is back."
    if status.state is NetworkState.DEGRADED:
        return "[NET] Slow connection detected."
    return "[NET] Back online."


async def run_console_loop(state: AppState, *, read_line: ReadLine = _read_stdin) -> None:
    logger.info("Console connector started.")
    _print_ts("[CONSOLE] Type /help for commands. Plain text adds a task. Use /exit to quit.\n")

    unsubscribe = state.network.subscribe(lambda status: _print_ts(_network_banner(status)))

    try:
        while True:
            try:
                user_input = (await read_line(">>> ")).strip()
            except EOFError:
                logger.info("Console EOF received, exiting.")
                break
            except KeyboardInterrupt:
                logger.info("Console KeyboardInterrupt, exiting.")
                print()
                break

            if not user_input:
                continue

            if user_input.lower() in ("/exit", "/quit"):
                logger.info("Console exit command received.")
                break

            # Plain text is shorthand for /add.
            line = user_input if user_input.startswith("/") else f"/add {user_input}"

            try:
                reply = await command_registry.handle(state, line)
            except Exception:
                logger.exception("Command handler crashed.")
                reply = "Internal error while handling a command."

            if reply is not None:
                _print_ts(reply)
    finally:
        unsubscribe()
        logger.info("Console connector finished.")
