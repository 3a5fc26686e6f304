# src/todo_sync/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, loads the first page of data, then runs:
- the console REPL in the foreground,
- the network probe as a background asyncio task (optional).
"""

from __future__ import annotations

import asyncio
import contextlib
import logging

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import setup_logging
from ..transport.network_monitor import run_network_probe

logger = logging.getLogger(__name__)


async def _shutdown(state, probe: asyncio.Task | None) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    if probe is not None:
        probe.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await probe

    try:
        await state.aclose()
    except Exception:
        logger.debug("HTTP client close failed.", exc_info=True)


async def run(settings=None) -> None:
    if settings is None:
        settings = get_settings()

    logger.info("Starting %s against %s...", settings.app_name, settings.api_base_url)
    state = create_initial_state(settings=settings)

    probe: asyncio.Task | None = None
    if settings.probe_enabled:
        probe = asyncio.create_task(
            run_network_probe(state.network, interval_seconds=settings.probe_interval_seconds),
            name="network-probe",
        )

    try:
        await state.store.load_all()
        await run_console_loop(state)
    finally:
        await _shutdown(state, probe)
        logger.info("Bye.")


def main() -> None:
    settings = get_settings()

    # choose console log level from settings.log_level
    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    log_file = setup_logging(log_dir=settings.data_dir, console_level=console_level)
    logger.debug("Full log: %s", log_file)

    try:
        asyncio.run(run(settings))
    except KeyboardInterrupt:
        logger.info("Interrupted, exiting.")


if __name__ == "__main__":
    main()
