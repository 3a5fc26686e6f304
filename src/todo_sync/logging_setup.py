# src/todo_sync/logging_setup.py

"""
Logging for the console client.

The REPL shares stderr/stdout with the user, and it already prints its own
"[NET] ..." banners and per-command failure replies. So the console handler
only shows what the user cannot see otherwise; the file keeps everything.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FILE_NAME = "todo-sync.log"

# Minimum console level per logger-name prefix; the first matching prefix wins.
_CONSOLE_THRESHOLDS: tuple[tuple[str, int], ...] = (
    # state changes are announced by the console banner
    ("todo_sync.transport.network_monitor", logging.ERROR),
    # one line per failed request; the command reply already says it failed
    ("todo_sync.transport.", logging.WARNING),
    # rollbacks and failed loads are reported in the reply, storage problems are not
    ("todo_sync.todos.", logging.WARNING),
    ("todo_sync.", logging.DEBUG),
    ("httpx", logging.WARNING),
    ("httpcore", logging.WARNING),
)
_DEFAULT_CONSOLE_THRESHOLD = logging.ERROR  # py.warnings and any other library


def console_threshold(logger_name: str) -> int:
    for prefix, level in _CONSOLE_THRESHOLDS:
        if logger_name.startswith(prefix):
            return level
    return _DEFAULT_CONSOLE_THRESHOLD


class _ConsoleNoiseFilter(logging.Filter):
    """Drop records below console_threshold() for their logger."""

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= console_threshold(record.name)


def setup_logging(
    *,
    log_dir: str | Path = ".local/todo-sync",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Console handler on stderr (filtered, see _CONSOLE_THRESHOLDS) plus a full
    log file in `log_dir`. Replaces any handlers already on the root logger.

    Returns the log file path so the client can mention it.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(fmt)
    console.addFilter(_ConsoleNoiseFilter())
    root.addHandler(console)

    file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
    file_handler.setLevel(file_level)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    logging.captureWarnings(True)
    return log_file
