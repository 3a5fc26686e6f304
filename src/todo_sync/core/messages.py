# src/todo_sync/core/messages.py

"""User-facing wording for errors recorded by the store."""

from __future__ import annotations

import re
from typing import Literal

from .errors import ApplicationError, NetworkError, NotFoundError, ValidationError

ErrorKind = Literal["network", "validation", "server", "not_found", "unknown"]
OperationContext = Literal["create", "update", "delete", "fetch", "toggle"]

# (pattern, message, action); first match wins, so specific entries go before generic ones.
_MAPPINGS: list[tuple[re.Pattern[str], str, str | None]] = [
    (
        re.compile(r"network error|unable to connect|failed to fetch|connection", re.I),
        "Unable to connect to the server. Please check your internet connection.",
        "Try again",
    ),
    (
        re.compile(r"timeout|timed out", re.I),
        "The request took too long to complete. Please try again.",
        "Retry",
    ),
    (
        re.compile(r"title.*required|title.*empty", re.I),
        "Please enter a title for your task.",
        None,
    ),
    (
        re.compile(r"title.*(too long|exceed|200)", re.I),
        "The title is too long. Please keep it under 200 characters.",
        None,
    ),
    (re.compile(r"invalid.*priority|priority.*must be", re.I), "Please select a valid priority level.", None),
    (
        re.compile(r"todo.*not found", re.I),
        "This task could not be found. It may have been deleted by another user.",
        "Refresh",
    ),
    (
        re.compile(r"not found|404", re.I),
        "The requested item could not be found. It may have been deleted.",
        "Refresh",
    ),
    (re.compile(r"unauthorized|401", re.I), "You are not authorized to perform this action.", None),
    (re.compile(r"forbidden|403", re.I), "You do not have permission to perform this action.", None),
    (
        re.compile(r"json|parse|syntax", re.I),
        "There was a problem processing the data. Please try again.",
        "Try again",
    ),
]

DEFAULT_MESSAGES: dict[str, str] = {
    "network": "Connection problem. Please check your internet and try again.",
    "validation": "Please check your input and try again.",
    "server": "Something went wrong. Please try again in a moment.",
    "not_found": "The requested item could not be found. It may have been deleted.",
    "unknown": "An unexpected error occurred. Please try again.",
}

_CONTEXT_MESSAGES: dict[str, str] = {
    "create": "Unable to create the task. Please try again.",
    "update": "Unable to update the task. Please try again.",
    "delete": "Unable to delete the task. Please try again.",
    "fetch": "Unable to load tasks. Please try again.",
    "toggle": "Unable to update task status. Please try again.",
}


def classify_error(err: BaseException) -> tuple[ErrorKind, bool]:
    """Return (kind, retryable) for an error recorded by the store."""
    if isinstance(err, NetworkError):
        return "network", True
    if isinstance(err, NotFoundError):
        return "not_found", False
    if isinstance(err, ValidationError):
        return "validation", False
    if isinstance(err, ApplicationError):
        if err.status in (400, 422):
            return "validation", False
        return "server", True
    return "unknown", True


def friendly_error_message(
    err: BaseException | str,
    kind: ErrorKind | None = None,
) -> tuple[str, str | None]:
    """Map a technical message to (user-friendly message, suggested action)."""
    text = err if isinstance(err, str) else str(err)
    for pattern, message, action in _MAPPINGS:
        if pattern.search(text):
            return message, action

    if kind is None and not isinstance(err, str):
        kind, _ = classify_error(err)
    if kind is not None and kind in DEFAULT_MESSAGES:
        return DEFAULT_MESSAGES[kind], (None if kind == "validation" else "Try again")

    return DEFAULT_MESSAGES["unknown"], "Try again"


def contextual_error_message(
    err: BaseException | str,
    context: OperationContext,
    kind: ErrorKind | None = None,
) -> tuple[str, str | None]:
    """Like friendly_error_message, but generic fallbacks name the operation that failed."""
    message, action = friendly_error_message(err, kind)
    if message in (DEFAULT_MESSAGES["unknown"], DEFAULT_MESSAGES["server"]):
        return _CONTEXT_MESSAGES[context], "Try again"
    return message, action
