# src/todo_sync/core/errors.py

"""
Error taxonomy shared by transport, gateway and store.

- ValidationError: detected locally before any request is sent.
- ApplicationError: the server received the request and rejected it (4xx).
- NotFoundError: 404 flavour of ApplicationError.
- NetworkError: the exchange could not be completed (connection failure, 5xx,
  or a body that is not the expected JSON).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

NETWORK_ERROR_MESSAGE = "Network error: Unable to connect to server"


@dataclass(frozen=True, slots=True)
class FieldError:
    field: str
    message: str

    @classmethod
    def from_dict(cls, raw: Any) -> FieldError | None:
        if not isinstance(raw, dict):
            return None
        return cls(field=str(raw.get("field", "")), message=str(raw.get("message", "")))


class TodoSyncError(RuntimeError):
    """Base class for everything this package raises on purpose."""


class ValidationError(TodoSyncError, ValueError):
    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class TransportError(TodoSyncError):
    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class ApplicationError(TransportError):
    def __init__(
        self,
        message: str,
        *,
        status: int,
        code: str | None = None,
        details: list[FieldError] | None = None,
    ) -> None:
        super().__init__(message, status=status)
        self.code = code
        self.details = list(details or [])


class NotFoundError(ApplicationError):
    def __init__(self, message: str = "Todo item not found", *, code: str | None = None) -> None:
        super().__init__(message, status=404, code=code)


class NetworkError(TransportError):
    def __init__(
        self,
        message: str = NETWORK_ERROR_MESSAGE,
        *,
        status: int | None = None,
        raw_text: str | None = None,
    ) -> None:
        super().__init__(message, status=status)
        self.raw_text = raw_text
