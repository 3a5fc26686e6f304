# src/todo_sync/todos/todo_store.py

from __future__ import annotations

"""
Task store.

Owns the canonical task list and runs every mutation as
optimistic apply -> remote call -> reconcile:

- the list reflects the user's intent immediately,
- success swaps in the server's version,
- failure puts the list back (pending_ops.rollback) and fills the single error slot.

Loads are tagged with a per-resource generation counter (todos / tags / archive);
a response that is not the latest of its kind is dropped.

Runs on one asyncio loop; only this class writes the list.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from ..core.errors import NETWORK_ERROR_MESSAGE, NetworkError, NotFoundError, TransportError, ValidationError
from ..core.messages import ErrorKind, classify_error
from ..core.ports import KeyValueStorage, TodoGateway
from .filter_storage import (
    ARCHIVE_FILTER_STORAGE_KEY,
    FILTER_STORAGE_KEY,
    forget_filter,
    load_filter,
    save_filter,
)
from .pending_ops import (
    PendingCreate,
    PendingDelete,
    PendingOperation,
    PendingUpdate,
    apply_optimistic,
    apply_patch,
    confirm,
    discard,
    is_placeholder_id,
    make_placeholder,
    new_op_id,
    rebase,
    rollback,
)
from .todo_filters import (
    DEFAULT_ARCHIVE_FILTER,
    DEFAULT_TODO_FILTER,
    describe_filter,
    filter_archive,
    has_active_filter,
    merge_filter,
)
from .todo_models import ArchiveGroup, CreateTodoInput, Task, TodoFilter, UpdateTodoInput
from .validation import validate_create, validate_update

logger = logging.getLogger(__name__)

RetryAction = Callable[[], Awaitable[Any]]


@dataclass(frozen=True, slots=True)
class TodoState:
    """Immutable snapshot handed to subscribers."""

    todos: tuple[Task, ...]
    filter: TodoFilter
    available_tags: tuple[str, ...]
    loading: bool
    is_refreshing: bool
    error: str | None
    error_kind: ErrorKind | None
    error_retryable: bool
    pending_operations: int

    archive_groups: tuple[ArchiveGroup, ...]
    archive_filter: TodoFilter
    archive_loading: bool
    archive_error: str | None

    @property
    def has_active_filter(self) -> bool:
        return has_active_filter(self.filter)

    @property
    def active_filter_labels(self) -> list[str]:
        return describe_filter(self.filter)

    @property
    def filtered_archive(self) -> list[ArchiveGroup]:
        return filter_archive(self.archive_groups, self.archive_filter)

    @property
    def archive_total(self) -> int:
        return sum(g.count for g in self.archive_groups)

    @property
    def archive_filtered_total(self) -> int:
        return sum(g.count for g in self.filtered_archive)


StateListener = Callable[[TodoState], None]


def error_message(err: BaseException) -> str:
    """What goes into the error slot: a generic line for network trouble, the server's words otherwise."""
    if isinstance(err, NetworkError):
        return NETWORK_ERROR_MESSAGE
    return str(err) or err.__class__.__name__


class TodoStore:
    def __init__(
        self,
        gateway: TodoGateway,
        *,
        storage: KeyValueStorage | None = None,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._gateway = gateway
        self._storage = storage
        self._now = now or (lambda: datetime.now(UTC))

        self._todos: list[Task] = []
        self._filter = load_filter(storage, FILTER_STORAGE_KEY, DEFAULT_TODO_FILTER)
        self._tags: list[str] = []
        self._loading = False
        self._is_refreshing = False

        self._error: str | None = None
        self._error_kind: ErrorKind | None = None
        self._error_retryable = False
        self._retry_action: RetryAction | None = None

        self._archive: list[ArchiveGroup] = []
        self._archive_filter = load_filter(storage, ARCHIVE_FILTER_STORAGE_KEY, DEFAULT_ARCHIVE_FILTER)
        self._archive_loading = False
        self._archive_error: str | None = None

        self._pending: dict[str, PendingOperation] = {}
        self._generations: dict[str, int] = {"todos": 0, "tags": 0, "archive": 0}
        self._loaded: dict[str, bool] = {"todos": False, "tags": False, "archive": False}
        self._listeners: list[StateListener] = []

    # ---- read side ----

    @property
    def state(self) -> TodoState:
        return TodoState(
            todos=tuple(self._todos),
            filter=self._filter,
            available_tags=tuple(self._tags),
            loading=self._loading,
            is_refreshing=self._is_refreshing,
            error=self._error,
            error_kind=self._error_kind,
            error_retryable=self._error_retryable,
            pending_operations=len(self._pending),
            archive_groups=tuple(self._archive),
            archive_filter=self._archive_filter,
            archive_loading=self._archive_loading,
            archive_error=self._archive_error,
        )

    @property
    def todos(self) -> tuple[Task, ...]:
        return tuple(self._todos)

    @property
    def filter(self) -> TodoFilter:
        return self._filter

    @property
    def error(self) -> str | None:
        return self._error

    def get(self, todo_id: str) -> Task | None:
        return next((t for t in self._todos if t.id == todo_id), None)

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self) -> None:
        snapshot = self.state
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Store listener crashed.")

    # ---- error slot ----

    def _set_error(self, err: BaseException, retry: RetryAction | None) -> None:
        self._error = error_message(err)
        self._error_kind, self._error_retryable = classify_error(err)
        self._retry_action = retry if self._error_retryable else None

    def _clear_error(self) -> None:
        self._error = None
        self._error_kind = None
        self._error_retryable = False
        self._retry_action = None

    def clear_error(self) -> None:
        self._clear_error()
        self._notify()

    # ---- generations ----

    def _next_generation(self, resource: str) -> int:
        self._generations[resource] += 1
        return self._generations[resource]

    def _is_stale(self, resource: str, generation: int) -> bool:
        if generation != self._generations[resource]:
            logger.debug("Dropping stale %s response (gen=%s, latest=%s)", resource, generation, self._generations[resource])
            return True
        return False

    # ---- loads ----

    async def load(self, todo_filter: TodoFilter | None = None) -> bool:
        """Fetch the list for `todo_filter` (default: current filter). Returns False on failure or when superseded."""
        if todo_filter is not None:
            self._filter = todo_filter
        requested = self._filter
        generation = self._next_generation("todos")

        if not self._loaded["todos"]:
            self._loading = True
        else:
            self._is_refreshing = True
        self._notify()

        try:
            todos = await self._gateway.list_todos(requested)
        except TransportError as err:
            if self._is_stale("todos", generation):
                return False
            self._loading = False
            self._is_refreshing = False
            self._set_error(err, self.refresh)
            logger.info("Loading todos failed: %s", err)
            self._notify()
            return False

        if self._is_stale("todos", generation):
            return False

        self._todos = rebase(todos, self._pending.values())
        self._loaded["todos"] = True
        self._loading = False
        self._is_refreshing = False
        self._clear_error()
        self._notify()
        return True

    async def load_tags(self) -> bool:
        """Known tags come from the server; a failure is logged and the old list kept."""
        generation = self._next_generation("tags")
        try:
            tags = await self._gateway.list_tags()
        except TransportError as err:
            if not self._is_stale("tags", generation):
                logger.warning("Failed to load tags: %s", err)
            return False

        if self._is_stale("tags", generation):
            return False
        self._tags = list(tags)
        self._loaded["tags"] = True
        self._notify()
        return True

    async def load_archive(self) -> bool:
        generation = self._next_generation("archive")
        if not self._loaded["archive"]:
            self._archive_loading = True
            self._notify()

        try:
            groups = await self._gateway.list_archive()
        except TransportError as err:
            if self._is_stale("archive", generation):
                return False
            self._archive_loading = False
            self._archive_error = error_message(err)
            logger.info("Loading archive failed: %s", err)
            self._notify()
            return False

        if self._is_stale("archive", generation):
            return False
        self._archive = list(groups)
        self._loaded["archive"] = True
        self._archive_loading = False
        self._archive_error = None
        self._notify()
        return True

    async def load_all(self) -> None:
        """Todos, tags and archive in parallel; each succeeds or fails on its own."""
        await asyncio.gather(self.load(), self.load_tags(), self.load_archive())

    async def refresh(self) -> bool:
        return await self.load(self._filter)

    async def refresh_archive(self) -> bool:
        return await self.load_archive()

    # ---- filters ----

    async def set_filter(self, **changes: Any) -> bool:
        """Merge `changes` into the current filter, persist it, and reload."""
        merged = merge_filter(self._filter, changes)
        self._filter = merged
        save_filter(self._storage, FILTER_STORAGE_KEY, merged)
        return await self.load(merged)

    async def clear_filter(self) -> bool:
        self._filter = DEFAULT_TODO_FILTER
        forget_filter(self._storage, FILTER_STORAGE_KEY)
        return await self.load(DEFAULT_TODO_FILTER)

    def set_archive_filter(self, **changes: Any) -> TodoFilter:
        """The archive is filtered locally, so no request is made."""
        self._archive_filter = merge_filter(self._archive_filter, changes)
        save_filter(self._storage, ARCHIVE_FILTER_STORAGE_KEY, self._archive_filter)
        self._notify()
        return self._archive_filter

    def clear_archive_filter(self) -> None:
        self._archive_filter = DEFAULT_ARCHIVE_FILTER
        forget_filter(self._storage, ARCHIVE_FILTER_STORAGE_KEY)
        self._notify()

    # ---- optimistic plumbing ----

    def _begin(self, op: PendingOperation) -> None:
        self._pending[op.op_id] = op
        self._todos = apply_optimistic(self._todos, op)
        self._notify()

    def _confirm(self, op: PendingOperation, server_task: Task | None = None) -> None:
        self._pending.pop(op.op_id, None)
        self._todos = confirm(self._todos, op, server_task)
        self._clear_error()
        self._notify()

    def _rollback(self, op: PendingOperation, err: TransportError, retry: RetryAction) -> None:
        self._pending.pop(op.op_id, None)
        self._todos = rollback(self._todos, op)
        self._set_error(err, retry)
        logger.info("Rolled back %s: %s", op.__class__.__name__, err)
        self._notify()

    def _require(self, todo_id: str) -> Task:
        task = self.get(todo_id)
        if task is None:
            raise ValidationError(f"Unknown task: {todo_id}", field="id")
        if is_placeholder_id(task.id):
            raise ValidationError("Task is still being saved", field="id")
        return task

    # ---- mutations ----

    async def create(self, data: CreateTodoInput) -> Task | None:
        """
        Prepend a pending placeholder, then swap in the server's task.

        Raises ValidationError before touching anything; transport failures
        are recorded in the error slot and reported as None.
        """
        data = validate_create(data)
        op_id = new_op_id()
        op = PendingCreate(op_id=op_id, placeholder=make_placeholder(data, op_id, self._now()))
        self._begin(op)

        try:
            created = await self._gateway.create_todo(data)
        except TransportError as err:
            self._rollback(op, err, lambda: self.create(data))
            return None

        self._confirm(op, created)
        await self.load_tags()
        return created

    async def update(self, todo_id: str, patch: UpdateTodoInput) -> Task | None:
        patch = validate_update(patch)
        current = self._require(todo_id)
        op = PendingUpdate(
            op_id=new_op_id(),
            snapshot=current,
            optimistic=apply_patch(current, patch, self._now()),
        )
        self._begin(op)

        try:
            updated = await self._gateway.update_todo(todo_id, patch)
        except TransportError as err:
            self._rollback(op, err, lambda: self.update(todo_id, patch))
            return None

        self._confirm(op, updated)
        await self.load_tags()
        return updated

    async def toggle_completion(self, todo_id: str) -> Task | None:
        current = self._require(todo_id)
        op = PendingUpdate(
            op_id=new_op_id(),
            snapshot=current,
            optimistic=apply_patch(current, UpdateTodoInput(completed=not current.completed), self._now()),
        )
        self._begin(op)

        try:
            updated = await self._gateway.toggle_completion(todo_id)
        except NotFoundError as err:
            # Gone on the server already: reconcile by dropping it here too.
            self._pending.pop(op.op_id, None)
            self._todos = discard(self._todos, todo_id)
            self._set_error(err, None)
            logger.info("Task %s no longer exists on the server; removed locally", todo_id)
            self._notify()
            return None
        except TransportError as err:
            self._rollback(op, err, lambda: self.toggle_completion(todo_id))
            return None

        self._confirm(op, updated)
        return updated

    async def delete(self, todo_id: str) -> bool:
        current = self._require(todo_id)
        op = PendingDelete(op_id=new_op_id(), snapshot=current)
        self._begin(op)

        try:
            await self._gateway.delete_todo(todo_id)
        except TransportError as err:
            self._rollback(op, err, lambda: self.delete(todo_id))
            return False

        self._confirm(op)
        return True

    # ---- retry ----

    async def retry_last_action(self) -> bool:
        """Re-run the last failed retryable operation. Returns False when there is nothing to retry."""
        action = self._retry_action
        if action is None:
            return False
        self._retry_action = None
        await action()
        return True
