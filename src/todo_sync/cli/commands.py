# src/todo_sync/cli/commands.py

from __future__ import annotations

import logging
import shlex
from collections.abc import Awaitable, Callable

from ..core.errors import ValidationError
from ..core.messages import OperationContext, contextual_error_message, friendly_error_message
from ..core.state import AppState
from ..todos.todo_models import CreateTodoInput, Priority, Task, UpdateTodoInput

CommandHandler = Callable[[AppState, list[str]], Awaitable[str]]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console connector (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(self, state: AppState, line: str) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        try:
            parts = shlex.split(line[1:])
        except ValueError:
            # Unbalanced quotes (e.g. "Don't forget"): take the words as typed.
            parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        logger.debug("Command /%s args=%s", name, args)
        try:
            return await handler(state, args)
        except ValidationError as e:
            return f"Invalid input: {e}"

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- formatting ----


def format_task(task: Task, index: int | None = None) -> str:
    mark = "x" if task.completed else " "
    prefix = f"{index:>2}. " if index is not None else ""
    flags = ""
    if task.is_pending:
        flags += " (saving)"
    if task.is_exiting:
        flags += " (deleting)"
    tags = f" #{' #'.join(task.tags)}" if task.tags else ""
    return f"{prefix}[{mark}] {task.title} <{task.priority.value}>{tags}  id={task.id}{flags}"


def _with_error(state: AppState, text: str, context: OperationContext = "fetch") -> str:
    err = state.store.state.error
    if not err:
        return text
    friendly, action = contextual_error_message(err, context, state.store.state.error_kind)
    hint = f" ({action}: /retry)" if action and state.store.state.error_retryable else ""
    return f"{text}\n! {friendly}{hint}"


def _resolve_id(state: AppState, raw: str) -> str:
    """Accept either a task id or its 1-based position in the current list."""
    todos = state.store.todos
    if raw.isdigit() and 1 <= int(raw) <= len(todos) and state.store.get(raw) is None:
        return todos[int(raw) - 1].id
    return raw


def _parse_fields(args: list[str]) -> tuple[list[str], dict[str, str]]:
    """Split `words... key=value ...` into free words and options."""
    words: list[str] = []
    opts: dict[str, str] = {}
    for arg in args:
        key, sep, value = arg.partition("=")
        if sep and key in {"priority", "tags", "memo", "title", "status", "search"}:
            opts[key] = value
        else:
            words.append(arg)
    return words, opts


def _split_tags(raw: str) -> tuple[str, ...]:
    return tuple(t for t in raw.replace(",", " ").split() if t)


def _priority(raw: str | None) -> Priority | None:
    if raw is None or raw == "":
        return None
    try:
        return Priority(raw.lower())
    except ValueError:
        raise ValidationError(f"Invalid priority: {raw}", field="priority") from None


# ---- handlers ----


async def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


async def cmd_list(state: AppState, args: list[str]) -> str:
    snapshot = state.store.state
    if snapshot.loading:
        return "Loading..."
    lines: list[str] = []
    labels = snapshot.active_filter_labels
    if labels:
        lines.append("Filters: " + " | ".join(labels))
    if not snapshot.todos:
        lines.append("No tasks.")
    for i, task in enumerate(snapshot.todos, start=1):
        lines.append(format_task(task, i))
    return _with_error(state, "\n".join(lines))


async def cmd_add(state: AppState, args: list[str]) -> str:
    """
    /add Buy milk priority=high tags=home,errands memo="2 litres"
    """
    words, opts = _parse_fields(args)
    data = CreateTodoInput(
        title=" ".join(words),
        priority=_priority(opts.get("priority")),
        tags=_split_tags(opts["tags"]) if "tags" in opts else None,
        memo=opts.get("memo"),
    )
    created = await state.store.create(data)
    if created is None:
        return _with_error(state, "Task was not created.", "create")
    return f"Created: {format_task(created)}"


async def cmd_edit(state: AppState, args: list[str]) -> str:
    """
    /edit <id|#> title="New title" priority=low tags=a,b memo=...
    """
    if not args:
        return "Usage: /edit <id|#> title=... priority=... tags=... memo=..."
    todo_id = _resolve_id(state, args[0])
    _, opts = _parse_fields(args[1:])
    patch = UpdateTodoInput(
        title=opts.get("title"),
        priority=_priority(opts.get("priority")),
        tags=_split_tags(opts["tags"]) if "tags" in opts else None,
        memo=opts.get("memo"),
    )
    updated = await state.store.update(todo_id, patch)
    if updated is None:
        return _with_error(state, "Task was not updated.", "update")
    return f"Updated: {format_task(updated)}"


async def cmd_done(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /done <id|#>"
    updated = await state.store.toggle_completion(_resolve_id(state, args[0]))
    if updated is None:
        return _with_error(state, "Task status was not changed.", "toggle")
    return f"{'Completed' if updated.completed else 'Reopened'}: {format_task(updated)}"


async def cmd_rm(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /rm <id|#>"
    todo_id = _resolve_id(state, args[0])
    if await state.store.delete(todo_id):
        return f"Deleted {todo_id}."
    return _with_error(state, "Task was not deleted.", "delete")


async def cmd_filter(state: AppState, args: list[str]) -> str:
    """
    /filter                      -> show the current filter
    /filter status=completed     -> change one dimension (others are kept)
    /filter tags=work,urgent search=milk priority=
    """
    if not args:
        labels = state.store.state.active_filter_labels
        return "Filters: " + (" | ".join(labels) if labels else "none")
    _, opts = _parse_fields(args)
    changes: dict[str, object] = {}
    if "status" in opts:
        changes["status"] = opts["status"].lower() or None
    if "priority" in opts:
        changes["priority"] = opts["priority"].lower() or None
    if "tags" in opts:
        changes["tags"] = _split_tags(opts["tags"])
    if "search" in opts:
        changes["search_text"] = opts["search"]
    if not changes:
        return "Usage: /filter status=all|pending|completed priority=high|medium|low tags=a,b search=text"
    await state.store.set_filter(**changes)
    return await cmd_list(state, [])


async def cmd_clear(state: AppState, args: list[str]) -> str:
    await state.store.clear_filter()
    return await cmd_list(state, [])


async def cmd_tags(state: AppState, args: list[str]) -> str:
    await state.store.load_tags()
    tags = state.store.state.available_tags
    return "Tags: " + (", ".join(tags) if tags else "(none)")


async def cmd_archive(state: AppState, args: list[str]) -> str:
    """
    /archive                        -> completed tasks grouped by day
    /archive priority=high tags=a   -> narrow locally (no extra request)
    /archive clear                  -> drop the archive filter
    """
    store = state.store
    if args and args[0].lower() == "clear":
        store.clear_archive_filter()
    elif args:
        _, opts = _parse_fields(args)
        changes: dict[str, object] = {}
        if "priority" in opts:
            changes["priority"] = opts["priority"].lower() or None
        if "tags" in opts:
            changes["tags"] = _split_tags(opts["tags"])
        if "search" in opts:
            changes["search_text"] = opts["search"]
        store.set_archive_filter(**changes)
    else:
        await store.refresh_archive()

    snapshot = store.state
    if snapshot.archive_error:
        friendly, _ = friendly_error_message(snapshot.archive_error)
        return f"Archive unavailable: {friendly}"

    groups = snapshot.filtered_archive
    lines = [f"Archive: {snapshot.archive_filtered_total} of {snapshot.archive_total} completed tasks"]
    for group in groups:
        lines.append(f"{group.date.isoformat()} ({group.count})")
        for task in group.tasks:
            lines.append(f"    {format_task(task)}")
    return "\n".join(lines)


async def cmd_refresh(state: AppState, args: list[str]) -> str:
    await state.store.refresh()
    return await cmd_list(state, [])


async def cmd_retry(state: AppState, args: list[str]) -> str:
    if not await state.store.retry_last_action():
        return "Nothing to retry."
    return await cmd_list(state, [])


async def cmd_status(state: AppState, args: list[str]) -> str:
    net = state.network.status()
    since = state.network.seconds_since_online()
    since_str = "never" if since is None else f"{since:.0f}s ago"
    snapshot = state.store.state
    return (
        "Status:\n"
        f"  API: {getattr(state.settings, 'api_base_url', '?')}\n"
        f"  Network: {net.state.value} (last online: {since_str})\n"
        f"  Tasks shown: {len(snapshot.todos)}  pending ops: {snapshot.pending_operations}\n"
        f"  Last error: {snapshot.error or '-'}"
    )


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("list", cmd_list, help_text="Show tasks for the current filter.", aliases=["ls"])
registry.register("add", cmd_add, help_text="Create a task: /add Title priority=high tags=a,b memo=...")
registry.register("edit", cmd_edit, help_text="Edit a task: /edit <id|#> title=... priority=... tags=... memo=...")
registry.register("done", cmd_done, help_text="Toggle completion: /done <id|#>.", aliases=["toggle"])
registry.register("rm", cmd_rm, help_text="Delete a task: /rm <id|#>.", aliases=["del"])
registry.register("filter", cmd_filter, help_text="Show or change the filter: /filter status=... tags=... search=...")
registry.register("clear", cmd_clear, help_text="Reset the filter to pending tasks.")
registry.register("tags", cmd_tags, help_text="List known tags.")
registry.register("archive", cmd_archive, help_text="Completed tasks by day: /archive [priority=..] [tags=..] | clear.")
registry.register("refresh", cmd_refresh, help_text="Reload tasks from the server.")
registry.register("retry", cmd_retry, help_text="Retry the last failed action.")
registry.register("status", cmd_status, help_text="Show connection and store status.")
