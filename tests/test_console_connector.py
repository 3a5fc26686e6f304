# tests/test_console_connector.py

from __future__ import annotations

import pytest

from todo_sync.connectors.console_connector import run_console_loop


def _scripted(lines: list[str]):
    remaining = list(lines)

    async def read_line(prompt: str) -> str:
        if not remaining:
            raise EOFError
        return remaining.pop(0)

    return read_line, remaining


@pytest.mark.asyncio
async def test_plain_text_adds_and_exit_stops(state, capsys) -> None:
    read_line, remaining = _scripted(["Buy bread", "", "/list", "/exit", "/add never"])

    await run_console_loop(state, read_line=read_line)

    out = capsys.readouterr().out
    assert "Created:" in out
    assert "Buy bread" in out
    assert remaining == ["/add never"]
    assert [t.title for t in state.store.todos] == ["Buy bread"]


@pytest.mark.asyncio
async def test_plain_text_with_apostrophe_is_added(state, capsys) -> None:
    read_line, _ = _scripted(["Don't forget milk", "/exit"])

    await run_console_loop(state, read_line=read_line)

    out = capsys.readouterr().out
    assert "Created:" in out
    assert "Could not parse" not in out
    assert [t.title for t in state.store.todos] == ["Don't forget milk"]


@pytest.mark.asyncio
async def test_eof_ends_loop_and_network_changes_are_announced(state, capsys) -> None:
    async def read_line(prompt: str) -> str:
        state.network.report_connection_error()
        raise EOFError

    await run_console_loop(state, read_line=read_line)

    assert "You are offline" in capsys.readouterr().out
    # the loop unsubscribed on the way out
    state.network.report_connection_success()
    assert "Back online" not in capsys.readouterr().out
