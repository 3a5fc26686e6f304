# tests/test_http_client.py

from __future__ import annotations

import json

import httpx
import pytest

from todo_sync.core.errors import NETWORK_ERROR_MESSAGE, ApplicationError, NetworkError, NotFoundError
from todo_sync.transport.http_client import HttpClient

from .fakes import ExplodingReporter, RecordingReporter


def _client(handler, reporter=None) -> HttpClient:
    return HttpClient(
        "http://test/api",
        transport=httpx.MockTransport(handler),
        network_reporter=reporter,
    )


@pytest.mark.asyncio
async def test_success_returns_json_and_reports_success() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[{"id": "1"}])

    reporter = RecordingReporter()
    async with _client(handler, reporter) as http:
        data = await http.get("/todos", params=[("tags", "a"), ("tags", "b")])

    assert data == [{"id": "1"}]
    assert reporter.events == ["success"]
    assert seen[0].url.path == "/api/todos"
    assert seen[0].url.params.get_list("tags") == ["a", "b"]
    assert seen[0].headers["accept"] == "application/json"


@pytest.mark.asyncio
async def test_post_sends_json_body() -> None:
    bodies: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(201, json={"ok": True})

    async with _client(handler) as http:
        assert await http.post("/todos", {"title": "Buy milk"}) == {"ok": True}

    assert bodies == [{"title": "Buy milk"}]


@pytest.mark.asyncio
async def test_204_is_void_success() -> None:
    reporter = RecordingReporter()
    async with _client(lambda request: httpx.Response(204), reporter) as http:
        assert await http.delete("/todos/1") is None
    assert reporter.events == ["success"]


@pytest.mark.asyncio
async def test_5xx_is_a_network_error() -> None:
    reporter = RecordingReporter()
    async with _client(lambda request: httpx.Response(503, text="upstream down"), reporter) as http:
        with pytest.raises(NetworkError) as exc_info:
            await http.get("/todos")

    assert exc_info.value.status == 503
    assert exc_info.value.raw_text == "upstream down"
    assert str(exc_info.value) == NETWORK_ERROR_MESSAGE
    assert reporter.events == ["error"]


@pytest.mark.asyncio
async def test_connection_failure_is_a_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    reporter = RecordingReporter()
    async with _client(handler, reporter) as http:
        with pytest.raises(NetworkError) as exc_info:
            await http.get("/todos")

    assert str(exc_info.value) == NETWORK_ERROR_MESSAGE
    assert exc_info.value.status is None
    assert reporter.events == ["error"]


@pytest.mark.asyncio
async def test_unparsable_body_keeps_raw_text() -> None:
    reporter = RecordingReporter()
    async with _client(lambda request: httpx.Response(200, text="<html>oops</html>"), reporter) as http:
        with pytest.raises(NetworkError) as exc_info:
            await http.get("/todos")

    assert exc_info.value.raw_text == "<html>oops</html>"
    assert reporter.events == ["error"]


@pytest.mark.asyncio
async def test_4xx_becomes_application_error_with_details() -> None:
    body = {
        "error": "VALIDATION_ERROR",
        "message": "Title is required",
        "details": [{"field": "title", "message": "Required"}, "junk"],
    }
    reporter = RecordingReporter()
    async with _client(lambda request: httpx.Response(400, json=body), reporter) as http:
        with pytest.raises(ApplicationError) as exc_info:
            await http.post("/todos", {"title": ""})

    err = exc_info.value
    assert str(err) == "Title is required"
    assert err.status == 400
    assert err.code == "VALIDATION_ERROR"
    assert [(d.field, d.message) for d in err.details] == [("title", "Required")]
    # the server answered, so the link is healthy
    assert reporter.events == ["success"]


@pytest.mark.asyncio
async def test_404_is_not_found() -> None:
    body = {"error": "NOT_FOUND", "message": "Todo item not found"}
    async with _client(lambda request: httpx.Response(404, json=body)) as http:
        with pytest.raises(NotFoundError) as exc_info:
            await http.put("/todos/9", {"completed": True})

    assert exc_info.value.status == 404
    assert exc_info.value.code == "NOT_FOUND"


@pytest.mark.asyncio
async def test_4xx_without_message_falls_back_to_status_line() -> None:
    async with _client(lambda request: httpx.Response(409, json={})) as http:
        with pytest.raises(ApplicationError, match="Request failed: 409 Conflict"):
            await http.get("/todos")


@pytest.mark.asyncio
async def test_failing_reporter_does_not_change_outcome() -> None:
    async with _client(lambda request: httpx.Response(200, json=[]), ExplodingReporter()) as http:
        assert await http.get("/todos") == []
