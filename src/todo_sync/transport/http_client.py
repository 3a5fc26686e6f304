# src/todo_sync/transport/http_client.py

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..core.errors import (
    NETWORK_ERROR_MESSAGE,
    ApplicationError,
    FieldError,
    NetworkError,
    NotFoundError,
)
from ..core.ports import NetworkReporter

logger = logging.getLogger(__name__)

QueryParams = list[tuple[str, str]]


class HttpClient:
    """
    One request/response exchange against the JSON API, normalized into:

    - the decoded JSON payload (None for 204),
    - ApplicationError / NotFoundError for 4xx,
    - NetworkError for connection failures, 5xx, and bodies that are not JSON.

    Every finished exchange is reported to the NetworkReporter (success for
    payloads and ApplicationErrors, error for NetworkErrors). The report is
    advisory: a failing reporter never changes the outcome.

    No retries here; the caller owns retry policy.
    """

    def __init__(
        self,
        base_url: str = "/api",
        *,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        network_reporter: NetworkReporter | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.default_headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            **(headers or {}),
        }
        self.network_reporter = network_reporter
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(transport=transport, timeout=timeout)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> HttpClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # ---- reporting ----

    def _report(self, ok: bool) -> None:
        reporter = self.network_reporter
        if reporter is None:
            return
        try:
            if ok:
                reporter.report_connection_success()
            else:
                reporter.report_connection_error()
        except Exception:
            logger.debug("Network reporter failed (ok=%s).", ok, exc_info=True)

    def network_error(self, message: str, *, status: int | None = None, raw_text: str | None = None) -> NetworkError:
        """
        Build a NetworkError and report the exchange as a connection error.

        The gateway also calls this when it rejects the shape of a 2xx payload, so
        the last report for any NetworkError is always an error.
        """
        self._report(False)
        return NetworkError(message, status=status, raw_text=raw_text)

    # ---- public API ----

    async def execute(
        self,
        endpoint: str,
        method: str = "GET",
        body: Any = None,
        params: QueryParams | None = None,
    ) -> Any:
        url = f"{self.base_url}{endpoint}"

        try:
            response = await self._client.request(
                method,
                url,
                json=body,
                params=params or None,
                headers=self.default_headers,
            )
        except httpx.HTTPError as exc:
            logger.info("HTTP %s %s failed: %s", method, url, exc.__class__.__name__)
            raise self.network_error(NETWORK_ERROR_MESSAGE) from exc

        status = response.status_code
        logger.debug("HTTP %s %s -> %s", method, url, status)

        if status >= 500:
            raise self.network_error(
                NETWORK_ERROR_MESSAGE,
                status=status,
                raw_text=response.text,
            )

        if status == 204:
            self._report(True)
            return None

        try:
            data = response.json()
        except ValueError:
            text = response.text
            logger.info("HTTP %s %s returned a non-JSON body (status=%s)", method, url, status)
            raise self.network_error(
                text or f"Server returned {status} {response.reason_phrase}",
                status=status,
                raw_text=text,
            ) from None

        # The server answered; the link itself is fine even if the request was rejected.
        self._report(True)

        if status >= 400:
            raise self._application_error(response, data)

        return data

    @staticmethod
    def _application_error(response: httpx.Response, data: Any) -> ApplicationError:
        status = response.status_code
        payload = data if isinstance(data, dict) else {}
        message = str(payload.get("message") or f"Request failed: {status} {response.reason_phrase}")
        code = payload.get("error")
        code = str(code) if code else None

        if status == 404:
            return NotFoundError(message, code=code)

        details: list[FieldError] = []
        for raw in payload.get("details") or []:
            detail = FieldError.from_dict(raw)
            if detail is not None:
                details.append(detail)
        return ApplicationError(message, status=status, code=code, details=details)

    async def get(self, endpoint: str, params: QueryParams | None = None) -> Any:
        return await self.execute(endpoint, "GET", params=params)

    async def post(self, endpoint: str, body: Any = None) -> Any:
        return await self.execute(endpoint, "POST", body=body)

    async def put(self, endpoint: str, body: Any = None) -> Any:
        return await self.execute(endpoint, "PUT", body=body)

    async def delete(self, endpoint: str) -> Any:
        return await self.execute(endpoint, "DELETE")
