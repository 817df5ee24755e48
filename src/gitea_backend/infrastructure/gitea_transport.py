"""HTTP transport for the Gitea API — auth, cache control, retry and error translation."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from gitea_backend.domain.exceptions import (
    ApiError,
    NotFoundError,
    ResponseParseError,
    TransportError,
)

logger = logging.getLogger(__name__)

API_NAME = "Gitea"

_RETRYABLE_STATUS: frozenset[int] = frozenset({429, 500, 502, 503, 504})
# Writes are only replayed on 429: after a network error or 5xx the commit may
# already have been applied.
_IDEMPOTENT_METHODS: frozenset[str] = frozenset({"GET", "HEAD", "OPTIONS"})
_MAX_RETRY_AFTER = 60.0


class GiteaTransport:
    """Sends requests to a Gitea API root and decodes the responses.

    Every request carries the bearer token (when one is configured) and a
    ``Cache-Control: no-cache`` header unless the caller asks for ``cache=True``.
    429 responses are retried with exponential backoff for every method;
    network errors and 5xx responses only for reads.  Anything still failing
    surfaces as :class:`TransportError`.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_root: str,
        token: str | None = None,
        *,
        max_retries: int = 5,
        backoff: float = 0.5,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._client = client
        self._api_root = api_root.rstrip("/")
        self._max_retries = max_retries
        self._backoff = backoff
        self._sleep = sleep
        self._headers: dict[str, str] = {
            "Accept": "application/json",
            "User-Agent": "gitea-backend/1.0",
        }
        if token:
            self._headers["Authorization"] = f"Bearer {token}"

    # ── Public API ──────────────────────────────────────────────────────

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: Any = None,
        headers: dict[str, str] | None = None,
        cache: bool = False,
    ) -> httpx.Response:
        """Send a request, retrying transient failures; return a 2xx response."""
        url = f"{self._api_root}{endpoint}"
        request_headers = dict(self._headers)
        if not cache:
            request_headers["Cache-Control"] = "no-cache"
        if headers:
            request_headers.update(headers)

        idempotent = method.upper() in _IDEMPOTENT_METHODS
        attempt = 0
        while True:
            try:
                resp = await self._client.request(
                    method,
                    url,
                    params=params,
                    json=json_body,
                    headers=request_headers,
                )
            except httpx.TransportError as exc:
                if attempt >= self._max_retries or not idempotent:
                    raise TransportError(
                        f"{API_NAME}: network error for {method} {url}: {exc}"
                    ) from exc
                delay = self._delay(attempt, None)
                logger.warning(
                    "Network error on %s %s (%s) — retrying in %.2fs", method, url, exc, delay
                )
            else:
                if resp.is_success:
                    return resp
                if resp.status_code not in _RETRYABLE_STATUS:
                    raise self._error_for(resp, method, url)
                if attempt >= self._max_retries or (
                    resp.status_code != 429 and not idempotent
                ):
                    raise TransportError(
                        f"{API_NAME}: {method} {url} still failing after "
                        f"{attempt + 1} attempt(s): {_error_message(resp)}",
                        status=resp.status_code,
                        detail=_error_message(resp),
                    )
                delay = self._delay(attempt, resp.headers.get("retry-after"))
                logger.warning(
                    "HTTP %d on %s %s — retrying in %.2fs",
                    resp.status_code,
                    method,
                    url,
                    delay,
                )
            await self._sleep(delay)
            attempt += 1

    async def request_json(self, method: str, endpoint: str, **kwargs: Any) -> Any:
        """Send a request and parse the body as JSON."""
        resp = await self.request(method, endpoint, **kwargs)
        try:
            return resp.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise ResponseParseError(
                f"{API_NAME}: invalid JSON from {method} {endpoint}: {exc}",
                status=resp.status_code,
            ) from exc

    async def request_text(self, method: str, endpoint: str, **kwargs: Any) -> str:
        """Send a request and return the body as text."""
        resp = await self.request(method, endpoint, **kwargs)
        return resp.text

    async def request_bytes(self, method: str, endpoint: str, **kwargs: Any) -> bytes:
        """Send a request and return the raw body."""
        resp = await self.request(method, endpoint, **kwargs)
        return resp.content

    # ── Internals ───────────────────────────────────────────────────────

    def _delay(self, attempt: int, retry_after: str | None) -> float:
        if retry_after:
            try:
                return min(float(retry_after), _MAX_RETRY_AFTER)
            except ValueError:
                pass
        return self._backoff * (2**attempt)

    @staticmethod
    def _error_for(resp: httpx.Response, method: str, url: str) -> ApiError:
        message = _error_message(resp)
        if resp.status_code == 404:
            return NotFoundError(
                f"{API_NAME}: not found: {method} {url}: {message}", detail=message
            )
        return ApiError(
            f"{API_NAME} returned HTTP {resp.status_code} for {method} {url}: {message}",
            status=resp.status_code,
            detail=message,
        )


def _error_message(resp: httpx.Response) -> str:
    """Pull the human-readable message out of a Gitea error body."""
    try:
        data = resp.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return resp.text.strip() or resp.reason_phrase
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return resp.reason_phrase
