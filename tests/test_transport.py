"""Tests for the Gitea HTTP transport — headers, retries and error translation."""

import httpx
import pytest

from gitea_backend.domain.exceptions import (
    ApiError,
    NotFoundError,
    ResponseParseError,
    TransportError,
)
from gitea_backend.infrastructure.gitea_transport import GiteaTransport

API_ROOT = "https://git.example.com/api/v1"


def _transport(handler, token: str | None = "s3cret", **kwargs):
    sleeps: list[float] = []

    async def _sleep(delay: float) -> None:
        sleeps.append(delay)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    transport = GiteaTransport(client, API_ROOT, token, sleep=_sleep, **kwargs)
    return transport, sleeps


# ── Request building ────────────────────────────────────────────────


class TestRequestBuilding:
    async def test_prefixes_api_root_and_sends_auth(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"ok": True})

        transport, _ = _transport(handler)
        await transport.request_json("GET", "/user")

        assert str(seen[0].url) == f"{API_ROOT}/user"
        assert seen[0].headers["Authorization"] == "Bearer s3cret"

    async def test_no_auth_header_without_token(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={})

        transport, _ = _transport(handler, token=None)
        await transport.request_json("GET", "/user")

        assert "Authorization" not in seen[0].headers

    async def test_disables_caching_by_default(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={})

        transport, _ = _transport(handler)
        await transport.request_json("GET", "/user")
        await transport.request_json("GET", "/user", cache=True)

        assert seen[0].headers["Cache-Control"] == "no-cache"
        assert "Cache-Control" not in seen[1].headers


# ── Decoding ────────────────────────────────────────────────────────


class TestDecoding:
    async def test_text_and_bytes(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content="héllo".encode())

        transport, _ = _transport(handler)

        assert await transport.request_text("GET", "/raw") == "héllo"
        assert await transport.request_bytes("GET", "/raw") == "héllo".encode()

    async def test_invalid_json_after_success_is_parse_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"<html>not json</html>")

        transport, _ = _transport(handler)

        with pytest.raises(ResponseParseError):
            await transport.request_json("GET", "/user")


# ── Errors ──────────────────────────────────────────────────────────


class TestErrors:
    async def test_404_is_not_found(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"message": "GetContentsOrList", "url": "x"})

        transport, _ = _transport(handler)

        with pytest.raises(NotFoundError) as exc_info:
            await transport.request_json("GET", "/repos/a/b/contents/x.md")

        assert exc_info.value.status == 404
        assert exc_info.value.detail == "GetContentsOrList"

    async def test_client_error_carries_status_and_message(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(422, json={"message": "sha does not match"})

        transport, sleeps = _transport(handler)

        with pytest.raises(ApiError) as exc_info:
            await transport.request_json("PUT", "/repos/a/b/contents/x.md", json_body={})

        assert exc_info.value.status == 422
        assert exc_info.value.detail == "sha does not match"
        assert sleeps == []

    async def test_plain_text_error_body(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, content=b"bad request body")

        transport, _ = _transport(handler)

        with pytest.raises(ApiError, match="bad request body"):
            await transport.request_json("GET", "/x")


# ── Retries ─────────────────────────────────────────────────────────


class TestRetries:
    async def test_server_error_on_read_is_retried(self):
        responses = [httpx.Response(503), httpx.Response(502), httpx.Response(200, json={"id": 1})]

        def handler(request: httpx.Request) -> httpx.Response:
            return responses.pop(0)

        transport, sleeps = _transport(handler, backoff=0.5)

        assert await transport.request_json("GET", "/user") == {"id": 1}
        assert sleeps == [0.5, 1.0]

    async def test_retry_after_header_is_honoured(self):
        responses = [
            httpx.Response(429, headers={"Retry-After": "3"}),
            httpx.Response(200, json={}),
        ]

        def handler(request: httpx.Request) -> httpx.Response:
            return responses.pop(0)

        transport, sleeps = _transport(handler)
        await transport.request_json("GET", "/user")

        assert sleeps == [3.0]

    async def test_exhausted_retries_raise_transport_error(self):
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(500, json={"message": "internal"})

        transport, _ = _transport(handler, max_retries=2)

        with pytest.raises(TransportError) as exc_info:
            await transport.request_json("GET", "/user")

        assert calls == 3
        assert exc_info.value.status == 500

    async def test_network_error_on_read_is_retried(self):
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            if calls == 1:
                raise httpx.ConnectError("refused", request=request)
            return httpx.Response(200, json={"ok": True})

        transport, _ = _transport(handler)

        assert await transport.request_json("GET", "/user") == {"ok": True}
        assert calls == 2

    async def test_server_error_on_write_is_not_replayed(self):
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(503)

        transport, _ = _transport(handler)

        with pytest.raises(TransportError):
            await transport.request_json("POST", "/repos/a/b/contents", json_body={})

        assert calls == 1

    async def test_network_error_on_write_is_not_replayed(self):
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            raise httpx.ReadTimeout("slow", request=request)

        transport, _ = _transport(handler)

        with pytest.raises(TransportError):
            await transport.request_json("PUT", "/repos/a/b/contents/x.md", json_body={})

        assert calls == 1

    async def test_rate_limited_write_is_retried(self):
        responses = [httpx.Response(429), httpx.Response(201, json={"commit": {"sha": "c1"}})]

        def handler(request: httpx.Request) -> httpx.Response:
            return responses.pop(0)

        transport, _ = _transport(handler)

        data = await transport.request_json("POST", "/repos/a/b/contents", json_body={})
        assert data["commit"]["sha"] == "c1"
