"""Tests for ApiClient error mapping."""

import asyncio
import json

import httpx
import pytest

from skyfolio.core.auth import StaticCredentials
from skyfolio.core.errors import AuthError, NetworkError, ServerError
from skyfolio.core.transport import ApiClient


def _client(handler, token="tok") -> ApiClient:
    transport = httpx.MockTransport(handler)
    return ApiClient(
        "http://api.example/api/",
        StaticCredentials(token),
        httpx.AsyncClient(transport=transport),
    )


def test_bearer_header_and_json_body():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers.get("authorization")
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(201, json={"location_id": 5})

    api = _client(handler)
    body = asyncio.run(api.post("/locations", json={"name": "Backyard"}))

    assert body == {"location_id": 5}
    assert seen["auth"] == "Bearer tok"
    assert seen["url"] == "http://api.example/api/locations"
    assert seen["body"] == {"name": "Backyard"}


def test_empty_params_dropped():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["query"] = dict(request.url.params)
        return httpx.Response(200, json=[])

    api = _client(handler)
    asyncio.run(api.get("/sessions", params={"location_id": 7, "other": None, "blank": ""}))

    assert seen["query"] == {"location_id": "7"}


def test_no_token_sends_nothing():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={})

    api = _client(handler, token=None)

    with pytest.raises(AuthError, match="Please sign in again."):
        asyncio.run(api.get("/locations"))
    assert calls == []


def test_unauthenticated_request_skips_token():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers.get("authorization")
        return httpx.Response(200, json=[{"name": "Jupiter"}])

    api = _client(handler, token=None)
    body = asyncio.run(api.get("/celestial-objects/planet", authenticated=False))

    assert body == [{"name": "Jupiter"}]
    assert seen["auth"] is None


def test_401_is_auth_error():
    api = _client(lambda request: httpx.Response(401, json={"error": "Token expired"}))

    with pytest.raises(AuthError):
        asyncio.run(api.get("/gear"))


def test_server_error_message_passed_through():
    api = _client(lambda request: httpx.Response(400, json={"error": "Name already exists"}))

    with pytest.raises(ServerError) as exc_info:
        asyncio.run(api.post("/locations", json={}))

    assert exc_info.value.message == "Name already exists"
    assert exc_info.value.status_code == 400


def test_server_error_generic_message_for_non_json():
    api = _client(lambda request: httpx.Response(502, text="<html>Bad Gateway</html>"))

    with pytest.raises(ServerError, match="Request failed with status 502"):
        asyncio.run(api.get("/gear"))


def test_transport_failure_is_network_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    api = _client(handler)

    with pytest.raises(NetworkError):
        asyncio.run(api.get("/locations"))


def test_empty_body_returns_none():
    api = _client(lambda request: httpx.Response(204))

    assert asyncio.run(api.delete("/gear/3")) is None
