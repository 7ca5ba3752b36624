"""Unit tests for the BlueCitrus provider client."""

import asyncio
import json

import httpx
import pytest

from online.backend.core.errors import ProviderError
from online.backend.engine.models import ProviderRequest
from online.backend.interaction.provider_client import ProviderClient

BASE_URL = "https://api.bluecitrus.test"
REQUEST = ProviderRequest(endpoint="/like-terms", payload={"input_text": "cable", "num_results": 100})


async def _headers() -> dict:
    return {"Authorization": "Bearer tok", "Content-Type": "application/json"}


def _client(handler) -> ProviderClient:
    return ProviderClient(BASE_URL, _headers, transport=httpx.MockTransport(handler))


def test_post_sends_payload_with_auth_headers() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[{"search_term": "usb cable"}])

    data = asyncio.run(_client(handler).post(REQUEST))

    assert data == [{"search_term": "usb cable"}]
    assert str(seen[0].url) == f"{BASE_URL}/like-terms"
    assert seen[0].method == "POST"
    assert seen[0].headers["Authorization"] == "Bearer tok"
    assert json.loads(seen[0].content) == REQUEST.payload


def test_non_success_status_raises_with_status_and_body() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429, text="rate limited")

    with pytest.raises(ProviderError) as excinfo:
        asyncio.run(_client(handler).post(REQUEST))

    assert excinfo.value.status == 429
    assert "429" in excinfo.value.message
    assert "rate limited" in excinfo.value.message


def test_transport_failure_raises_provider_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    with pytest.raises(ProviderError, match="/like-terms"):
        asyncio.run(_client(handler).post(REQUEST))


def test_invalid_json_raises_provider_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>maintenance</html>")

    with pytest.raises(ProviderError, match="invalid JSON"):
        asyncio.run(_client(handler).post(REQUEST))
