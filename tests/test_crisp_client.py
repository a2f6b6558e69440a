from __future__ import annotations

import asyncio
import base64
import json

import httpx
import pytest

from tonewatch.adapters.crisp_client import CrispConversationClient, segment_names
from tonewatch.core.errors import UpstreamError

API = "https://api.crisp.chat/v1"


def _client(handler) -> tuple[httpx.AsyncClient, CrispConversationClient]:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return http, CrispConversationClient(http, identifier="ident", key="secret", api_base=API)


def _run(http: httpx.AsyncClient, coro):
    async def scenario():
        try:
            return await coro
        finally:
            await http.aclose()

    return asyncio.run(scenario())


def test_segment_names_accepts_both_representations() -> None:
    assert segment_names(["vip", {"name": "billing"}, {"id": 1}, 5]) == ["vip", "billing"]
    assert segment_names(None) == []


def test_post_note_sends_operator_note_with_plugin_auth() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(201, json={"error": False})

    http, client = _client(handler)
    _run(http, client.post_note("site-1", "session_abc", "hello"))

    request = seen[0]
    assert request.method == "POST"
    assert str(request.url) == f"{API}/website/site-1/conversation/session_abc/message"
    expected = base64.b64encode(b"ident:secret").decode("ascii")
    assert request.headers["Authorization"] == f"Basic {expected}"
    assert request.headers["X-Crisp-Tier"] == "plugin"
    assert json.loads(request.content) == {
        "type": "note",
        "from": "operator",
        "origin": "chat",
        "content": "hello",
    }


def test_get_tags_reads_segments_from_meta() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "GET"
        assert request.url.path.endswith("/conversation/session_abc/meta")
        return httpx.Response(200, json={"data": {"segments": ["vip", {"name": "billing"}]}})

    http, client = _client(handler)
    assert _run(http, client.get_tags("site-1", "session_abc")) == ["vip", "billing"]


def test_set_tags_patches_strings_or_objects() -> None:
    bodies: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "PATCH"
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"error": False})

    http, client = _client(handler)

    async def both() -> None:
        await client.set_tags("site-1", "s", ["vip", "profanity-alert"])
        await client.set_tags("site-1", "s", ["vip"], as_objects=True)

    _run(http, both())
    assert bodies == [
        {"segments": ["vip", "profanity-alert"]},
        {"segments": [{"name": "vip"}]},
    ]


def test_error_status_raises_upstream_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, text="segments[0] should be string")

    http, client = _client(handler)
    with pytest.raises(UpstreamError) as excinfo:
        _run(http, client.set_tags("site-1", "s", ["x"], as_objects=True))
    assert excinfo.value.status == 400
    assert "should be string" in excinfo.value.body
