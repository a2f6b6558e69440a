"""Crisp REST API adapter.

Implements the core ConversationPort on top of a shared httpx client.
"""

from __future__ import annotations

import base64
import logging
from typing import Any, Sequence

import httpx

from tonewatch.core.errors import UpstreamError

LOGGER = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://api.crisp.chat/v1"


def segment_names(segments: Any) -> list[str]:
    """Read segment names from either representation Crisp has returned.

    Older responses carry plain strings, newer ones ``{"name": ...}`` objects.
    """

    if not isinstance(segments, list):
        return []
    names: list[str] = []
    for segment in segments:
        if isinstance(segment, str):
            names.append(segment)
        elif isinstance(segment, dict) and isinstance(segment.get("name"), str):
            names.append(segment["name"])
    return names


class CrispConversationClient:
    """Posts notes and manages segments on Crisp conversations."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        identifier: str,
        key: str,
        api_base: str = DEFAULT_API_BASE,
    ) -> None:
        self._http = http
        self._api_base = api_base.rstrip("/")
        token = base64.b64encode(f"{identifier}:{key}".encode("utf-8")).decode("ascii")
        self._headers = {
            "Authorization": f"Basic {token}",
            "X-Crisp-Tier": "plugin",
        }

    def _conversation_url(self, website_id: str, session_id: str, suffix: str) -> str:
        return f"{self._api_base}/website/{website_id}/conversation/{session_id}/{suffix}"

    async def _request(self, operation: str, method: str, url: str, **kwargs: Any) -> httpx.Response:
        response = await self._http.request(method, url, headers=self._headers, **kwargs)
        LOGGER.debug("Crisp %s %s -> %s", method, url, response.status_code)
        if response.is_error:
            raise UpstreamError(operation, response.status_code, response.text)
        return response

    async def post_note(self, tenant_id: str, conversation_id: str, content: str) -> None:
        payload = {
            "type": "note",
            "from": "operator",
            "origin": "chat",
            "content": content,
        }
        url = self._conversation_url(tenant_id, conversation_id, "message")
        await self._request("post note", "POST", url, json=payload)

    async def get_tags(self, tenant_id: str, conversation_id: str) -> list[str]:
        url = self._conversation_url(tenant_id, conversation_id, "meta")
        response = await self._request("read conversation meta", "GET", url)
        body = response.json()
        data = body.get("data") if isinstance(body, dict) else None
        if not isinstance(data, dict):
            return []
        return segment_names(data.get("segments"))

    async def set_tags(
        self,
        tenant_id: str,
        conversation_id: str,
        tags: Sequence[str],
        as_objects: bool = False,
    ) -> None:
        segments: list[Any] = [{"name": tag} for tag in tags] if as_objects else list(tags)
        url = self._conversation_url(tenant_id, conversation_id, "meta")
        await self._request("update segments", "PATCH", url, json={"segments": segments})
