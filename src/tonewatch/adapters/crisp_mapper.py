"""Crisp-webhook-to-core message mapping adapter.

This keeps Crisp payload details out of the core pipeline.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from tonewatch.core.models import InboundMessage

LOGGER = logging.getLogger(__name__)

MESSAGE_SEND_EVENT = "message:send"


def _optional_id(value: Any) -> Optional[str]:
    if isinstance(value, (str, int)) and not isinstance(value, bool) and str(value):
        return str(value)
    return None


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Crisp timestamps are epoch milliseconds; ISO strings are accepted too."""

    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return None


def _author_id(data: dict[str, Any]) -> Optional[str]:
    author = _optional_id(data.get("user_id"))
    if author:
        return author
    user = data.get("user")
    if isinstance(user, dict):
        return _optional_id(user.get("user_id"))
    return None


def build_message(payload: Any) -> Optional[InboundMessage]:
    """Build an InboundMessage from a webhook payload, or None to ignore it.

    Only user text messages are screened. Anything else is ignored silently;
    payloads that look like messages but lack ids are logged as warnings.
    """

    if not isinstance(payload, dict) or payload.get("event") != MESSAGE_SEND_EVENT:
        return None
    data = payload.get("data")
    if not isinstance(data, dict):
        LOGGER.warning("Discarding %s event without data", MESSAGE_SEND_EVENT)
        return None
    if data.get("from") != "user" or data.get("type") != "text":
        return None

    content = data.get("content")
    if not isinstance(content, str) or not content.strip():
        return None

    tenant_id = _optional_id(data.get("website_id")) or _optional_id(payload.get("website_id"))
    conversation_id = _optional_id(data.get("session_id"))
    if not tenant_id or not conversation_id:
        LOGGER.warning("Discarding message without website_id or session_id")
        return None

    return InboundMessage(
        tenant_id=tenant_id,
        conversation_id=conversation_id,
        text=content,
        author_id=_author_id(data),
        occurred_at=parse_timestamp(data.get("timestamp")),
    )
