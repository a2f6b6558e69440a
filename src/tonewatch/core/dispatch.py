"""Alert dispatch (core domain).

A firing alert fans out to three independent side effects: the internal
note, the conversation tag, and the team notification. They run
concurrently and every failure stays local to its own operation.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Iterable

from tonewatch.core.config import TenantConfig, normalize_tag
from tonewatch.core.errors import UpstreamError
from tonewatch.core.models import AlertContent, InboundMessage
from tonewatch.core.ports import ConversationPort, NotifierPort

LOGGER = logging.getLogger(__name__)

NOTE_POSTED = "posted"
TAG_APPLIED = "applied"
TAG_APPLIED_AS_OBJECTS = "applied_as_objects"
TAG_ALREADY_PRESENT = "already_present"
NOTIFICATION_SENT = "sent"
NOTIFICATION_DISABLED = "disabled"
FAILED = "failed"

# Crisp answers with this message when it only accepts plain string segments;
# retrying with objects cannot help in that case.
STRINGS_REQUIRED_SIGNATURE = "should be string"


def normalize_tags(tags: Iterable[object]) -> list[str]:
    """Trim, lowercase, and dedupe tags while keeping their order."""

    normalized: list[str] = []
    for tag in tags:
        if not isinstance(tag, str):
            continue
        value = normalize_tag(tag)
        if value and value not in normalized:
            normalized.append(value)
    return normalized


def is_representation_rejection(error: UpstreamError) -> bool:
    """Return True when a segment write was rejected for its format."""

    if error.status not in (400, 422):
        return False
    return STRINGS_REQUIRED_SIGNATURE not in error.body


class TagApplier:
    """Idempotent tag write with a one-shot format fallback."""

    def __init__(self, conversations: ConversationPort) -> None:
        self._conversations = conversations

    async def apply(self, tenant_id: str, conversation_id: str, tag: str) -> str:
        normalized = normalize_tag(tag) if isinstance(tag, str) else ""
        if not normalized:
            raise ValueError("Tag must be a non-empty string")

        existing = normalize_tags(await self._conversations.get_tags(tenant_id, conversation_id))
        if normalized in existing:
            LOGGER.info("Tag %r already present on %s, skipping", normalized, conversation_id)
            return TAG_ALREADY_PRESENT

        merged = existing + [normalized]
        try:
            await self._conversations.set_tags(tenant_id, conversation_id, merged)
            return TAG_APPLIED
        except UpstreamError as error:
            if not is_representation_rejection(error):
                raise
            LOGGER.warning(
                "Segment write rejected for %s (%s), retrying with object segments",
                conversation_id,
                error.status,
            )

        await self._conversations.set_tags(tenant_id, conversation_id, merged, as_objects=True)
        return TAG_APPLIED_AS_OBJECTS


class DispatchCoordinator:
    """Runs the alert side effects concurrently and never raises."""

    def __init__(
        self,
        conversations: ConversationPort,
        notifier: NotifierPort,
        tag_applier: TagApplier | None = None,
    ) -> None:
        self._conversations = conversations
        self._notifier = notifier
        self._tags = tag_applier or TagApplier(conversations)

    async def _post_note(self, message: InboundMessage, content: AlertContent) -> str:
        await self._conversations.post_note(message.tenant_id, message.conversation_id, content.note)
        return NOTE_POSTED

    async def _notify(self, target: str, content: AlertContent) -> str:
        await self._notifier.send(target, content)
        return NOTIFICATION_SENT

    async def dispatch(
        self,
        message: InboundMessage,
        config: TenantConfig,
        content: AlertContent,
    ) -> dict[str, str]:
        """Issue every side effect, wait for all to settle, report outcomes."""

        operations: dict[str, Awaitable[str]] = {
            "note": self._post_note(message, content),
            "tag": self._tags.apply(message.tenant_id, message.conversation_id, config.alert_tag),
        }
        outcomes: dict[str, str] = {}
        if config.notification_enabled and config.notification_target:
            operations["notification"] = self._notify(config.notification_target, content)
        else:
            if config.notification_enabled:
                LOGGER.warning("Notifications enabled for %s without a target", message.tenant_id)
            outcomes["notification"] = NOTIFICATION_DISABLED

        results = await asyncio.gather(*operations.values(), return_exceptions=True)
        for name, result in zip(operations, results):
            if isinstance(result, BaseException):
                LOGGER.error(
                    "Alert %s failed for %s/%s: %s",
                    name,
                    message.tenant_id,
                    message.conversation_id,
                    result,
                    exc_info=result,
                )
                outcomes[name] = FAILED
            else:
                LOGGER.info(
                    "Alert %s %s for %s/%s",
                    name,
                    result,
                    message.tenant_id,
                    message.conversation_id,
                )
                outcomes[name] = result
        return outcomes
