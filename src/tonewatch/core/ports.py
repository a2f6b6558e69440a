"""Ports (interfaces) used by the core pipeline.

Ports define the minimal contracts for scoring, storage, and delivery
adapters so that the core can be reused with different backends.
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol, Sequence

from tonewatch.core.config import TenantConfig
from tonewatch.core.models import AlertContent, ScorePolarity


class ScorerPort(Protocol):
    """Black-box message scorer with a one-time warm-up."""

    polarity: ScorePolarity

    async def warm_up(self) -> None:
        ...

    def score(self, text: str) -> float:
        ...


class TenantConfigPort(Protocol):
    """Tenant configuration access required by the pipeline and the API."""

    def get(self, tenant_id: str) -> TenantConfig:
        ...

    def update(self, tenant_id: str, partial: Mapping[str, Any]) -> TenantConfig:
        ...


class ConversationPort(Protocol):
    """Conversation operations on the chat platform."""

    async def post_note(self, tenant_id: str, conversation_id: str, content: str) -> None:
        ...

    async def get_tags(self, tenant_id: str, conversation_id: str) -> list[str]:
        ...

    async def set_tags(
        self,
        tenant_id: str,
        conversation_id: str,
        tags: Sequence[str],
        as_objects: bool = False,
    ) -> None:
        ...


class NotifierPort(Protocol):
    """Team notification delivery."""

    async def send(self, target: str, content: AlertContent) -> None:
        ...
