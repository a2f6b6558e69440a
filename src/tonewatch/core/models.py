"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to Crisp- or Slack-specific payloads.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import FrozenSet, Optional, Tuple


class ScorePolarity(str, Enum):
    """Which direction of a scorer's output means "worse"."""

    LOWER_IS_WORSE = "lower_is_worse"
    HIGHER_IS_WORSE = "higher_is_worse"


@dataclass(frozen=True)
class InboundMessage:
    """A user text message accepted for screening."""

    tenant_id: str
    conversation_id: str
    text: str
    author_id: Optional[str] = None
    occurred_at: Optional[datetime] = None


@dataclass(frozen=True)
class ScreeningResult:
    """Scanner and scorer output for one message."""

    matched_terms: FrozenSet[str]
    score: float
    score_label: str


@dataclass(frozen=True)
class AlertDecision:
    """Whether an alert fires, plus the screening result behind it."""

    fire: bool
    result: ScreeningResult


@dataclass(frozen=True)
class AlertContent:
    """Rendered alert: the internal note plus the notification parts."""

    note: str
    title: str
    body: str
    action_url: str
    action_label: str
    footer: str
    fields: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)
