"""Alert content builder (core domain).

Produces the internal note text and the channel-neutral notification parts.
Channel-specific rendering (Slack blocks) lives in the adapters.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Iterable, Optional

from tonewatch.core.config import TenantConfig
from tonewatch.core.models import AlertContent, InboundMessage, ScorePolarity, ScreeningResult

FOOTER = (
    "_Please review the conversation and take appropriate action. "
    "If escalation is needed, notify your team lead._"
)
ACTION_LABEL = "View in Crisp"

_TITLES = {
    ScorePolarity.LOWER_IS_WORSE: (
        "Profanity & Negative Tone Alert",
        "A customer message containing profanity and a negative tone was detected:",
        "Sentiment Score",
    ),
    ScorePolarity.HIGHER_IS_WORSE: (
        "Toxic Message Alert",
        "A customer message classified as toxic was detected:",
        "Toxicity Score",
    ),
}


class LinkBuilder:
    """Builds deterministic links back into the Crisp inbox."""

    def __init__(self, app_base: str = "https://app.crisp.chat") -> None:
        self._app_base = app_base.rstrip("/")

    def conversation_url(self, tenant_id: str, conversation_id: str) -> str:
        return f"{self._app_base}/website/{tenant_id}/inbox/{conversation_id}/"


def highlight_terms(text: str, terms: Iterable[str]) -> str:
    """Wrap whole-word occurrences of each term in ``**`` markers.

    Terms are escaped so characters like ``+`` or ``.`` match literally, and
    the boundary check uses lookarounds so terms ending in punctuation still
    match as whole words.
    """

    highlighted = text
    seen: set[str] = set()
    for term in terms:
        key = term.lower()
        if not term or key in seen:
            continue
        seen.add(key)
        pattern = re.compile(rf"(?<!\w){re.escape(term)}(?!\w)", re.IGNORECASE)
        highlighted = pattern.sub(lambda match: f"**{match.group(0)}**", highlighted)
    return highlighted


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _quote(text: str) -> str:
    return "\n".join(f"> {line}" for line in text.splitlines() or [""])


def build_alert_content(
    message: InboundMessage,
    result: ScreeningResult,
    config: TenantConfig,
    links: LinkBuilder,
    polarity: ScorePolarity = ScorePolarity.LOWER_IS_WORSE,
) -> AlertContent:
    """Render the note and notification parts for a firing alert."""

    title, intro, score_name = _TITLES[polarity]
    terms = sorted(result.matched_terms, key=str.lower)
    quoted_text = highlight_terms(message.text, terms) if config.highlight_matches else message.text
    timestamp = format_timestamp(message.occurred_at)
    score_text = f"{result.score:.2f} ({result.score_label})"
    terms_text = ", ".join(f"`{term}`" for term in terms)

    lines = [
        f"**{title}**",
        intro,
        _quote(quoted_text),
        "",
        f"*{score_name}:* {score_text}",
    ]
    if terms:
        lines.append(f"*Profane Words Detected:* {terms_text}")
    lines.append(f"*Session ID:* {message.conversation_id}")
    if message.author_id:
        lines.append(f"*User ID:* {message.author_id}")
    if timestamp:
        lines.append(f"*Timestamp:* {timestamp}")
    lines.extend(["", FOOTER])
    note = "\n".join(lines)

    fields: list[tuple[str, str]] = [(score_name, score_text)]
    if terms:
        fields.append(("Profane Words", terms_text))
    if timestamp:
        fields.append(("Timestamp", timestamp))
    if message.author_id:
        fields.append(("User ID", message.author_id))

    return AlertContent(
        note=note,
        title=title,
        body=note,
        action_url=links.conversation_url(message.tenant_id, message.conversation_id),
        action_label=ACTION_LABEL,
        footer=FOOTER,
        fields=tuple(fields),
    )
