"""Shared notification formatting helpers.

Keeping formatting here prevents drift between delivery channels and keeps
the core content builder free of Slack Block Kit details.
"""

from __future__ import annotations

from typing import Any

from tonewatch.core.models import AlertContent

HEADER_EMOJI = "\U0001F6A8"


def to_slack_mrkdwn(text: str) -> str:
    """Convert the note's ``**bold**`` markers to Slack's ``*bold*``."""

    return text.replace("**", "*")


def _format_fields(content: AlertContent) -> list[dict[str, str]]:
    return [{"type": "mrkdwn", "text": f"*{label}:* {value}"} for label, value in content.fields]


def format_slack_payload(content: AlertContent) -> dict[str, Any]:
    """Return the Block Kit payload for an incoming-webhook post."""

    blocks: list[dict[str, Any]] = [
        {
            "type": "header",
            "text": {"type": "plain_text", "text": f"{HEADER_EMOJI} {content.title}", "emoji": True},
        },
        {
            "type": "section",
            "text": {"type": "mrkdwn", "text": to_slack_mrkdwn(content.body)},
        },
    ]

    fields = _format_fields(content)
    if fields:
        blocks.append({"type": "context", "elements": fields})

    blocks.append(
        {
            "type": "actions",
            "elements": [
                {
                    "type": "button",
                    "text": {"type": "plain_text", "text": content.action_label, "emoji": True},
                    "style": "primary",
                    "url": content.action_url,
                }
            ],
        }
    )
    blocks.append({"type": "context", "elements": [{"type": "mrkdwn", "text": content.footer}]})

    return {"text": f"{content.title} detected", "blocks": blocks}
