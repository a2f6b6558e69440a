"""Slack incoming-webhook notification adapter."""

from __future__ import annotations

import httpx

from tonewatch.adapters.notification_formatting import format_slack_payload
from tonewatch.core.errors import UpstreamError
from tonewatch.core.models import AlertContent


class SlackWebhookNotifier:
    """Notifier adapter that posts Block Kit alerts to a tenant's webhook URL."""

    def __init__(self, http: httpx.AsyncClient) -> None:
        self._http = http

    async def send(self, target: str, content: AlertContent) -> None:
        """Send the formatted alert to ``target``."""

        response = await self._http.post(target, json=format_slack_payload(content))
        if response.is_error:
            raise UpstreamError("send Slack notification", response.status_code, response.text)
