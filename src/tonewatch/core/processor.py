"""Core message screening pipeline.

This module is integration-agnostic. It only relies on ports for tenant
configuration, scoring, and delivery, so the webhook server and the CLI dry
run share the same decision path.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from tonewatch.core.config import TenantConfig
from tonewatch.core.content import LinkBuilder, build_alert_content
from tonewatch.core.decision import decide, score_label
from tonewatch.core.dispatch import DispatchCoordinator
from tonewatch.core.errors import InvalidTenantError
from tonewatch.core.models import AlertDecision, InboundMessage, ScreeningResult
from tonewatch.core.ports import ScorerPort, TenantConfigPort
from tonewatch.core.scanner import build_word_list, find_matched_terms

LOGGER = logging.getLogger(__name__)


class ScreeningProcessor:
    """Orchestrates config lookup, scanning, scoring, decision, and dispatch.

    With ``dispatcher=None`` a firing alert is only logged (the CLI dry run).
    """

    def __init__(
        self,
        tenant_configs: TenantConfigPort,
        scorer: ScorerPort,
        word_list: Iterable[str],
        dispatcher: Optional[DispatchCoordinator],
        links: LinkBuilder,
    ) -> None:
        self._configs = tenant_configs
        self._scorer = scorer
        self._word_list = build_word_list(word_list)
        self._dispatcher = dispatcher
        self._links = links

    def screen(self, message: InboundMessage, config: TenantConfig) -> Optional[AlertDecision]:
        """Scan, score, and decide. Returns None when the scorer failed."""

        matched_terms = find_matched_terms(message.text, self._word_list)
        try:
            score = float(self._scorer.score(message.text))
        except Exception:
            LOGGER.exception(
                "Scoring failed for %s/%s, no alert",
                message.tenant_id,
                message.conversation_id,
            )
            return None

        polarity = self._scorer.polarity
        result = ScreeningResult(
            matched_terms=matched_terms,
            score=score,
            score_label=score_label(score, polarity),
        )
        return decide(config, result, polarity)

    async def handle(self, message: InboundMessage) -> Optional[dict[str, str]]:
        """Process one message through the pipeline.

        Returns the dispatch outcomes when an alert fired, otherwise None.
        """

        # Empty messages are ignored rather than scored as neutral.
        if not message.text.strip():
            return None

        try:
            config = self._configs.get(message.tenant_id)
        except InvalidTenantError:
            LOGGER.warning("Discarding message for invalid tenant id %r", message.tenant_id)
            return None

        decision = self.screen(message, config)
        if decision is None:
            return None

        result = decision.result
        if not decision.fire:
            if result.matched_terms:
                LOGGER.info(
                    "Matched terms in %s but score %.2f (%s) is below the alert bar",
                    message.conversation_id,
                    result.score,
                    result.score_label,
                )
            else:
                LOGGER.debug("Message in %s is clean", message.conversation_id)
            return None

        LOGGER.info(
            "Alert for %s/%s (score %.2f, %s)",
            message.tenant_id,
            message.conversation_id,
            result.score,
            result.score_label,
        )
        content = build_alert_content(message, result, config, self._links, self._scorer.polarity)
        if self._dispatcher is None:
            LOGGER.info("Dry run, not dispatching:\n%s", content.note)
            return {}
        return await self._dispatcher.dispatch(message, config, content)
