from __future__ import annotations

import asyncio
from typing import Any, Mapping, Optional

from tonewatch.core.config import TenantConfig, check_tenant_id
from tonewatch.core.content import LinkBuilder
from tonewatch.core.models import AlertContent, InboundMessage, ScorePolarity
from tonewatch.core.processor import ScreeningProcessor


class _FakeScorer:
    polarity = ScorePolarity.LOWER_IS_WORSE

    def __init__(self, score: float = 0.0, error: Optional[Exception] = None) -> None:
        self._score = score
        self._error = error
        self.calls: list[str] = []

    async def warm_up(self) -> None:
        return None

    def score(self, text: str) -> float:
        self.calls.append(text)
        if self._error:
            raise self._error
        return self._score


class _FakeConfigs:
    def __init__(self, config: Optional[TenantConfig] = None) -> None:
        self._config = config or TenantConfig()

    def get(self, tenant_id: str) -> TenantConfig:
        check_tenant_id(tenant_id)
        return self._config

    def update(self, tenant_id: str, partial: Mapping[str, Any]) -> TenantConfig:
        raise NotImplementedError


class _FakeDispatcher:
    def __init__(self) -> None:
        self.calls: list[tuple[InboundMessage, TenantConfig, AlertContent]] = []

    async def dispatch(
        self,
        message: InboundMessage,
        config: TenantConfig,
        content: AlertContent,
    ) -> dict[str, str]:
        self.calls.append((message, config, content))
        return {"note": "posted", "tag": "applied", "notification": "disabled"}


def _processor(scorer: _FakeScorer, dispatcher: Optional[_FakeDispatcher]) -> ScreeningProcessor:
    return ScreeningProcessor(
        tenant_configs=_FakeConfigs(),
        scorer=scorer,
        word_list=["damn"],
        dispatcher=dispatcher,
        links=LinkBuilder(),
    )


def _message(text: str, tenant_id: str = "site-1") -> InboundMessage:
    return InboundMessage(tenant_id=tenant_id, conversation_id="session_abc", text=text)


def test_profane_negative_message_is_dispatched() -> None:
    dispatcher = _FakeDispatcher()
    outcomes = asyncio.run(_processor(_FakeScorer(-1.2), dispatcher).handle(_message("This is damn awful")))

    assert outcomes == {"note": "posted", "tag": "applied", "notification": "disabled"}
    _, _, content = dispatcher.calls[0]
    assert "**damn**" in content.note
    assert "-1.20 (Very Negative)" in content.note


def test_profane_positive_message_is_not_dispatched() -> None:
    dispatcher = _FakeDispatcher()
    outcome = asyncio.run(_processor(_FakeScorer(0.8), dispatcher).handle(_message("damn, that's great")))
    assert outcome is None
    assert dispatcher.calls == []


def test_clean_negative_message_is_not_dispatched() -> None:
    dispatcher = _FakeDispatcher()
    outcome = asyncio.run(_processor(_FakeScorer(-2.0), dispatcher).handle(_message("this is awful")))
    assert outcome is None
    assert dispatcher.calls == []


def test_scorer_failure_means_no_alert() -> None:
    dispatcher = _FakeDispatcher()
    scorer = _FakeScorer(error=RuntimeError("model exploded"))
    outcome = asyncio.run(_processor(scorer, dispatcher).handle(_message("damn")))
    assert outcome is None
    assert dispatcher.calls == []


def test_blank_message_is_not_scored() -> None:
    scorer = _FakeScorer(-3.0)
    assert asyncio.run(_processor(scorer, _FakeDispatcher()).handle(_message("   "))) is None
    assert scorer.calls == []


def test_invalid_tenant_is_discarded() -> None:
    dispatcher = _FakeDispatcher()
    outcome = asyncio.run(
        _processor(_FakeScorer(-3.0), dispatcher).handle(_message("damn", tenant_id="../x"))
    )
    assert outcome is None
    assert dispatcher.calls == []


def test_dry_run_without_dispatcher() -> None:
    outcome = asyncio.run(_processor(_FakeScorer(-1.2), None).handle(_message("damn it")))
    assert outcome == {}


def test_screen_reports_matches_and_label() -> None:
    processor = _processor(_FakeScorer(-0.4), None)
    decision = processor.screen(_message("Damn"), TenantConfig())
    assert decision is not None
    assert decision.fire is True
    assert decision.result.matched_terms == frozenset({"Damn"})
    assert decision.result.score_label == "Negative"


def test_threshold_controls_how_negative_a_message_must_be() -> None:
    message = _message("you idiot, this is the worst service ever")

    def screen(threshold: float, score: float):
        processor = ScreeningProcessor(
            tenant_configs=_FakeConfigs(),
            scorer=_FakeScorer(score),
            word_list=["idiot"],
            dispatcher=None,
            links=LinkBuilder(),
        )
        return processor.screen(message, TenantConfig(negative_threshold=threshold))

    strict = screen(-0.3, -1.2)
    assert strict is not None
    assert strict.fire is True
    assert strict.result.matched_terms == frozenset({"idiot"})
    assert strict.result.score_label == "Very Negative"

    lenient = screen(-5.0, -1.2)
    assert lenient is not None and lenient.fire is False

    positive = screen(0.0, 0.8)
    assert positive is not None and positive.fire is False
