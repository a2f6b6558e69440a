"""AFINN lexicon sentiment scorer.

Produces a comparative score: the summed AFINN valence of the message divided
by its token count, so long neutral messages with one mild word stay close to
zero. Lower is more negative.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from afinn import Afinn

from tonewatch.core.errors import ScorerNotReadyError
from tonewatch.core.models import ScorePolarity

LOGGER = logging.getLogger(__name__)

_STRIP_CHARS = re.compile(r"[.,/#!$%^&*;:{}=_`\"~()?\[\]]")


def count_tokens(text: str) -> int:
    return len(_STRIP_CHARS.sub("", text.lower()).split())


class AfinnSentimentScorer:
    """Comparative sentiment scorer backed by the AFINN word list."""

    polarity = ScorePolarity.LOWER_IS_WORSE

    def __init__(self, language: str = "en") -> None:
        self._language = language
        self._afinn: Optional[Afinn] = None

    async def warm_up(self) -> None:
        if self._afinn is not None:
            return
        self._afinn = Afinn(language=self._language)
        LOGGER.info("AFINN lexicon loaded (%s)", self._language)

    def score(self, text: str) -> float:
        if self._afinn is None:
            raise ScorerNotReadyError("Sentiment scorer used before warm_up()")
        tokens = count_tokens(text)
        if not tokens:
            return 0.0
        return sum(self._afinn.scores(text)) / tokens
