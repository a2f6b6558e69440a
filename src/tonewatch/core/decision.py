"""Alert decision policy (core domain).

The decision is a pure function of the tenant config and the screening
result; nothing carries over between messages.
"""

from __future__ import annotations

from tonewatch.core.config import TenantConfig
from tonewatch.core.models import AlertDecision, ScorePolarity, ScreeningResult


def sentiment_label(score: float) -> str:
    if score <= -1:
        return "Very Negative"
    if score < 0:
        return "Negative"
    if score == 0:
        return "Neutral"
    if score < 1:
        return "Positive"
    return "Very Positive"


def toxicity_label(score: float) -> str:
    if score >= 0.9:
        return "Very Likely Toxic"
    if score >= 0.5:
        return "Likely Toxic"
    return "Unlikely Toxic"


def score_label(score: float, polarity: ScorePolarity) -> str:
    """Return the human-readable bucket for a score under the given polarity."""

    if polarity is ScorePolarity.HIGHER_IS_WORSE:
        return toxicity_label(score)
    return sentiment_label(score)


def decide(
    config: TenantConfig,
    result: ScreeningResult,
    polarity: ScorePolarity = ScorePolarity.LOWER_IS_WORSE,
) -> AlertDecision:
    """Apply tenant policy to a screening result.

    Sentiment scoring requires both a word-list match and a score strictly
    below the tenant threshold, so mild profanity in a friendly message stays
    quiet. Toxicity scoring fires on the probability alone.
    """

    if polarity is ScorePolarity.HIGHER_IS_WORSE:
        fire = result.score > config.toxicity_threshold
    else:
        fire = bool(result.matched_terms) and result.score < config.negative_threshold
    return AlertDecision(fire=fire, result=result)
