"""Deterministic rule-based signal used when the LLM is unavailable."""

from __future__ import annotations

from core.ids import make_signal_id
from schemas.candidate import SocialMetrics
from schemas.signal import SignalSource, SignalType, TradingSignal

HIGH_ENGAGEMENT_RATIO = 100
GOOD_ALT_RANK = 100
HEALTHY_GALAXY_SCORE = 70
GOOD_CREATOR_COUNT = 1000


def engagement_ratio(metrics: SocialMetrics) -> float:
    """Interactions per mention; mentions floored at 1."""
    return metrics.interactions / max(metrics.mentions, 1)


def count_positive_indicators(metrics: SocialMetrics) -> int:
    """How many of the four health indicators are positive."""
    indicators = [
        engagement_ratio(metrics) > HIGH_ENGAGEMENT_RATIO,
        metrics.alt_rank < GOOD_ALT_RANK,
        metrics.galaxy_score > HEALTHY_GALAXY_SCORE,
        metrics.creators > GOOD_CREATOR_COUNT,
    ]
    return sum(1 for flag in indicators if flag)


def fallback_signal(symbol: str, metrics: SocialMetrics) -> TradingSignal:
    """Classify from social indicators alone.

    3-4 positives → BUY (60 + 10 per positive), 0-1 → SELL (60),
    otherwise HOLD (50).
    """
    positives = count_positive_indicators(metrics)
    ratio = engagement_ratio(metrics)

    signal = SignalType.HOLD
    confidence = 50
    reasoning = "Fallback analysis based on social metrics"

    if positives >= 3:
        signal = SignalType.BUY
        confidence = 60 + positives * 10
        reasoning = (
            f"Strong social signals: {positives}/4 indicators positive. "
            f"High engagement ratio ({ratio:.1f}), AltRank {metrics.alt_rank}, "
            f"{metrics.creators:,} creators."
        )
    elif positives <= 1:
        signal = SignalType.SELL
        confidence = 60
        reasoning = (
            f"Weak social signals: only {positives}/4 indicators positive. "
            "Low engagement or poor rankings."
        )

    return TradingSignal(
        id=make_signal_id(symbol),
        symbol=symbol.upper(),
        signal=signal,
        confidence=confidence,
        reasoning=reasoning,
        metrics=metrics,
        source=SignalSource.FALLBACK,
    )
