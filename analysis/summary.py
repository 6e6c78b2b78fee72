"""Summary stage: distribution and top signals for one job."""

from __future__ import annotations

from collections.abc import Sequence

from schemas.signal import SignalType, TradingSignal
from schemas.summary import AnalysisSummary, SignalDistribution, TopSignal

HIGH_CONFIDENCE_THRESHOLD = 70
TOP_N = 3


def summarize(
    signals: Sequence[TradingSignal],
    *,
    threshold: int = HIGH_CONFIDENCE_THRESHOLD,
    top_n: int = TOP_N,
) -> AnalysisSummary:
    """Aggregate scored signals.

    Top signals are ordered by confidence descending; ties keep the order
    the signals were scored in. Never fails; an empty input yields zero
    counts.
    """
    distribution = SignalDistribution(
        BUY=sum(1 for s in signals if s.signal == SignalType.BUY),
        SELL=sum(1 for s in signals if s.signal == SignalType.SELL),
        HOLD=sum(1 for s in signals if s.signal == SignalType.HOLD),
    )

    ranked = sorted(signals, key=lambda s: s.confidence, reverse=True)
    top = [
        TopSignal(
            symbol=s.symbol,
            signal=s.signal,
            confidence=s.confidence,
            alt_rank=s.metrics.alt_rank,
        )
        for s in ranked[:top_n]
    ]

    return AnalysisSummary(
        total_analyzed=len(signals),
        high_confidence=sum(1 for s in signals if s.confidence >= threshold),
        distribution=distribution,
        top_signals=top,
    )


def high_confidence_signals(
    signals: Sequence[TradingSignal], threshold: int = HIGH_CONFIDENCE_THRESHOLD
) -> list[TradingSignal]:
    """Signals eligible for alerting, in scoring order."""
    return [s for s in signals if s.confidence >= threshold]
