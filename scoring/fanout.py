"""Scoring stage: score every selected coin concurrently."""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable, Sequence
from typing import Union

import structlog

from core import verbose
from core.context import RunContext
from core.errors import ScoringFailure
from schemas.candidate import SocialMetrics
from schemas.signal import TradingSignal

logger = structlog.get_logger(__name__)

ScoreOne = Callable[
    [str, SocialMetrics], Union[TradingSignal, Awaitable[TradingSignal]]
]


async def _invoke(score_one: ScoreOne, symbol: str, metrics: SocialMetrics) -> TradingSignal:
    """Run one scoring call; plain callables go to a worker thread."""
    if inspect.iscoroutinefunction(score_one) or inspect.iscoroutinefunction(
        getattr(score_one, "__call__", None)
    ):
        return await score_one(symbol, metrics)  # type: ignore[misc]

    result = await asyncio.to_thread(score_one, symbol, metrics)
    if inspect.isawaitable(result):
        result = await result
    return result


async def _score_isolated(
    score_one: ScoreOne,
    symbol: str,
    metrics: SocialMetrics,
    timeout: float | None,
) -> tuple[TradingSignal | None, ScoringFailure | None]:
    """Score a single item, converting any failure into a ScoringFailure.

    Returns:
        Tuple of (signal, failure)
    """
    try:
        if timeout is not None:
            signal = await asyncio.wait_for(_invoke(score_one, symbol, metrics), timeout)
        else:
            signal = await _invoke(score_one, symbol, metrics)
    except asyncio.TimeoutError:
        return None, ScoringFailure(symbol, f"scoring timed out after {timeout}s")
    except Exception as e:
        return None, ScoringFailure(symbol, f"scoring failed: {e}")

    return signal, None


async def score_all(
    items: Sequence[tuple[str, SocialMetrics]],
    score_one: ScoreOne,
    *,
    timeout: float | None = None,
    ctx: RunContext | None = None,
) -> list[TradingSignal]:
    """Score all items in parallel and keep the successes.

    One task is launched per item and all of them are awaited before
    returning. A failing or timed-out item is dropped without affecting
    the others. Results keep input order.

    Args:
        items: (symbol, metrics) pairs from the selection stage
        score_one: Scoring capability for a single item
        timeout: Optional per-item time limit in seconds
        ctx: Optional run context for stage logs and metrics

    Returns:
        Successfully scored signals; empty when every item failed
    """
    if ctx:
        ctx.start_stage("score", items_in=len(items))
    verbose.stage("Score", f"score {len(items)} coins in parallel")

    outcomes = await asyncio.gather(
        *(
            _score_isolated(score_one, symbol, metrics, timeout)
            for symbol, metrics in items
        )
    )

    signals: list[TradingSignal] = []
    errors: list[str] = []
    for signal, failure in outcomes:
        if failure is not None:
            logger.error("scoring failed, item dropped", symbol=failure.symbol, error=str(failure))
            verbose.step(f"FAIL {failure.symbol} — {failure}")
            errors.append(f"{failure.symbol}: {failure}")
            continue
        if signal is not None:
            verbose.step(
                f"{signal.symbol:<8s} → {signal.signal.value} ({signal.confidence}%)"
            )
            signals.append(signal)

    if ctx:
        ctx.metrics.num_scored = len(signals)
        ctx.metrics.num_scoring_failed = len(errors)
        ctx.complete_stage(
            "score",
            items_out=len(signals),
            errors=errors,
            status="completed" if signals or not items else "failed",
        )

    return signals
