"""Selection stage: test candidates until enough have complete metrics."""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Sequence
from typing import Union

import structlog

from core import verbose
from core.context import RunContext
from core.errors import InsufficientDataError, NoCandidatesError
from schemas.candidate import CandidateCoin, SocialMetrics

logger = structlog.get_logger(__name__)

FetchMetrics = Callable[
    [CandidateCoin], Union[SocialMetrics, Awaitable[SocialMetrics]]
]
SelectionProgress = Callable[[str], None]


async def _fetch(fetch_metrics: FetchMetrics, coin: CandidateCoin) -> SocialMetrics:
    result = fetch_metrics(coin)
    if inspect.isawaitable(result):
        result = await result
    return result


async def select_candidates(
    candidates: Sequence[CandidateCoin],
    target: int,
    fetch_metrics: FetchMetrics,
    *,
    on_progress: SelectionProgress | None = None,
    ctx: RunContext | None = None,
) -> list[tuple[CandidateCoin, SocialMetrics]]:
    """Return the first ``target`` candidates whose metrics are complete.

    Candidates are tested strictly in the given order and the scan stops as
    soon as ``target`` complete ones are found. A failed fetch skips that
    candidate only.

    Args:
        candidates: Ranked candidates, best first
        target: Number of complete candidates wanted
        fetch_metrics: Capability returning metrics for one candidate
        on_progress: Called with a message before each candidate is tested
        ctx: Optional run context for stage logs and metrics

    Returns:
        Between 1 and ``target`` (candidate, metrics) pairs in discovery order

    Raises:
        NoCandidatesError: ``candidates`` is empty
        InsufficientDataError: no candidate had complete metrics
    """
    if not candidates:
        raise NoCandidatesError("No candidate coins provided")
    if target <= 0:
        raise ValueError(f"target must be positive, got {target}")

    if ctx:
        ctx.start_stage("select", items_in=len(candidates))
    verbose.stage("Select", f"test up to {len(candidates)} candidates for complete data")

    selected: list[tuple[CandidateCoin, SocialMetrics]] = []
    errors: list[str] = []

    for coin in candidates:
        if len(selected) >= target:
            break

        if on_progress:
            on_progress(f"Checking {coin.symbol} ({len(selected) + 1}/{target} found)...")
        if ctx:
            ctx.metrics.num_candidates_tested += 1

        try:
            metrics = await _fetch(fetch_metrics, coin)
        except Exception as e:
            logger.warning("metrics fetch failed, skipping", symbol=coin.symbol, error=str(e))
            verbose.step(f"FAIL {coin.symbol} — {e}")
            errors.append(f"{coin.symbol}: {e}")
            if ctx:
                ctx.metrics.num_fetch_failed += 1
            continue

        if metrics.is_complete:
            logger.info(
                "candidate selected",
                symbol=coin.symbol,
                mentions=metrics.mentions,
                interactions=metrics.interactions,
                creators=metrics.creators,
            )
            verbose.step(f"+ {coin.symbol:<8s} | complete data")
            selected.append((coin, metrics))
        else:
            logger.info("candidate has no social data, skipping", symbol=coin.symbol)
            verbose.step(f"- {coin.symbol:<8s} | all zeros, skipped")
            if ctx:
                ctx.metrics.num_candidates_incomplete += 1

    if ctx:
        ctx.metrics.num_candidates_selected = len(selected)
        ctx.complete_stage(
            "select",
            items_out=len(selected),
            errors=errors,
            status="completed" if selected else "failed",
        )

    if not selected:
        raise InsufficientDataError(
            f"No coins with complete social data found in top {len(candidates)}",
            details={"tested": len(candidates), "fetch_errors": errors},
        )

    return selected
