"""Write stage: persist each scored signal independently."""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Sequence
from typing import Union

import structlog

from core import verbose
from core.context import RunContext
from core.errors import PersistenceFailure
from schemas.signal import SaveResult, TradingSignal

logger = structlog.get_logger(__name__)

Persist = Callable[[TradingSignal], Union[None, Awaitable[None]]]
WriteProgress = Callable[[int, int], None]


async def write_all(
    signals: Sequence[TradingSignal],
    persist: Persist,
    *,
    on_progress: WriteProgress | None = None,
    ctx: RunContext | None = None,
) -> list[SaveResult]:
    """Persist signals one at a time, recording per-item success.

    A failed write is recorded as ``success=False`` and the remaining
    signals are still written. Nothing is retried.

    Returns:
        One SaveResult per signal, in input order
    """
    if ctx:
        ctx.start_stage("write", items_in=len(signals))
    verbose.stage("Write", f"store {len(signals)} trading signals")

    results: list[SaveResult] = []
    errors: list[str] = []

    for index, signal in enumerate(signals, start=1):
        try:
            outcome = persist(signal)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as e:
            failure = e if isinstance(e, PersistenceFailure) else PersistenceFailure(str(e), signal.id)
            logger.error("failed to save signal", symbol=signal.symbol, signal_id=signal.id, error=str(failure))
            verbose.step(f"FAIL {signal.symbol} — {failure}")
            errors.append(f"{signal.symbol}: {failure}")
            results.append(SaveResult(symbol=signal.symbol, success=False, error=str(failure)))
            continue

        results.append(SaveResult(symbol=signal.symbol, success=True))
        verbose.step(f"Saved {signal.symbol} ({signal.id})")
        if on_progress:
            on_progress(index, len(signals))

    saved = sum(1 for r in results if r.success)
    if ctx:
        ctx.metrics.num_saved = saved
        ctx.metrics.num_save_failed = len(results) - saved
        ctx.complete_stage("write", items_out=saved, errors=errors)

    return results
