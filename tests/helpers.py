"""Builders and fakes shared across tests."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from collectors.base import MetricsProvider
from core.errors import ProviderError
from schemas.candidate import CandidateCoin, SocialMetrics
from schemas.signal import SignalSource, SignalType, TradingSignal
from scoring.base import SignalScorer

TIMESTAMP = 1_700_000_000_000


def make_coin(
    symbol: str, alt_rank: int = 1, name: str | None = None, **kwargs: Any
) -> CandidateCoin:
    return CandidateCoin(symbol=symbol, name=name or symbol.title(), alt_rank=alt_rank, **kwargs)


def make_metrics(
    symbol: str,
    mentions: int = 120,
    interactions: int = 45_000,
    creators: int = 80,
    alt_rank: int = 10,
    galaxy_score: float = 60,
    timestamp: int = TIMESTAMP,
) -> SocialMetrics:
    return SocialMetrics(
        symbol=symbol,
        mentions=mentions,
        interactions=interactions,
        creators=creators,
        alt_rank=alt_rank,
        galaxy_score=galaxy_score,
        timestamp=timestamp,
    )


def empty_metrics(symbol: str) -> SocialMetrics:
    return make_metrics(symbol, mentions=0, interactions=0, creators=0)


def make_signal(
    symbol: str,
    confidence: int = 70,
    signal: SignalType = SignalType.BUY,
    signal_id: str | None = None,
    alt_rank: int = 10,
) -> TradingSignal:
    return TradingSignal(
        id=signal_id or f"{symbol}-{TIMESTAMP}",
        symbol=symbol,
        signal=signal,
        confidence=confidence,
        reasoning=f"{symbol} test signal",
        metrics=make_metrics(symbol, alt_rank=alt_rank),
        source=SignalSource.LLM,
    )


class FakeProvider(MetricsProvider):
    """In-memory provider. Unknown symbols return all-zero metrics."""

    source_name = "fake"

    def __init__(
        self,
        coins: Sequence[CandidateCoin] = (),
        metrics: dict[str, SocialMetrics] | None = None,
        failing: Sequence[str] = (),
        top_coins_error: Exception | None = None,
    ):
        self.coins = list(coins)
        self.metrics = metrics or {}
        self.failing = set(failing)
        self.top_coins_error = top_coins_error
        self.fetched: list[str] = []

    async def __aenter__(self) -> FakeProvider:
        return self

    async def __aexit__(self, *args: Any) -> None:
        return None

    async def get_top_coins(self, limit: int = 10) -> list[CandidateCoin]:
        if self.top_coins_error is not None:
            raise self.top_coins_error
        return self.coins[:limit]

    async def get_social_metrics(self, coin: CandidateCoin) -> SocialMetrics:
        self.fetched.append(coin.symbol)
        if coin.symbol in self.failing:
            raise ProviderError(f"topic fetch failed for {coin.symbol}", status_code=503)
        return self.metrics.get(coin.symbol) or empty_metrics(coin.symbol)


class FakeScorer(SignalScorer):
    """Scores with fixed confidences per symbol; listed symbols raise."""

    def __init__(
        self,
        confidences: dict[str, int] | None = None,
        failing: Sequence[str] = (),
    ):
        self.confidences = confidences or {}
        self.failing = set(failing)
        self.calls: list[tuple[str, list[SocialMetrics]]] = []

    async def score(
        self,
        symbol: str,
        metrics: SocialMetrics,
        history: Sequence[SocialMetrics] | None = None,
    ) -> TradingSignal:
        self.calls.append((symbol, list(history or [])))
        if symbol in self.failing:
            raise RuntimeError(f"model unavailable for {symbol}")
        return TradingSignal(
            id=f"{symbol}-{TIMESTAMP + len(self.calls)}",
            symbol=symbol,
            signal=SignalType.BUY,
            confidence=self.confidences.get(symbol, 75),
            reasoning="Strong engagement",
            metrics=metrics,
        )
