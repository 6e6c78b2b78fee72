"""Base scorer interface."""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from schemas.candidate import SocialMetrics
from schemas.signal import TradingSignal


class SignalScorer(ABC):
    """Turns one coin's metrics into a trading signal."""

    @abstractmethod
    async def score(
        self,
        symbol: str,
        metrics: SocialMetrics,
        history: Sequence[SocialMetrics] | None = None,
    ) -> TradingSignal:
        """Score a single coin.

        Implementations fall back to a rule-based signal rather than raise
        for business reasons; transport failures may still propagate.
        """
