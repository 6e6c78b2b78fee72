"""Base data-provider interface."""

from abc import ABC, abstractmethod

from schemas.candidate import CandidateCoin, SocialMetrics


class MetricsProvider(ABC):
    """Abstract source of candidate coins and their social metrics."""

    source_name: str = "base"

    @abstractmethod
    async def get_top_coins(self, limit: int = 10) -> list[CandidateCoin]:
        """
        Fetch the top-ranked coins, best first.

        Args:
            limit: Number of coins to return

        Returns:
            Ranked candidate coins
        """

    @abstractmethod
    async def get_social_metrics(self, coin: CandidateCoin) -> SocialMetrics:
        """
        Fetch current social metrics for one coin.

        Raises:
            ProviderError: on auth, rate-limit or availability failures
        """
