"""LunarCrush public API client."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from collectors.base import MetricsProvider
from collectors.http_client import JsonApiClient
from core.config import Settings
from core.errors import ConfigurationError, ProviderError
from core.ids import epoch_ms
from core import verbose
from schemas.candidate import CandidateCoin, SocialMetrics

logger = structlog.get_logger(__name__)


class LunarCrushClient(MetricsProvider):
    """Social metrics provider backed by LunarCrush.

    Coin-level ranking fields (AltRank, Galaxy Score) come from the
    top-coins listing; only the topic counters are fetched per coin.

    Use as an async context manager so one HTTP connection pool serves
    the whole job.
    """

    source_name = "lunarcrush"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://lunarcrush.com/api4/public",
        timeout: float = 10.0,
        rate_limit: float = 0.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not api_key:
            raise ConfigurationError("LUNARCRUSH_API_KEY environment variable is required")
        self._api = JsonApiClient(
            base_url,
            provider="LunarCrush",
            api_key=api_key,
            timeout=timeout,
            rate_limit=rate_limit,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> LunarCrushClient:
        return cls(
            api_key=settings.lunarcrush_api_key,
            base_url=settings.lunarcrush_base_url,
            timeout=settings.default_timeout,
            rate_limit=settings.default_rate_limit,
        )

    async def __aenter__(self) -> LunarCrushClient:
        await self._api.__aenter__()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self._api.__aexit__(*args)

    async def get_top_coins(self, limit: int = 10) -> list[CandidateCoin]:
        """Top coins sorted by AltRank (best first)."""
        payload = await self._api.get_json(
            "/coins/list/v1", params={"limit": limit, "sort": "alt_rank"}
        )
        rows = payload.get("data") or []

        coins = [
            CandidateCoin(
                symbol=row["symbol"],
                name=row.get("name") or "",
                alt_rank=int(row.get("alt_rank") or 0),
                galaxy_score=row.get("galaxy_score") or 0,
                price=row.get("price") or 0.0,
                market_cap=row.get("market_cap") or 0.0,
                percent_change_24h=row.get("percent_change_24h") or 0.0,
            )
            for row in rows
            if row.get("symbol")
        ]
        logger.info(
            "fetched top coins", limit=limit, symbols=[c.symbol for c in coins]
        )
        return coins

    async def get_social_metrics(self, coin: CandidateCoin) -> SocialMetrics:
        """Combine the coin's ranking fields with live topic counters."""
        verbose.detail(f"GET /topic/{coin.symbol}/v1")
        payload = await self._api.get_json(f"/topic/{coin.symbol}/v1")

        data = payload.get("data") if isinstance(payload, dict) else None
        if not data:
            raise ProviderError(f"No topic data returned for {coin.symbol}")

        metrics = SocialMetrics(
            symbol=coin.symbol,
            mentions=int(data.get("num_posts") or 0),
            interactions=int(data.get("interactions_24h") or 0),
            creators=int(data.get("num_contributors") or 0),
            alt_rank=coin.alt_rank,
            galaxy_score=coin.galaxy_score,
            timestamp=epoch_ms(),
        )
        logger.debug(
            "fetched social metrics",
            symbol=coin.symbol,
            mentions=metrics.mentions,
            interactions=metrics.interactions,
            creators=metrics.creators,
        )
        return metrics
