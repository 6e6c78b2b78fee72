import httpx
import pytest

from collectors.lunarcrush import LunarCrushClient
from core.errors import (
    ConfigurationError,
    ProviderAuthError,
    ProviderError,
    ProviderRateLimitError,
    ProviderUnavailableError,
)
from tests.helpers import make_coin


def _client(handler):
    return LunarCrushClient(api_key="test-key", transport=httpx.MockTransport(handler))


class TestLunarCrushClient:
    """LunarCrush API client against a mock transport"""

    def test_requires_api_key(self):
        with pytest.raises(ConfigurationError):
            LunarCrushClient(api_key="")

    @pytest.mark.asyncio
    async def test_get_top_coins(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            seen["auth"] = request.headers.get("authorization")
            return httpx.Response(
                200,
                json={
                    "data": [
                        {"symbol": "btc", "name": "Bitcoin", "alt_rank": 3, "galaxy_score": 71.5},
                        {"symbol": "ETH", "name": "Ethereum", "alt_rank": 8, "price": 2500.0},
                        {"name": "No symbol"},
                    ]
                },
            )

        async with _client(handler) as client:
            coins = await client.get_top_coins(limit=5)

        assert [c.symbol for c in coins] == ["BTC", "ETH"]
        assert coins[0].galaxy_score == 71.5
        assert seen["path"] == "/api4/public/coins/list/v1"
        assert seen["params"] == {"limit": "5", "sort": "alt_rank"}
        assert seen["auth"] == "Bearer test-key"

    @pytest.mark.asyncio
    async def test_get_social_metrics(self):
        def handler(request):
            assert request.url.path == "/api4/public/topic/SOL/v1"
            return httpx.Response(
                200,
                json={"data": {"num_posts": 1500, "interactions_24h": "98000", "num_contributors": 420}},
            )

        async with _client(handler) as client:
            metrics = await client.get_social_metrics(make_coin("SOL", alt_rank=7, galaxy_score=66))

        assert metrics.mentions == 1500
        assert metrics.interactions == 98000
        assert metrics.creators == 420
        assert metrics.alt_rank == 7
        assert metrics.galaxy_score == 66
        assert metrics.is_complete

    @pytest.mark.asyncio
    async def test_missing_topic_data_raises(self):
        async with _client(lambda request: httpx.Response(200, json={"data": None})) as client:
            with pytest.raises(ProviderError):
                await client.get_social_metrics(make_coin("XYZ"))

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status,error",
        [
            (401, ProviderAuthError),
            (429, ProviderRateLimitError),
            (503, ProviderUnavailableError),
            (404, ProviderError),
        ],
    )
    async def test_status_mapping(self, status, error):
        async with _client(lambda request: httpx.Response(status, json={})) as client:
            with pytest.raises(error) as exc:
                await client.get_top_coins()

        assert exc.value.status_code == status

    @pytest.mark.asyncio
    async def test_invalid_json_raises_provider_error(self):
        async with _client(lambda request: httpx.Response(200, text="<html>")) as client:
            with pytest.raises(ProviderError):
                await client.get_top_coins()
