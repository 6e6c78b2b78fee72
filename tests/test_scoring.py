from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from schemas.signal import SignalSource, SignalType
from scoring.fallback import count_positive_indicators, engagement_ratio, fallback_signal
from scoring.llm import LLMSignalScorer, build_prompt, parse_signal_response
from tests.helpers import make_metrics


def _completion(text):
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = text
    return response


class TestFallbackSignal:
    """Rule-based classification"""

    def test_engagement_ratio_floors_mentions(self):
        assert engagement_ratio(make_metrics("X", mentions=0, interactions=500)) == 500

    def test_strong_metrics_buy(self):
        metrics = make_metrics(
            "BTC", mentions=100, interactions=50_000, creators=2000, alt_rank=5, galaxy_score=80
        )

        signal = fallback_signal("BTC", metrics)

        assert count_positive_indicators(metrics) == 4
        assert signal.signal == SignalType.BUY
        assert signal.confidence == 100
        assert signal.source == SignalSource.FALLBACK

    def test_three_positives_buy_ninety(self):
        metrics = make_metrics(
            "ETH", mentions=100, interactions=50_000, creators=10, alt_rank=5, galaxy_score=80
        )

        signal = fallback_signal("ETH", metrics)

        assert signal.signal == SignalType.BUY
        assert signal.confidence == 90

    def test_two_positives_hold(self):
        metrics = make_metrics(
            "SOL", mentions=100, interactions=50_000, creators=10, alt_rank=5, galaxy_score=40
        )

        signal = fallback_signal("SOL", metrics)

        assert signal.signal == SignalType.HOLD
        assert signal.confidence == 50

    def test_weak_metrics_sell(self):
        metrics = make_metrics(
            "DOGE", mentions=100, interactions=200, creators=10, alt_rank=500, galaxy_score=20
        )

        signal = fallback_signal("DOGE", metrics)

        assert signal.signal == SignalType.SELL
        assert signal.confidence == 60


class TestParseSignalResponse:
    """Parsing the SIGNAL/CONFIDENCE/REASONING reply"""

    def test_well_formed_reply(self):
        text = "SIGNAL: buy\nCONFIDENCE: 85\nREASONING: Rising mentions and strong creators."

        signal = parse_signal_response(text, "btc", make_metrics("BTC"))

        assert signal.symbol == "BTC"
        assert signal.signal == SignalType.BUY
        assert signal.confidence == 85
        assert signal.reasoning == "Rising mentions and strong creators."
        assert signal.source == SignalSource.LLM
        assert signal.id.startswith("BTC-")

    def test_missing_fields_default(self):
        signal = parse_signal_response("I am not sure.", "ETH", make_metrics("ETH"))

        assert signal.signal == SignalType.HOLD
        assert signal.confidence == 50
        assert signal.reasoning == "Analysis based on social metrics"

    def test_confidence_clamped(self):
        signal = parse_signal_response(
            "SIGNAL: SELL\nCONFIDENCE: 250\nREASONING: Overheated.", "SOL", make_metrics("SOL")
        )

        assert signal.confidence == 100


class TestBuildPrompt:
    def test_history_included(self):
        prompt = build_prompt(
            "BTC",
            make_metrics("BTC", mentions=1200),
            [make_metrics("BTC", mentions=900), make_metrics("BTC", mentions=800)],
        )

        assert "Mentions: 1,200" in prompt
        assert "Historical Context (last 2 data points)" in prompt

    def test_no_history_section_without_history(self):
        assert "Historical Context" not in build_prompt("BTC", make_metrics("BTC"))


class TestLLMSignalScorer:
    """LLM scoring with rule-based fallback"""

    @pytest.mark.asyncio
    async def test_uses_model_reply(self):
        scorer = LLMSignalScorer(model="gemini/gemini-2.5-flash-lite")
        reply = _completion("SIGNAL: BUY\nCONFIDENCE: 77\nREASONING: Strong engagement.")

        with patch("scoring.llm.litellm.acompletion", new=AsyncMock(return_value=reply)) as mock:
            signal = await scorer.score("BTC", make_metrics("BTC"))

        assert signal.signal == SignalType.BUY
        assert signal.confidence == 77
        assert mock.await_args.kwargs["model"] == "gemini/gemini-2.5-flash-lite"

    @pytest.mark.asyncio
    async def test_llm_error_falls_back(self):
        scorer = LLMSignalScorer(model="gemini/gemini-2.5-flash-lite")
        metrics = make_metrics(
            "DOGE", mentions=100, interactions=200, creators=10, alt_rank=500, galaxy_score=20
        )

        with patch(
            "scoring.llm.litellm.acompletion", new=AsyncMock(side_effect=RuntimeError("quota"))
        ):
            signal = await scorer.score("DOGE", metrics)

        assert signal.source == SignalSource.FALLBACK
        assert signal.signal == SignalType.SELL
