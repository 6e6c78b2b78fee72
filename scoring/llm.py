"""LLM signal scorer using litellm for provider abstraction."""

from __future__ import annotations

import re
import time
from collections.abc import Sequence

import litellm  # type: ignore[import-untyped]
import structlog

from core import verbose
from core.config import Settings
from core.ids import make_signal_id
from schemas.candidate import SocialMetrics
from schemas.signal import SignalSource, SignalType, TradingSignal
from scoring.base import SignalScorer
from scoring.fallback import fallback_signal

logger = structlog.get_logger(__name__)

_PROMPT = """\
Analyze {symbol} social metrics and generate a trading signal.

Metrics:
- Mentions: {mentions:,} | Interactions: {interactions:,} | Creators: {creators:,}
- AltRank: {alt_rank} (lower=better) | Galaxy Score: {galaxy_score}/100{history}

Respond in EXACT format:
SIGNAL: [BUY/SELL/HOLD]
CONFIDENCE: [0-100]
REASONING: [1-2 sentences on key factors]"""

_SIGNAL_RE = re.compile(r"SIGNAL:\s*(BUY|SELL|HOLD)", re.IGNORECASE)
_CONFIDENCE_RE = re.compile(r"CONFIDENCE:\s*(\d+)", re.IGNORECASE)
_REASONING_RE = re.compile(r"REASONING:\s*(.+?)(?=\n\n|\n$|$)", re.IGNORECASE | re.DOTALL)

DEFAULT_CONFIDENCE = 50
DEFAULT_REASONING = "Analysis based on social metrics"


def build_prompt(
    symbol: str,
    current: SocialMetrics,
    history: Sequence[SocialMetrics] | None = None,
) -> str:
    """Prompt focused on the provider's social metrics."""
    history_text = ""
    if history:
        lines = "".join(
            f"\n{i}. mentions: {h.mentions:,}, interactions: {h.interactions:,}, "
            f"creators: {h.creators:,}, altRank: {h.alt_rank}"
            for i, h in enumerate(history, start=1)
        )
        history_text = (
            f"\n\nHistorical Context (last {len(history)} data points):{lines}"
        )

    return _PROMPT.format(
        symbol=symbol,
        mentions=current.mentions,
        interactions=current.interactions,
        creators=current.creators,
        alt_rank=current.alt_rank,
        galaxy_score=current.galaxy_score,
        history=history_text,
    )


def parse_signal_response(
    text: str, symbol: str, metrics: SocialMetrics
) -> TradingSignal:
    """Parse the SIGNAL/CONFIDENCE/REASONING reply.

    Missing fields default to HOLD, 50 and a generic reasoning line;
    confidence is clamped to 0-100.
    """
    signal_match = _SIGNAL_RE.search(text)
    confidence_match = _CONFIDENCE_RE.search(text)
    reasoning_match = _REASONING_RE.search(text)

    signal = SignalType(signal_match.group(1).upper()) if signal_match else SignalType.HOLD
    confidence = int(confidence_match.group(1)) if confidence_match else DEFAULT_CONFIDENCE
    reasoning = (
        reasoning_match.group(1).strip() if reasoning_match else ""
    ) or DEFAULT_REASONING

    return TradingSignal(
        id=make_signal_id(symbol),
        symbol=symbol.upper(),
        signal=signal,
        confidence=confidence,
        reasoning=reasoning,
        metrics=metrics,
        source=SignalSource.LLM,
    )


class LLMSignalScorer(SignalScorer):
    """Scores coins with an LLM, falling back to rules on any LLM error."""

    def __init__(self, model: str, timeout: float = 30.0, temperature: float = 0.2):
        self.model = model
        self.timeout = timeout
        self.temperature = temperature

    @classmethod
    def from_settings(cls, settings: Settings) -> LLMSignalScorer:
        return cls(model=settings.llm_model, timeout=settings.llm_timeout_seconds)

    async def score(
        self,
        symbol: str,
        metrics: SocialMetrics,
        history: Sequence[SocialMetrics] | None = None,
    ) -> TradingSignal:
        start = time.monotonic()
        prompt = build_prompt(symbol, metrics, history)

        verbose.step(f"LLM call → {self.model} for {symbol}")

        try:
            response = await litellm.acompletion(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.temperature,
                timeout=self.timeout,
            )
            raw_text: str = response.choices[0].message.content or ""  # type: ignore[union-attr]
        except Exception as e:
            logger.warning("llm scoring failed, using fallback", symbol=symbol, error=str(e))
            verbose.step(f"LLM error: {e}")
            return fallback_signal(symbol, metrics)

        elapsed_ms = (time.monotonic() - start) * 1000
        verbose.detail(f"LLM response: {len(raw_text)} chars in {elapsed_ms:.0f}ms")

        signal = parse_signal_response(raw_text, symbol, metrics)
        logger.info(
            "signal generated",
            symbol=symbol,
            signal=signal.signal.value,
            confidence=signal.confidence,
            duration_ms=round(elapsed_ms, 1),
        )
        return signal
