"""Trading signal schemas."""

from datetime import datetime
from enum import Enum

from pydantic import Field, field_validator

from .base import BaseSchema, ValueSchema, utcnow
from .candidate import SocialMetrics


class SignalType(str, Enum):
    """Categorical trading decision."""

    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"


class SignalSource(str, Enum):
    """Which scorer path produced the signal."""

    LLM = "llm"
    FALLBACK = "fallback"


class TradingSignal(ValueSchema):
    """A scored result for one coin."""

    id: str = Field(..., description="SYMBOL-epoch_ms")
    symbol: str
    signal: SignalType
    confidence: int = Field(..., description="Clamped to 0-100")
    reasoning: str = ""
    metrics: SocialMetrics
    created_at: datetime = Field(default_factory=utcnow)
    source: SignalSource = SignalSource.LLM

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp_confidence(cls, v: object) -> int:
        return max(0, min(100, int(round(float(v)))))  # type: ignore[arg-type]


class SaveResult(BaseSchema):
    """Outcome of persisting one signal."""

    symbol: str
    success: bool
    error: str | None = None
