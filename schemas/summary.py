"""Analysis summary schemas."""

from pydantic import Field

from .base import BaseSchema
from .signal import SignalType


class SignalDistribution(BaseSchema):
    """Signal counts per decision class."""

    BUY: int = 0
    SELL: int = 0
    HOLD: int = 0


class TopSignal(BaseSchema):
    """Compact view of a highly ranked signal."""

    symbol: str
    signal: SignalType
    confidence: int
    alt_rank: int


class AnalysisSummary(BaseSchema):
    """Per-job aggregate over the scored signals."""

    total_analyzed: int = 0
    high_confidence: int = 0
    distribution: SignalDistribution = Field(default_factory=SignalDistribution)
    top_signals: list[TopSignal] = Field(default_factory=list)
