"""Candidate coin and social metrics schemas."""

from pydantic import Field, field_validator

from .base import ValueSchema


class CandidateCoin(ValueSchema):
    """A coin eligible for analysis, as ranked by the data provider."""

    symbol: str = Field(..., min_length=1, description="Ticker, upper-cased")
    name: str = Field("", description="Display name")
    alt_rank: int = Field(0, description="AltRank (lower is better)")
    galaxy_score: float = Field(0, description="Galaxy Score 0-100")
    price: float = 0.0
    market_cap: float = 0.0
    percent_change_24h: float = 0.0

    @field_validator("symbol")
    @classmethod
    def _upper_symbol(cls, v: str) -> str:
        return v.upper()


class SocialMetrics(ValueSchema):
    """Social counters for one coin at one fetch time."""

    symbol: str
    mentions: int = Field(0, ge=0)
    interactions: int = Field(0, ge=0)
    creators: int = Field(0, ge=0)
    alt_rank: int = 0
    galaxy_score: float = 0
    timestamp: int = Field(..., description="Fetch time, epoch milliseconds")

    @property
    def is_complete(self) -> bool:
        """At least one counter is non-zero.

        All-zero counters mean the provider had no data for the coin; they
        are never treated as a genuine zero reading.
        """
        return self.mentions > 0 or self.interactions > 0 or self.creators > 0
