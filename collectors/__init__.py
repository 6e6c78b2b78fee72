"""
Data collectors for the analysis pipeline.

A provider ranks candidate coins and fetches their social metrics; the
selection stage keeps the first candidates with complete data.
"""

from collectors.base import MetricsProvider
from collectors.lunarcrush import LunarCrushClient
from collectors.selector import select_candidates

__all__ = [
    "LunarCrushClient",
    "MetricsProvider",
    "select_candidates",
]
