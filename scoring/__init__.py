"""Signal scoring: LLM scorer, rule-based fallback, and parallel fan-out."""

from scoring.base import SignalScorer
from scoring.fallback import fallback_signal
from scoring.fanout import score_all
from scoring.llm import LLMSignalScorer

__all__ = ["LLMSignalScorer", "SignalScorer", "fallback_signal", "score_all"]
