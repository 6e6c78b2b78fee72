"""Analysis summaries over scored signals."""

from analysis.summary import high_confidence_signals, summarize

__all__ = ["high_confidence_signals", "summarize"]
