"""
Pydantic schemas for the signal analysis pipeline.

Contract-first design: these schemas define the data contracts
between all pipeline stages and collaborators.
"""

from .candidate import CandidateCoin, SocialMetrics
from .job import Job, JobStatus
from .request import AnalysisRequest, JobOutcome
from .signal import SaveResult, SignalSource, SignalType, TradingSignal
from .summary import AnalysisSummary, SignalDistribution, TopSignal

__all__ = [
    # Inputs
    "CandidateCoin",
    "SocialMetrics",
    "AnalysisRequest",
    # Results
    "SignalType",
    "SignalSource",
    "TradingSignal",
    "SaveResult",
    "AnalysisSummary",
    "SignalDistribution",
    "TopSignal",
    # Lifecycle
    "Job",
    "JobStatus",
    "JobOutcome",
]
