"""Job orchestration: progress tracking and the analysis pipeline."""

from orchestration.runner import SignalPipeline, build_pipeline, run_analysis, run_analysis_async
from orchestration.tracker import PHASE_COUNT, ProgressTracker, progress_for

__all__ = [
    "PHASE_COUNT",
    "ProgressTracker",
    "SignalPipeline",
    "build_pipeline",
    "progress_for",
    "run_analysis",
    "run_analysis_async",
]
