"""Core infrastructure: config, run context, errors, logging, and ids."""

from core import verbose
from core.config import PipelineConfig, Settings, load_config
from core.context import RunContext, RunMetrics, StageLog
from core.ids import generate_job_id, make_signal_id

__all__ = [
    "PipelineConfig",
    "Settings",
    "load_config",
    "RunContext",
    "RunMetrics",
    "StageLog",
    "generate_job_id",
    "make_signal_id",
    "verbose",
]
