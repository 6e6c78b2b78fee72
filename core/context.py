"""Run context and stage bookkeeping for a single analysis job."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from core import verbose
from core.config import Settings
from schemas.job import JobStatus


class RunMetrics(BaseModel):
    """Counters collected while a job runs."""

    num_candidates_tested: int = 0
    num_candidates_selected: int = 0
    num_candidates_incomplete: int = 0
    num_fetch_failed: int = 0
    num_scored: int = 0
    num_scoring_failed: int = 0
    num_saved: int = 0
    num_save_failed: int = 0
    num_alerts_sent: int = 0


def _now() -> datetime:
    return datetime.now(timezone.utc)


class StageLog(BaseModel):
    """Timing and item counts for one stage of one job."""

    stage: str
    started_at: datetime = Field(default_factory=_now)
    completed_at: datetime | None = None
    status: str = "running"
    items_in: int = 0
    items_out: int = 0
    errors: list[str] = Field(default_factory=list)
    duration_seconds: float | None = None

    @property
    def is_open(self) -> bool:
        return self.completed_at is None

    def finish(self, items_out: int, errors: list[str], status: str) -> None:
        self.completed_at = _now()
        self.duration_seconds = (self.completed_at - self.started_at).total_seconds()
        self.items_out = items_out
        self.errors = list(errors)
        self.status = status

    def brief(self) -> dict[str, Any]:
        return {
            "stage": self.stage,
            "status": self.status,
            "in": self.items_in,
            "out": self.items_out,
            "errors": len(self.errors),
            "seconds": self.duration_seconds,
        }


class RunContext(BaseModel):
    """In-process context for a job - travels through all stages.

    The persisted Job record is owned by the ProgressTracker; this object
    only holds settings and telemetry for the current process.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    job_id: str
    settings: Settings
    status: JobStatus = JobStatus.PENDING
    started_at: datetime = Field(default_factory=_now)
    completed_at: datetime | None = None

    metrics: RunMetrics = Field(default_factory=RunMetrics)
    stage_logs: list[StageLog] = Field(default_factory=list)

    @classmethod
    def boot(cls, settings: Settings, job_id: str) -> RunContext:
        return cls(job_id=job_id, settings=settings, status=JobStatus.RUNNING)

    def start_stage(self, stage: str, items_in: int = 0) -> StageLog:
        entry = StageLog(stage=stage, items_in=items_in)
        self.stage_logs.append(entry)
        return entry

    def complete_stage(
        self,
        stage: str,
        items_out: int = 0,
        errors: list[str] | None = None,
        status: str = "completed",
    ) -> None:
        """Close the open entry for ``stage`` and print its trace line."""
        entry = next(
            (sl for sl in reversed(self.stage_logs) if sl.stage == stage and sl.is_open),
            None,
        )
        if entry is None:
            return
        entry.finish(items_out, errors or [], status)
        verbose.stage_end(
            stage,
            items_out=items_out,
            errors=len(entry.errors),
            duration=entry.duration_seconds or 0.0,
        )

    def get_stage(self, stage: str) -> StageLog | None:
        return next((sl for sl in self.stage_logs if sl.stage == stage), None)

    def complete_run(self, status: JobStatus = JobStatus.COMPLETED) -> None:
        self.status = status
        self.completed_at = _now()

    def elapsed_ms(self) -> int:
        end = self.completed_at or _now()
        return int((end - self.started_at).total_seconds() * 1000)

    def summary(self) -> dict[str, Any]:
        """Run telemetry for logs."""
        return {
            "job_id": self.job_id,
            "status": self.status.value,
            "elapsed_ms": self.elapsed_ms(),
            "metrics": self.metrics.model_dump(),
            "stages": [sl.brief() for sl in self.stage_logs],
        }
