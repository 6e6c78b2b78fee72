"""Job state machine and progress reporting.

States: pending → running → {completed, failed}. The tracker is the only
writer of job records; everything after ``initialize`` is best-effort so
that a failing store never aborts the pipeline itself.
"""

from __future__ import annotations

from collections import OrderedDict
from collections.abc import Callable
from typing import Any

import structlog

from core import verbose
from core.errors import JobCreationError
from schemas.base import utcnow
from schemas.job import Job, JobStatus
from schemas.summary import AnalysisSummary
from storage.store import JobStore

logger = structlog.get_logger(__name__)

PHASE_COUNT = 7

# Finished job ids remembered so late updates are still rejected
FINISHED_ID_LIMIT = 1024

JobListener = Callable[[Job], None]


def progress_for(step_index: int, total_phases: int = PHASE_COUNT) -> int:
    """Percentage after ``step_index`` of ``total_phases`` phases."""
    return max(0, min(100, round(100 * step_index / total_phases)))


class ProgressTracker:
    """Owns job lifecycle state and publishes every persisted change."""

    def __init__(
        self,
        store: JobStore,
        total_phases: int = PHASE_COUNT,
        finished_limit: int = FINISHED_ID_LIMIT,
    ):
        self._store = store
        self._total_phases = total_phases
        self._finished_limit = finished_limit
        # Only jobs still in flight keep their full record here
        self._jobs: dict[str, Job] = {}
        self._finished: OrderedDict[str, JobStatus] = OrderedDict()
        self._listeners: list[JobListener] = []

    @property
    def store(self) -> JobStore:
        return self._store

    @property
    def active_count(self) -> int:
        """Jobs initialized by this tracker that have not finished yet."""
        return len(self._jobs)

    def is_finished(self, job_id: str) -> bool:
        return job_id in self._finished

    def clear_finished(self) -> int:
        """Forget finished job ids, e.g. after the job store was wiped."""
        count = len(self._finished)
        self._finished.clear()
        return count

    # Observers

    def subscribe(self, listener: JobListener) -> Callable[[], None]:
        """Register a listener for job snapshots. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def load_job(self, job_id: str) -> Job | None:
        """Latest persisted state, for pollers."""
        return self._store.get(job_id)

    def _publish(self, job: Job) -> None:
        for listener in list(self._listeners):
            try:
                listener(job.model_copy(deep=True))
            except Exception as e:
                logger.warning("job listener failed", job_id=job.id, error=str(e))

    # Transitions

    def initialize(self, job_id: str, payload: dict[str, Any] | None = None) -> Job:
        """Create the job record in ``pending``.

        Raises:
            JobCreationError: the id already exists or the insert failed
        """
        if job_id in self._jobs or job_id in self._finished:
            raise JobCreationError(f"Job {job_id} already exists")

        job = Job(
            id=job_id,
            status=JobStatus.PENDING,
            current_step="Initializing Analysis",
            step_message="Setting up trading analysis pipeline...",
            event_data=payload or {},
        )
        try:
            stored = self._store.insert(job)
        except Exception as e:
            logger.error("job creation failed", job_id=job_id, error=str(e))
            raise JobCreationError(f"Job creation failed: {e}") from e

        self._jobs[job_id] = stored
        self._publish(stored)
        return stored

    def advance(
        self,
        job_id: str,
        step_index: int,
        step_name: str,
        message: str,
        status: JobStatus = JobStatus.RUNNING,
    ) -> bool:
        """Record progress for a running job.

        Percentage never decreases. Updates for unknown or terminal jobs
        are rejected, and store failures are logged and swallowed.

        Returns:
            True when the update was persisted
        """
        if job_id in self._finished:
            logger.warning(
                "progress update after terminal state rejected",
                job_id=job_id,
                status=self._finished[job_id].value,
            )
            return False
        job = self._jobs.get(job_id)
        if job is None:
            logger.warning("progress update for unknown job", job_id=job_id)
            return False
        if status.is_terminal:
            logger.warning(
                "advance cannot set a terminal status", job_id=job_id, status=status.value
            )
            return False

        percentage = max(
            job.progress_percentage, progress_for(step_index, self._total_phases)
        )
        fields = {
            "status": status,
            "current_step": step_name,
            "step_message": message,
            "progress_percentage": percentage,
        }
        return self._write(job_id, fields)

    def complete(
        self,
        job_id: str,
        *,
        signals_generated: int,
        signals_scored: int,
        summary: AnalysisSummary,
        duration_ms: int,
        alerts_sent: int = 0,
    ) -> bool:
        """Final transition to ``completed``.

        If the write fails the stored job stays ``running`` for pollers;
        the tracker still treats the job as finished.
        """
        fields = {
            "status": JobStatus.COMPLETED,
            "current_step": "Analysis Complete",
            "step_message": f"Generated {signals_scored} trading signals.",
            "progress_percentage": 100,
            "signals_generated": signals_generated,
            "signals_scored": signals_scored,
            "alerts_generated": summary.high_confidence,
            "alerts_sent": alerts_sent,
            "duration_ms": duration_ms,
            "completed_at": utcnow(),
        }
        return self._finish(job_id, fields)

    def fail(self, job_id: str, reason: str, duration_ms: int | None = None) -> bool:
        """Final transition to ``failed`` with the reason as the step message."""
        fields: dict[str, Any] = {
            "status": JobStatus.FAILED,
            "current_step": "Analysis Failed",
            "step_message": reason,
            "completed_at": utcnow(),
        }
        if duration_ms is not None:
            fields["duration_ms"] = duration_ms
        return self._finish(job_id, fields)

    def _finish(self, job_id: str, fields: dict[str, Any]) -> bool:
        if job_id in self._finished:
            logger.warning(
                "job already terminal", job_id=job_id, status=self._finished[job_id].value
            )
            return False
        if job_id not in self._jobs:
            logger.warning("terminal transition for unknown job", job_id=job_id)
            return False

        persisted = self._write(job_id, fields)
        self._retire(job_id, fields["status"])
        if persisted:
            logger.info("job finished", job_id=job_id, status=fields["status"].value)
            return True

        # Terminal in-process even though pollers still see the old state
        logger.error(
            "terminal job update not persisted, job remains observably running",
            job_id=job_id,
            status=fields["status"].value,
        )
        return False

    def _retire(self, job_id: str, status: JobStatus) -> None:
        """Drop the in-flight record and remember only the terminal status."""
        self._jobs.pop(job_id, None)
        self._finished[job_id] = status
        while len(self._finished) > self._finished_limit:
            self._finished.popitem(last=False)

    def _write(self, job_id: str, fields: dict[str, Any]) -> bool:
        try:
            stored = self._store.update(job_id, fields)
        except Exception as e:
            logger.warning("failed to persist job update", job_id=job_id, error=str(e))
            return False

        self._jobs[job_id] = stored
        verbose.progress(stored.progress_percentage, stored.current_step, stored.step_message)
        self._publish(stored)
        return True
