"""Analysis job record schemas."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import Field

from .base import BaseSchema, utcnow


class JobStatus(str, Enum):
    """Lifecycle status of an analysis job."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


class Job(BaseSchema):
    """Persisted job record, polled by observers."""

    id: str
    status: JobStatus = JobStatus.PENDING
    current_step: str = ""
    step_message: str = ""
    progress_percentage: int = Field(0, ge=0, le=100)

    # Results
    signals_generated: int = Field(0, description="Signals persisted")
    signals_scored: int = Field(0, description="Signals produced by scoring")
    alerts_generated: int = Field(0, description="High-confidence signals")
    alerts_sent: int = 0
    duration_ms: int | None = None

    # Timestamps
    started_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    completed_at: datetime | None = None

    event_data: dict[str, Any] = Field(
        default_factory=dict, description="Input payload of the trigger"
    )
