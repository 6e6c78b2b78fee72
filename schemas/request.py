"""Pipeline entry and exit contracts."""

from typing import Any

from pydantic import Field, model_validator

from .base import BaseSchema
from .candidate import CandidateCoin
from .signal import SaveResult
from .summary import AnalysisSummary


class AnalysisRequest(BaseSchema):
    """Input accepted by the pipeline runner.

    An empty candidate list is accepted here on purpose; the selection
    phase turns it into a failed job rather than a rejected request.
    """

    job_id: str | None = Field(None, description="Generated when omitted")
    candidates: list[CandidateCoin] = Field(default_factory=list)
    target_count: int = Field(3, gt=0, description="Coins to select")
    scan_size: int = Field(10, gt=0, description="Candidates to test at most")
    trigger_type: str = "manual"

    @model_validator(mode="after")
    def _scan_covers_target(self) -> "AnalysisRequest":
        if self.scan_size < self.target_count:
            raise ValueError("scan_size must be >= target_count")
        return self

    def event_data(self) -> dict[str, Any]:
        """Payload stored on the job record."""
        return {
            "top_coins": [c.model_dump(mode="json") for c in self.candidates],
            "target_count": self.target_count,
            "scan_size": self.scan_size,
            "trigger_type": self.trigger_type,
        }


class JobOutcome(BaseSchema):
    """Result returned by the runner for one job."""

    job_id: str
    success: bool
    symbols_analyzed: int = 0
    summary: AnalysisSummary | None = None
    duration_ms: int = 0
    save_results: list[SaveResult] = Field(default_factory=list)
    error: str | None = None
