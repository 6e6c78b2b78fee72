"""Exception taxonomy for the analysis pipeline.

Fatal errors stop a job and move it to ``failed``. Per-item errors
(ScoringFailure, PersistenceFailure) are logged and only shrink the
result set.
"""

from __future__ import annotations

from typing import Any


class PipelineError(Exception):
    """Base class for pipeline errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


class ConfigurationError(PipelineError):
    """A required setting is missing or unusable."""


class ConfigValidationError(ConfigurationError):
    """Raised when configuration validation fails."""

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None):
        super().__init__(message, {"errors": errors or []})
        self.errors = errors or []


class NoCandidatesError(PipelineError):
    """The job was started with an empty candidate list."""


class InsufficientDataError(PipelineError):
    """No candidate passed the completeness check within the scan budget."""


class JobCreationError(PipelineError):
    """The job record could not be created (id collision or store failure)."""


class ScoringFailure(PipelineError):
    """Scoring a single item failed; the item is dropped."""

    def __init__(self, symbol: str, message: str):
        super().__init__(message, {"symbol": symbol})
        self.symbol = symbol


class PersistenceFailure(PipelineError):
    """A store write failed."""

    def __init__(self, message: str, record_id: str | None = None):
        super().__init__(message, {"record_id": record_id} if record_id else None)
        self.record_id = record_id


class SymbolNotSupportedError(PipelineError):
    """Single-symbol analysis requested for a coin outside the ranked list."""


class ProviderError(PipelineError):
    """The external data provider returned an error."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message, {"status_code": status_code} if status_code else None)
        self.status_code = status_code


class ProviderAuthError(ProviderError):
    """Provider rejected the API key."""


class ProviderRateLimitError(ProviderError):
    """Provider rate limit exceeded."""


class ProviderUnavailableError(ProviderError):
    """Provider is temporarily unavailable (5xx)."""
