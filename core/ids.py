"""ID generation utilities."""

from __future__ import annotations

import secrets
import string
import time

_BASE36 = string.digits + string.ascii_lowercase


def epoch_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


def generate_job_id() -> str:
    """Generate a unique job ID.

    Format: job_<epoch_ms>_<9 base36 chars>
    """
    suffix = "".join(secrets.choice(_BASE36) for _ in range(9))
    return f"job_{epoch_ms()}_{suffix}"


def make_signal_id(symbol: str, at_ms: int | None = None) -> str:
    """Signal ID: symbol plus generation time, unique within a run."""
    return f"{symbol.upper()}-{at_ms if at_ms is not None else epoch_ms()}"
