"""Record stores for analysis jobs and trading signals."""

from __future__ import annotations

import json
import os
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from core import verbose
from core.errors import PersistenceFailure
from schemas.base import utcnow
from schemas.candidate import SocialMetrics
from schemas.job import Job
from schemas.signal import TradingSignal


class JobStore(ABC):
    """Abstract key-value store for job records."""

    @abstractmethod
    def insert(self, job: Job) -> Job:
        """Insert a new job. Raises PersistenceFailure if the id exists."""

    @abstractmethod
    def update(self, job_id: str, fields: dict[str, Any]) -> Job:
        """Update fields of an existing job by id and return the stored record."""

    @abstractmethod
    def get(self, job_id: str) -> Job | None:
        """Load a job by id."""

    @abstractmethod
    def list_recent(self, limit: int = 20) -> list[Job]:
        """Most recently started jobs first."""

    @abstractmethod
    def clear(self) -> int:
        """Delete all jobs. Returns the number deleted."""


class SignalStore(ABC):
    """Abstract key-value store for trading signals."""

    @abstractmethod
    def insert(self, signal: TradingSignal) -> None:
        """Persist a signal. Raises PersistenceFailure if the id exists."""

    @abstractmethod
    def get(self, signal_id: str) -> TradingSignal | None:
        """Load a signal by id."""

    @abstractmethod
    def latest(self, limit: int = 20) -> list[TradingSignal]:
        """Newest signals first."""

    @abstractmethod
    def clear(self) -> int:
        """Delete all signals. Returns the number deleted."""

    def list_by_symbol(self, symbol: str, limit: int = 5) -> list[TradingSignal]:
        """Newest signals for one symbol."""
        symbol = symbol.upper()
        matches = [s for s in self.latest(limit=0) if s.symbol == symbol]
        return matches[:limit]

    def recent_metrics(self, symbol: str, limit: int = 5) -> list[SocialMetrics]:
        """Metrics history for trend context, newest first."""
        return [s.metrics for s in self.list_by_symbol(symbol, limit=limit)]


class _JsonDirectory:
    """One JSON file per record, written atomically.

    Structure:
        base_dir/
            {record_id}.json
    """

    def __init__(self, base_dir: str | Path):
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self.lock = threading.Lock()

    @staticmethod
    def is_valid_id(record_id: str) -> bool:
        return bool(record_id) and not record_id.startswith(".") and not any(
            c in record_id for c in "/\\\0"
        )

    def path(self, record_id: str) -> Path:
        if not self.is_valid_id(record_id):
            raise PersistenceFailure(f"Invalid record id: {record_id!r}", record_id)
        return self.base_dir / f"{record_id}.json"

    def exists(self, record_id: str) -> bool:
        return self.path(record_id).exists()

    def write(self, record_id: str, data: dict[str, Any]) -> None:
        path = self.path(record_id)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, default=str)
            os.replace(tmp_path, path)
        except OSError as e:
            raise PersistenceFailure(f"Failed to write {path}: {e}", record_id) from e

    def read(self, record_id: str) -> dict[str, Any] | None:
        # Ids that could never be written are simply absent
        if not self.is_valid_id(record_id):
            return None
        path = self.path(record_id)
        if not path.exists():
            return None
        with open(path, encoding="utf-8") as f:
            return json.load(f)

    def read_all(self) -> list[dict[str, Any]]:
        records = []
        for record_file in self.base_dir.glob("*.json"):
            with open(record_file, encoding="utf-8") as f:
                records.append(json.load(f))
        return records

    def clear(self) -> int:
        count = 0
        for record_file in self.base_dir.glob("*.json"):
            record_file.unlink()
            count += 1
        return count


class FileJobStore(JobStore):
    """File-based job storage."""

    def __init__(self, base_dir: str | Path):
        self._dir = _JsonDirectory(base_dir)

    def insert(self, job: Job) -> Job:
        with self._dir.lock:
            if self._dir.exists(job.id):
                raise PersistenceFailure(f"Job {job.id} already exists", job.id)
            self._dir.write(job.id, job.model_dump(mode="json"))
        verbose.detail(f"Job inserted → {job.id}")
        return job

    def update(self, job_id: str, fields: dict[str, Any]) -> Job:
        with self._dir.lock:
            data = self._dir.read(job_id)
            if data is None:
                raise PersistenceFailure(f"Job {job_id} not found", job_id)
            current = Job.model_validate(data)
            updated = Job.model_validate(
                {**current.model_dump(), **fields, "updated_at": utcnow()}
            )
            self._dir.write(job_id, updated.model_dump(mode="json"))
        return updated

    def get(self, job_id: str) -> Job | None:
        data = self._dir.read(job_id)
        return Job.model_validate(data) if data is not None else None

    def list_recent(self, limit: int = 20) -> list[Job]:
        jobs = [Job.model_validate(d) for d in self._dir.read_all()]
        jobs.sort(key=lambda j: j.started_at, reverse=True)
        return jobs[:limit] if limit else jobs

    def clear(self) -> int:
        with self._dir.lock:
            return self._dir.clear()


class FileSignalStore(SignalStore):
    """File-based signal storage."""

    def __init__(self, base_dir: str | Path):
        self._dir = _JsonDirectory(base_dir)

    def insert(self, signal: TradingSignal) -> None:
        with self._dir.lock:
            if self._dir.exists(signal.id):
                raise PersistenceFailure(f"Signal {signal.id} already exists", signal.id)
            self._dir.write(signal.id, signal.model_dump(mode="json"))
        verbose.detail(f"Signal saved → {signal.id}")

    def get(self, signal_id: str) -> TradingSignal | None:
        data = self._dir.read(signal_id)
        return TradingSignal.model_validate(data) if data is not None else None

    def latest(self, limit: int = 20) -> list[TradingSignal]:
        signals = [TradingSignal.model_validate(d) for d in self._dir.read_all()]
        signals.sort(key=lambda s: s.created_at, reverse=True)
        return signals[:limit] if limit else signals

    def clear(self) -> int:
        with self._dir.lock:
            return self._dir.clear()
