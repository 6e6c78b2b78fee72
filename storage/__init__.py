"""Storage layer: job and signal record stores plus the write stage."""

from storage.store import FileJobStore, FileSignalStore, JobStore, SignalStore
from storage.writer import write_all

__all__ = [
    "FileJobStore",
    "FileSignalStore",
    "JobStore",
    "SignalStore",
    "write_all",
]
