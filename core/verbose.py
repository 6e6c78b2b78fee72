"""Console trace for analysis jobs, gated by a process-wide level.

configure() is called once by the CLI or API process; everything else
prints only when the level allows it.

    1 (INFO)  header, stage, stage_end, progress
    2 (DEBUG) adds step
    3 (TRACE) adds detail
"""

from __future__ import annotations

from enum import IntEnum

_level: int = 0


class Level(IntEnum):
    OFF = 0
    INFO = 1
    DEBUG = 2
    TRACE = 3


def configure(level: int) -> None:
    global _level
    _level = max(Level.OFF, min(Level.TRACE, int(level)))


def _emit(min_level: Level, line: str) -> None:
    if _level >= min_level:
        print(line)


def header(text: str) -> None:
    _emit(Level.INFO, f"\n═══ {text} ═══\n")


def stage(name: str, description: str) -> None:
    _emit(Level.INFO, f"── {name}: {description} ──")


def stage_end(name: str, items_out: int, errors: int, duration: float) -> None:
    _emit(Level.INFO, f"── {name} done: {items_out} out, {errors} errors in {duration:.2f}s ──\n")


def progress(percentage: int, step_name: str, message: str) -> None:
    """One bar line per persisted job update."""
    filled = max(0, min(10, percentage // 10))
    bar = "█" * filled + "░" * (10 - filled)
    _emit(Level.INFO, f"  [{bar}] {percentage:3d}% {step_name}: {message}")


def step(text: str) -> None:
    _emit(Level.DEBUG, f"  {text}")


def detail(text: str) -> None:
    _emit(Level.TRACE, f"    {text}")
