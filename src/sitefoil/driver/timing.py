"""
Module: driver.timing

Purpose:
    Timing instrumentation for the site pipeline: run-level phases
    (discovery, inventory, mutation, writing) and per-file durations.

Key Classes:
    - TimingLog: Collects run-level and per-file timings

Key Functions:
    - timed_phase: Context manager for timing code blocks

Dependencies:
    - time (std)
    - contextlib (std)
    - driver.file_locking: Merged saves

Used By:
    - driver.pipeline: Main site orchestrator
"""

from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Generator, List, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass
class TimingLog:
    """
    Timing metrics for a site run.

    Attributes:
        phase_timings: Dict of phase_name -> duration_seconds
        file_timings: Dict of relative_path -> {phase_name -> duration_seconds}

    Example:
        >>> log = TimingLog()
        >>> log.log_phase("inventory", 0.234)
        >>> log.log_file("docs/index.html", "mutate", 0.012)
        >>> print(log.summary())
    """
    phase_timings: Dict[str, float] = field(default_factory=dict)
    file_timings: Dict[str, Dict[str, float]] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def log_phase(self, phase: str, duration: float) -> None:
        """Log a run-level timing metric."""
        with self._lock:
            self.phase_timings[phase] = duration

    def log_file(self, file_id: str, phase: str, duration: float) -> None:
        """Log a per-file timing metric (called from worker threads)."""
        with self._lock:
            self.file_timings.setdefault(file_id, {})[phase] = duration

    def get_slowest_files(self, n: int = 3) -> List[Tuple[str, float]]:
        """Get the N slowest files with their total time."""
        with self._lock:
            totals = [(fid, sum(phases.values())) for fid, phases in self.file_timings.items()]
        totals.sort(key=lambda x: x[1], reverse=True)
        return totals[:n]

    def summary(self) -> str:
        """Generate human-readable timing summary."""
        lines = ["", "=== Site Timing Summary ==="]
        for phase, duration in self.phase_timings.items():
            lines.append(f"  {phase:25s} {duration:.3f}s")

        slowest = self.get_slowest_files(3)
        if slowest:
            lines.append("")
            lines.append("Slowest files:")
            for fid, total in slowest:
                lines.append(f"  {fid}: {total:.3f}s")

        lines.append("")
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """Export timing data as dictionary."""
        return {
            "phase_timings": dict(self.phase_timings),
            "file_timings": {fid: dict(phases) for fid, phases in self.file_timings.items()},
            "slowest_files": [
                {"path": fid, "total": total} for fid, total in self.get_slowest_files(5)
            ],
        }

    def save(self, path: Path) -> None:
        """
        Save timing data to JSON file.

        Uses file locking to merge with timing data already written by other
        runs sharing the report directory.
        """
        from .file_locking import locked_read_modify_write_json

        def merge_timing_data(existing: Dict[str, Any]) -> Dict[str, Any]:
            existing.setdefault("phase_timings", {}).update(self.phase_timings)
            existing.setdefault("file_timings", {}).update(self.to_dict()["file_timings"])

            totals = [
                (fid, sum(phases.values()))
                for fid, phases in existing["file_timings"].items()
            ]
            totals.sort(key=lambda x: x[1], reverse=True)
            existing["slowest_files"] = [{"path": fid, "total": total} for fid, total in totals[:5]]
            return existing

        locked_read_modify_write_json(
            path,
            merge_timing_data,
            default=lambda: {"phase_timings": {}, "file_timings": {}},
        )
        logger.debug(f"Merged timing data to {path}")


@contextmanager
def timed_phase(
    log: TimingLog,
    phase: str,
    file_id: Optional[str] = None,
) -> Generator[None, None, None]:
    """
    Context manager for timing a code phase.

    Args:
        log: TimingLog instance to record metrics
        phase: Name of the phase being timed
        file_id: If provided, records as a per-file metric;
                 otherwise records as a run-level metric

    Example:
        >>> log = TimingLog()
        >>> with timed_phase(log, "inventory"):
        ...     builder = scan_all(files)
        >>> with timed_phase(log, "mutate", file_id="index.html"):
        ...     result = mutate_content(...)
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed = time.perf_counter() - start
        if file_id:
            log.log_file(file_id, phase, elapsed)
        else:
            log.log_phase(phase, elapsed)
