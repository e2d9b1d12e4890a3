"""
Module: driver.diagnostics

Captures per-file problems during a site run (unreadable inputs,
verbatim fallbacks, write failures) and generates a diagnostics report.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List


logger = logging.getLogger(__name__)


class IssueType(str, Enum):
    """Kinds of per-file problems."""
    UNREADABLE_INPUT = "unreadable_input"
    REASSEMBLY_FALLBACK = "reassembly_fallback"
    PROCESSING_FALLBACK = "processing_fallback"
    WRITE_FAILURE = "write_failure"

    def __str__(self) -> str:
        return self.value

    @property
    def drops_output(self) -> bool:
        """True when the file is missing from the output tree."""
        return self in (IssueType.UNREADABLE_INPUT, IssueType.WRITE_FAILURE)


@dataclass(frozen=True)
class FileIssue:
    """
    A single per-file problem.

    Fields:
    - phase: "inventory", "mutation" or "write"
    - path: Root-relative path of the file
    """
    issue_type: IssueType
    path: str
    phase: str
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "issue_type": str(self.issue_type),
            "path": self.path,
            "phase": self.phase,
            "message": self.message,
        }


class DiagnosticsCollector:
    """
    Thread-safe collector for file issues.

    Workers add issues as they go; the pipeline reads them once the run
    has finished.
    """

    def __init__(self):
        self._issues: List[FileIssue] = []
        self._lock = threading.Lock()

    def add_issue(self, issue_type: IssueType, path: str, phase: str, message: str) -> FileIssue:
        """Record an issue and return it."""
        issue = FileIssue(issue_type=issue_type, path=path, phase=phase, message=message)
        with self._lock:
            self._issues.append(issue)
        return issue

    @property
    def issues(self) -> List[FileIssue]:
        with self._lock:
            return sorted(self._issues, key=lambda i: (i.path, i.phase, str(i.issue_type)))

    def generate_report(self, seed: int, input_root: Path) -> "DiagnosticsReport":
        return DiagnosticsReport.from_issues(self.issues, seed=seed, input_root=str(input_root))


@dataclass
class DiagnosticsReport:
    """Complete diagnostics report for one run."""
    generated_at: str
    input_root: str
    seed: int
    total_issues: int
    summary_by_type: Dict[str, int]
    issues: List[FileIssue]

    @classmethod
    def from_issues(cls, issues: List[FileIssue], seed: int, input_root: str) -> "DiagnosticsReport":
        summary_by_type: Dict[str, int] = {}
        for issue in issues:
            key = str(issue.issue_type)
            summary_by_type[key] = summary_by_type.get(key, 0) + 1

        return cls(
            generated_at=datetime.now(timezone.utc).isoformat(),
            input_root=input_root,
            seed=seed,
            total_issues=len(issues),
            summary_by_type=summary_by_type,
            issues=issues,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generated_at": self.generated_at,
            "input_root": self.input_root,
            "seed": self.seed,
            "total_issues": self.total_issues,
            "summary_by_type": self.summary_by_type,
            "issues": [issue.to_dict() for issue in self.issues],
        }

    def save(self, path: Path) -> None:
        """Append this run to the report at ``path`` under a file lock."""
        from .file_locking import locked_read_modify_write_json

        def append_run(existing: Dict[str, Any]) -> Dict[str, Any]:
            existing.setdefault("runs", []).append(self.to_dict())
            return existing

        locked_read_modify_write_json(path, append_run, default=lambda: {"runs": []})
        logger.info(f"Diagnostics saved: {path}")
