"""
Module: driver

Purpose:
    Corpus driver: walks a site, runs the inventory and mutation phases
    over it in parallel, and mirrors the result into an output tree.

Key Functions:
    - run_site(): Transform a site
    - build_maze(): Write static maze pages

Key Classes:
    - RunConfig: Run configuration
    - RunResult / RunStatus: Outcome of a run
"""

from .classification import classify, classify_file
from .config import RunConfig
from .diagnostics import DiagnosticsCollector, FileIssue, IssueType
from .pipeline import RunResult, RunStatus, build_maze, run_site
from .walker import discover

__all__ = [
    "DiagnosticsCollector",
    "FileIssue",
    "IssueType",
    "RunConfig",
    "RunResult",
    "RunStatus",
    "build_maze",
    "classify",
    "classify_file",
    "discover",
    "run_site",
]
