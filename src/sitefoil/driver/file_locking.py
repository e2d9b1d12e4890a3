"""
Module: driver.file_locking

Purpose:
    Locked updates of the JSON reports in a report directory. Several runs
    may share one directory (one per site, or repeated runs of the same
    site); each update holds an exclusive portalocker lock for the whole
    read-modify-write so concurrent runs merge instead of clobbering.

Key Functions:
    - locked_read_modify_write_json: Update a JSON report under lock

Dependencies:
    - portalocker: Cross-platform file locking

Used By:
    - driver.timing: TimingLog.save()
    - driver.diagnostics: DiagnosticsReport.save()
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict

import portalocker

logger = logging.getLogger(__name__)

Report = Dict[str, Any]


def _parse_report(text: str, path: Path, default: Callable[[], Report]) -> Report:
    if not text.strip():
        return default()
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        logger.warning(f"Report {path} is not valid JSON ({e}); starting a new one")
        return default()
    if not isinstance(data, dict):
        logger.warning(f"Report {path} does not hold a JSON object; starting a new one")
        return default()
    return data


def locked_read_modify_write_json(
    path: Path,
    modifier: Callable[[Report], Report],
    default: Callable[[], Report] = dict,
) -> Report:
    """
    Apply ``modifier`` to the report at ``path`` while holding an exclusive lock.

    A missing, empty or corrupt report starts from ``default()``.

    Args:
        path: Report file (created with its parent directory if missing)
        modifier: Receives the current report, returns the report to write
        default: Factory for a fresh report

    Returns:
        The report as written

    Example:
        >>> def append_run(report):
        ...     report.setdefault("runs", []).append(run_record)
        ...     return report
        >>> locked_read_modify_write_json(report_dir / "diagnostics.json", append_run)
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    # "a+" creates the file without truncating one another run just wrote
    with open(path, "a+", encoding="utf-8") as f:
        portalocker.lock(f, portalocker.LOCK_EX)
        try:
            f.seek(0)
            report = modifier(_parse_report(f.read(), path, default))
            f.seek(0)
            f.truncate()
            json.dump(report, f, indent=2, ensure_ascii=False)
            f.flush()
        finally:
            portalocker.unlock(f)

    logger.debug(f"Updated report {path.name}")
    return report
