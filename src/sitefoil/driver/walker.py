"""
Module: driver.walker

Purpose:
    Site discovery: recursive, deterministic listing of files and
    directories under a root. Symbolic links are not followed.

Key Functions:
    - discover(): Classified SiteFiles sorted by relative path
    - discover_directories(): Relative directories to mirror

Used By:
    - driver.pipeline: Discovery step of run_site() and build_maze()
"""

from __future__ import annotations

import logging
import os
from pathlib import Path, PurePosixPath
from typing import Iterator, List, Optional

from sitefoil.core.models import SiteFile
from sitefoil.engine.errors import UnreadableInput

from .classification import classify_file
from .diagnostics import DiagnosticsCollector, IssueType

logger = logging.getLogger(__name__)


def _walk(root: Path) -> Iterator[tuple]:
    for dirpath, dirnames, filenames in os.walk(root, followlinks=False):
        base = Path(dirpath)
        # Prune in place so os.walk neither descends into links nor varies in order
        dirnames[:] = sorted(d for d in dirnames if not (base / d).is_symlink())
        yield base, dirnames, sorted(filenames)


def _relative(root: Path, path: Path) -> PurePosixPath:
    return PurePosixPath(path.relative_to(root).as_posix())


def discover_directories(root: Path) -> List[PurePosixPath]:
    """Every directory under ``root`` (excluding root itself), sorted."""
    directories = []
    for base, dirnames, _ in _walk(root):
        directories.extend(_relative(root, base / d) for d in dirnames)
    return sorted(directories)


def discover(
    root: Path,
    diagnostics: Optional[DiagnosticsCollector] = None,
    phase: str = "discovery",
) -> List[SiteFile]:
    """
    List and classify every regular file under ``root``.

    Unreadable files are logged, recorded in ``diagnostics`` and left out.

    Args:
        root: Site root directory
        diagnostics: Optional collector for unreadable files
        phase: Phase name recorded with issues

    Returns:
        SiteFiles sorted by relative path

    Example:
        >>> [f.asset_id for f in discover(Path("site"))]
        ['about.html', 'img/logo.png', 'index.html']
    """
    files: List[SiteFile] = []
    for base, _, filenames in _walk(root):
        for name in filenames:
            path = base / name
            if path.is_symlink() or not path.is_file():
                logger.debug(f"Skipping non-regular file {path}")
                continue
            relative = _relative(root, path)
            try:
                kind = classify_file(path)
            except UnreadableInput as e:
                logger.warning(f"Skipping unreadable file: {e}", extra={"path": relative.as_posix()})
                if diagnostics is not None:
                    diagnostics.add_issue(IssueType.UNREADABLE_INPUT, relative.as_posix(), phase, e.reason)
                continue
            files.append(SiteFile(path=path, relative=relative, kind=kind))

    files.sort(key=lambda f: f.asset_id)
    logger.debug(f"Discovered {len(files)} files under {root}")
    return files
