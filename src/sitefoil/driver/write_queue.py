"""
Module: driver.write_queue

Purpose:
    Async file writing queue for non-blocking I/O during the mutation
    phase. Every write is atomic: content goes to a temporary file in the
    target directory which then replaces the target, so a reader never
    sees a partially written file.

Key Classes:
    - WriteQueue: Thread pool-based async write queue

Dependencies:
    - concurrent.futures: Thread pool execution

Used By:
    - driver.pipeline: Queue writes during the mutation phase
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional, Tuple

from sitefoil.engine.errors import OutputWriteFailure

logger = logging.getLogger(__name__)


class WriteQueue:
    """
    Thread pool-based async write queue for file I/O.

    Usage:
        queue = WriteQueue(max_workers=4)
        try:
            for site_file in files:
                # ... processing ...
                queue.queue_bytes_write(data, path)
            failures = queue.wait_all()
        finally:
            queue.shutdown()

    Attributes:
        max_workers: Maximum concurrent write threads.
    """

    def __init__(self, max_workers: int = 4):
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="sitefoil-write")
        self._pending: List[Tuple[Path, Future]] = []
        self._sync_failures: List[Tuple[Path, OutputWriteFailure]] = []
        self._enabled = True

    def queue_bytes_write(self, data: bytes, path: Path) -> Optional[Future]:
        """
        Queue writing ``data`` to ``path``.

        Returns:
            Future object if queued, None if queue disabled.
        """
        return self._submit(path, _write_bytes_sync, data, path)

    def queue_copy(self, source: Path, path: Path) -> Optional[Future]:
        """
        Queue copying ``source`` to ``path`` byte-for-byte.

        Returns:
            Future object if queued, None if queue disabled.
        """
        return self._submit(path, _copy_sync, source, path)

    def _submit(self, path: Path, fn, *args) -> Optional[Future]:
        if not self._enabled:
            # Synchronous fallback
            try:
                fn(*args)
            except OutputWriteFailure as e:
                logger.error(f"Write failed: {e}")
                self._sync_failures.append((path, e))
            return None

        future = self._executor.submit(fn, *args)
        self._pending.append((path, future))
        return future

    def wait_all(self, timeout: Optional[float] = None) -> List[Tuple[Path, OutputWriteFailure]]:
        """
        Wait for all queued writes to complete.

        Args:
            timeout: Max seconds to wait per write (None = indefinite).

        Returns:
            (target path, error) for every write that failed.
        """
        failures = list(self._sync_failures)
        for path, future in self._pending:
            try:
                future.result(timeout=timeout)
            except OutputWriteFailure as e:
                logger.error(f"Write failed: {e}", extra={"path": str(path)})
                failures.append((path, e))
        self._pending.clear()
        self._sync_failures.clear()
        return failures

    def shutdown(self) -> None:
        """Shutdown the thread pool."""
        self.wait_all()
        self._executor.shutdown(wait=True)

    def disable(self) -> None:
        """Disable async writes (use synchronous mode)."""
        self._enabled = False

    def __enter__(self) -> "WriteQueue":
        return self

    def __exit__(self, *args) -> None:
        self.shutdown()


def _atomic_target(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        mode="wb",
        prefix=f".{path.name}.",
        suffix=".tmp",
        dir=path.parent,
        delete=False,
    ) as f:
        return Path(f.name)


def _write_bytes_sync(data: bytes, path: Path) -> None:
    """Synchronous atomic bytes write."""
    temp_path = None
    try:
        temp_path = _atomic_target(path)
        temp_path.write_bytes(data)
        temp_path.replace(path)
    except OSError as e:
        if temp_path is not None:
            temp_path.unlink(missing_ok=True)
        raise OutputWriteFailure(path, e.strerror or str(e)) from e


def _copy_sync(source: Path, path: Path) -> None:
    """Synchronous atomic copy."""
    temp_path = None
    try:
        temp_path = _atomic_target(path)
        shutil.copyfile(source, temp_path)
        temp_path.replace(path)
    except OSError as e:
        if temp_path is not None:
            temp_path.unlink(missing_ok=True)
        raise OutputWriteFailure(path, e.strerror or str(e)) from e
