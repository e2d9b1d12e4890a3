"""
Unit Tests for the atomic write queue.
"""

from sitefoil.driver.write_queue import WriteQueue
from sitefoil.engine.errors import OutputWriteFailure


def leftovers(directory):
    return [p.name for p in directory.rglob("*.tmp")]


class TestWriteQueue:
    """Tests for WriteQueue."""

    def test_write_when_queued_then_file_written_without_temp_files(self, tmp_path):
        # Arrange
        target = tmp_path / "out" / "nested" / "page.html"

        # Act
        with WriteQueue(max_workers=2) as queue:
            queue.queue_bytes_write(b"<p>hello</p>", target)
            failures = queue.wait_all()

        # Assert
        assert failures == []
        assert target.read_bytes() == b"<p>hello</p>"
        assert leftovers(tmp_path) == []

    def test_write_when_target_exists_then_replaced(self, tmp_path):
        target = tmp_path / "page.html"
        target.write_bytes(b"old")
        with WriteQueue() as queue:
            queue.queue_bytes_write(b"new", target)
        assert target.read_bytes() == b"new"

    def test_copy_when_queued_then_bytes_identical(self, tmp_path, png_writer):
        source = png_writer(tmp_path / "a.png", color="blue")
        target = tmp_path / "out" / "b.png"
        with WriteQueue() as queue:
            queue.queue_copy(source, target)
            assert queue.wait_all() == []
        assert target.read_bytes() == source.read_bytes()

    def test_write_when_parent_is_file_then_failure_returned(self, tmp_path):
        # Arrange
        (tmp_path / "blocker").write_bytes(b"")
        target = tmp_path / "blocker" / "page.html"

        # Act
        with WriteQueue() as queue:
            queue.queue_bytes_write(b"x", target)
            failures = queue.wait_all()

        # Assert
        assert len(failures) == 1
        path, error = failures[0]
        assert path == target
        assert isinstance(error, OutputWriteFailure)
        assert error.path == target

    def test_copy_when_source_missing_then_failure_and_no_temp_file(self, tmp_path):
        target = tmp_path / "out.png"
        with WriteQueue() as queue:
            queue.queue_copy(tmp_path / "missing.png", target)
            failures = queue.wait_all()
        assert [path for path, _ in failures] == [target]
        assert not target.exists()
        assert leftovers(tmp_path) == []

    def test_write_when_disabled_then_synchronous(self, tmp_path):
        queue = WriteQueue()
        queue.disable()
        try:
            future = queue.queue_bytes_write(b"sync", tmp_path / "a.txt")
            queue.queue_bytes_write(b"x", tmp_path / "a.txt" / "b.txt")
            assert future is None
            assert (tmp_path / "a.txt").read_bytes() == b"sync"
            failures = queue.wait_all()
        finally:
            queue.shutdown()
        assert [path for path, _ in failures] == [tmp_path / "a.txt" / "b.txt"]
