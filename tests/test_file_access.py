"""
Tests for source scanning, classification and the file worker.
"""

import pytest
import shutil
import tempfile
from pathlib import Path
from unittest.mock import Mock

from tidy.coordination import DirectoryCoordinator
from tidy.file_access.classifier import extension_of, target_dir_for
from tidy.file_access.local_accessor import FileSystemAccessor
from tidy.file_access.worker import FileTask, FileWorker, OutcomeStatus
from tidy.utils.error_handler import (
    ChannelClosedError,
    CopyError,
    DirectoryResolutionError,
    SourceDirectoryError,
)


class TestClassifier:
    """Test extension extraction and target resolution."""

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("a.txt", "txt"),
            ("photo.JPG", "JPG"),
            ("archive.tar.gz", "gz"),
            (".config.yaml", "yaml"),
            ("readme", None),
            (".bashrc", None),
            ("trailing.", None),
        ],
    )
    def test_extension_of(self, name, expected):
        assert extension_of(name) == expected

    def test_target_dir_for_extension(self):
        assert target_dir_for("sorted", "/tmp/in/a.txt") == Path("sorted") / "txt"
        assert target_dir_for(Path("/out"), "c.md") == Path("/out/md")

    def test_target_dir_preserves_case(self):
        assert target_dir_for("sorted", "IMG_001.JPG") == Path("sorted/JPG")

    def test_no_extension_is_skipped(self):
        assert target_dir_for("sorted", "/tmp/in/readme") is None

    def test_only_file_name_is_inspected(self):
        assert target_dir_for("sorted", "/tmp/some.dir/readme") is None


class TestFileSystemAccessor:
    """Test source directory validation and scanning."""

    @pytest.fixture
    def source_dir(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            source = Path(temp_dir)
            for name in ["b.txt", "a.txt", "c.md", "readme"]:
                (source / name).write_text(f"content of {name}")
            nested = source / "nested"
            nested.mkdir()
            (nested / "deep.txt").write_text("not scanned")
            yield source

    def test_missing_directory(self, source_dir):
        with pytest.raises(SourceDirectoryError, match="does not exist"):
            FileSystemAccessor(source_dir / "missing")

    def test_file_is_not_a_directory(self, source_dir):
        with pytest.raises(SourceDirectoryError, match="not a directory"):
            FileSystemAccessor(source_dir / "a.txt")

    def test_scan_is_not_recursive(self, source_dir):
        files = FileSystemAccessor(source_dir).scan_directory()

        assert [f.name for f in files] == ["a.txt", "b.txt", "c.md", "readme"]
        assert files[0].extension == "txt"
        assert files[3].extension is None
        assert files[0].size == len("content of a.txt")

    def test_directory_stats(self, source_dir):
        stats = FileSystemAccessor(source_dir).get_directory_stats()

        assert stats["total_files"] == 4
        assert stats["without_extension"] == 1
        assert stats["by_extension"] == {"txt": 2, "md": 1}


class TestFileWorker:
    """Test FileWorker outcomes."""

    @pytest.fixture
    def temp_dirs(self):
        with tempfile.TemporaryDirectory() as source_dir:
            with tempfile.TemporaryDirectory() as target_dir:
                yield Path(source_dir), Path(target_dir)

    @pytest.fixture
    def coordinator(self):
        coordinator = DirectoryCoordinator()
        coordinator.start()
        yield coordinator
        coordinator.shutdown(timeout=5)

    def _task(self, source_dir: Path, target_dir: Path, name: str) -> FileTask:
        source = source_dir / name
        if not source.exists():
            source.write_text(f"content of {name}")
        return FileTask(
            source_path=source,
            name=name,
            target_directory=target_dir_for(target_dir, source),
        )

    def test_copies_file(self, temp_dirs, coordinator):
        source_dir, target_dir = temp_dirs
        task = self._task(source_dir, target_dir, "a.txt")

        outcome = FileWorker(coordinator).run(task)

        assert outcome.status is OutcomeStatus.COPIED
        assert outcome.success
        assert outcome.target_path == target_dir / "txt" / "a.txt"
        assert outcome.target_path.read_text() == "content of a.txt"
        assert task.source_path.exists()

    def test_overwrites_existing_target(self, temp_dirs, coordinator):
        source_dir, target_dir = temp_dirs
        (target_dir / "txt").mkdir()
        (target_dir / "txt" / "a.txt").write_text("old")
        task = self._task(source_dir, target_dir, "a.txt")

        outcome = FileWorker(coordinator).run(task)

        assert outcome.success
        assert outcome.target_path.read_text() == "content of a.txt"

    def test_skipped_task_does_not_contact_coordinator(self, temp_dirs):
        source_dir, target_dir = temp_dirs
        coordinator = Mock(spec=DirectoryCoordinator)
        task = self._task(source_dir, target_dir, "readme")

        outcome = FileWorker(coordinator).run(task)

        assert outcome.status is OutcomeStatus.SKIPPED
        assert not outcome.failed
        coordinator.request.assert_not_called()

    def test_directory_failure(self, temp_dirs, coordinator):
        source_dir, target_dir = temp_dirs
        (target_dir / "txt").write_text("plain file")
        task = self._task(source_dir, target_dir, "a.txt")

        outcome = FileWorker(coordinator).run(task)

        assert outcome.status is OutcomeStatus.DIRECTORY_FAILED
        assert outcome.failed
        assert isinstance(outcome.error, DirectoryResolutionError)
        assert outcome.error.reason == "not a directory"
        assert (target_dir / "txt").read_text() == "plain file"

    def test_copy_failure(self, temp_dirs, coordinator):
        source_dir, target_dir = temp_dirs
        task = self._task(source_dir, target_dir, "gone.txt")
        task.source_path.unlink()

        outcome = FileWorker(coordinator).run(task)

        assert outcome.status is OutcomeStatus.COPY_FAILED
        assert isinstance(outcome.error, CopyError)
        assert outcome.error.source == task.source_path
        assert outcome.error.target == target_dir / "txt" / "gone.txt"
        assert isinstance(outcome.error.cause, FileNotFoundError)

    def test_integrity_mismatch_is_a_copy_failure(self, temp_dirs, coordinator, mocker):
        source_dir, target_dir = temp_dirs
        task = self._task(source_dir, target_dir, "a.txt")
        worker = FileWorker(coordinator, verify_integrity=True)
        mocker.patch.object(worker, "_calculate_checksum", side_effect=["aaa", "bbb"])

        outcome = worker.run(task)

        assert outcome.status is OutcomeStatus.COPY_FAILED
        assert "integrity" in str(outcome.error)

    def test_integrity_check_passes(self, temp_dirs, coordinator):
        source_dir, target_dir = temp_dirs
        task = self._task(source_dir, target_dir, "a.txt")

        outcome = FileWorker(coordinator, verify_integrity=True).run(task)

        assert outcome.success

    def test_copy_without_metadata(self, temp_dirs, coordinator, mocker):
        source_dir, target_dir = temp_dirs
        task = self._task(source_dir, target_dir, "a.txt")
        copy2 = mocker.spy(shutil, "copy2")

        outcome = FileWorker(coordinator, preserve_metadata=False).run(task)

        assert outcome.success
        assert copy2.call_count == 0

    def test_closed_channel_propagates(self, temp_dirs):
        source_dir, target_dir = temp_dirs
        coordinator = DirectoryCoordinator()
        task = self._task(source_dir, target_dir, "a.txt")

        with pytest.raises(ChannelClosedError):
            FileWorker(coordinator).run(task)
