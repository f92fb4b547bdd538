"""
Per-file worker: secures the target directory, then copies the file into it.
"""

import hashlib
import logging
import shutil
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from tidy.coordination.coordinator import DirectoryCoordinator
from tidy.utils.error_handler import CopyError, DirectoryResolutionError

logger = logging.getLogger(__name__)


@dataclass
class FileTask:
    """A single file to sort."""

    source_path: Path
    name: str
    target_directory: Optional[Path]  # None when the file is skipped

    @property
    def skipped(self) -> bool:
        return self.target_directory is None


class OutcomeStatus(Enum):
    """How a file task ended."""

    COPIED = "copied"
    SKIPPED = "skipped"
    DIRECTORY_FAILED = "directory_failed"
    COPY_FAILED = "copy_failed"
    WORKER_FAILED = "worker_failed"  # the worker raised instead of returning


@dataclass
class FileOutcome:
    """Result of running one file task."""

    task: FileTask
    status: OutcomeStatus
    target_path: Optional[Path] = None
    error: Optional[Exception] = None

    @property
    def success(self) -> bool:
        return self.status is OutcomeStatus.COPIED

    @property
    def failed(self) -> bool:
        return self.status in (
            OutcomeStatus.DIRECTORY_FAILED,
            OutcomeStatus.COPY_FAILED,
            OutcomeStatus.WORKER_FAILED,
        )


class FileWorker:
    """Copy files into directories guaranteed by a DirectoryCoordinator."""

    def __init__(
        self,
        coordinator: DirectoryCoordinator,
        verify_integrity: bool = False,
        preserve_metadata: bool = True,
    ):
        """Initialize the worker.

        Args:
            coordinator: Coordinator that owns target directory creation
            verify_integrity: Compare SHA-256 checksums after each copy
            preserve_metadata: Copy timestamps and permission bits as well
        """
        self.coordinator = coordinator
        self.verify_integrity = verify_integrity
        self.preserve_metadata = preserve_metadata

    def run(self, task: FileTask) -> FileOutcome:
        """Sort a single file.

        Directory and copy failures are returned as outcomes. A failure of
        the coordinator channel itself propagates.

        Args:
            task: File to sort

        Returns:
            Outcome of the task

        Raises:
            ChannelClosedError: If the coordinator is not accepting requests
        """
        if task.skipped:
            return FileOutcome(task=task, status=OutcomeStatus.SKIPPED)

        reply = self.coordinator.request(task.target_directory)
        result = reply.result()

        if not result.success:
            error = DirectoryResolutionError(result.directory, result.reason)
            logger.warning(f"Skipping copy of {task.source_path}: {error}")
            return FileOutcome(
                task=task,
                status=OutcomeStatus.DIRECTORY_FAILED,
                target_path=result.directory / task.name,
                error=error,
            )

        target = result.directory / task.name
        try:
            self._copy_file(task.source_path, target)
        except (OSError, ValueError) as e:
            # A partially written target is left in place.
            error = CopyError(task.source_path, target, e)
            logger.error(f"Failed to copy {task.source_path}: {e}")
            return FileOutcome(
                task=task,
                status=OutcomeStatus.COPY_FAILED,
                target_path=target,
                error=error,
            )

        logger.info(f"Copied: {task.source_path} -> {target}")
        return FileOutcome(task=task, status=OutcomeStatus.COPIED, target_path=target)

    def _copy_file(self, source: Path, target: Path):
        checksum_before = None
        if self.verify_integrity:
            checksum_before = self._calculate_checksum(source)

        if self.preserve_metadata:
            shutil.copy2(str(source), str(target))
        else:
            shutil.copyfile(str(source), str(target))

        if checksum_before and checksum_before != self._calculate_checksum(target):
            raise ValueError("File integrity check failed after copy")

    def _calculate_checksum(self, file_path: Path) -> str:
        """Calculate SHA256 checksum of a file."""
        sha256_hash = hashlib.sha256()

        with open(file_path, "rb") as f:
            for chunk in iter(lambda: f.read(4096), b""):
                sha256_hash.update(chunk)

        return sha256_hash.hexdigest()
