"""
Progress tracking and run summaries for file sorting.
"""

import json
import logging
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from threading import Lock
from typing import Any, Callable, Dict, List, Optional

from tidy.file_access.worker import FileOutcome, FileTask, OutcomeStatus

logger = logging.getLogger(__name__)


def _failure_reason(outcome: FileOutcome) -> str:
    if outcome.error is None:
        return outcome.status.value
    if outcome.status is OutcomeStatus.WORKER_FAILED:
        return f"{type(outcome.error).__name__}: {outcome.error}"
    return str(outcome.error)


@dataclass
class FailureRecord:
    """A file that could not be sorted."""

    source: str
    target: Optional[str]
    reason: str


@dataclass
class Summary:
    """Counts and failures of a finished run."""

    copied: int = 0
    skipped: int = 0
    failed: int = 0
    failures: List[FailureRecord] = field(default_factory=list)
    skipped_files: List[str] = field(default_factory=list)
    duration: float = 0.0

    @property
    def total(self) -> int:
        return self.copied + self.skipped + self.failed

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ProgressTracker:
    """Track progress of concurrent file workers."""

    def __init__(
        self,
        total_files: int,
        console_output: bool = False,
        progress_callback: Optional[Callable] = None,
    ):
        """Initialize progress tracker.

        Args:
            total_files: Total number of files to process
            console_output: Whether to show a console progress bar
            progress_callback: Optional callback for progress updates
        """
        self.total_files = total_files
        self.console_output = console_output
        self.progress_callback = progress_callback
        self.start_time = time.time()
        self.end_time = None
        self.outcomes: List[FileOutcome] = []
        self._summary = Summary()
        self._lock = Lock()

        # Progress display settings
        self.last_update_time = 0
        self.update_interval = 0.1

        logger.debug(f"Progress tracker initialized for {total_files} files")

    @property
    def processed_files(self) -> int:
        return self._summary.total

    def record(self, outcome: FileOutcome):
        """Record the outcome of one file.

        Args:
            outcome: Finished file task
        """
        with self._lock:
            self.outcomes.append(outcome)
            source = str(outcome.task.source_path)

            if outcome.status is OutcomeStatus.COPIED:
                self._summary.copied += 1
            elif outcome.status is OutcomeStatus.SKIPPED:
                self._summary.skipped += 1
                self._summary.skipped_files.append(source)
                logger.debug(f"Skipped (no extension): {source}")
            else:
                self._summary.failed += 1
                self._summary.failures.append(
                    FailureRecord(
                        source=source,
                        target=str(outcome.target_path) if outcome.target_path else None,
                        reason=_failure_reason(outcome),
                    )
                )

            self._update_display()
            stats = self._current_stats()

        if self.progress_callback:
            self.progress_callback(stats)

    def record_failure(self, task: FileTask, error: Exception):
        """Record a file whose worker raised instead of returning an outcome."""
        target = task.target_directory / task.name if task.target_directory else None
        self.record(
            FileOutcome(
                task=task,
                status=OutcomeStatus.WORKER_FAILED,
                target_path=target,
                error=error,
            )
        )

    def _update_display(self):
        current_time = time.time()
        done = self._summary.total >= self.total_files

        # Throttle updates
        if not done and current_time - self.last_update_time < self.update_interval:
            return

        self.last_update_time = current_time

        if self.console_output:
            self._display_progress()

    def _display_progress(self):
        processed = self._summary.total
        percent = (processed / self.total_files) * 100 if self.total_files > 0 else 0

        bar_width = 30
        filled = int(bar_width * percent / 100)
        bar = "█" * filled + "░" * (bar_width - filled)

        print(
            f"\r[{bar}] {percent:5.1f}% | "
            f"{processed}/{self.total_files} | "
            f"✓ {self._summary.copied} ✗ {self._summary.failed} "
            f"⚠ {self._summary.skipped}",
            end="",
            flush=True,
        )

    def _current_stats(self) -> Dict[str, Any]:
        return {
            "total_files": self.total_files,
            "processed_files": self._summary.total,
            "copied": self._summary.copied,
            "skipped": self._summary.skipped,
            "failed": self._summary.failed,
        }

    def finish(self):
        """Mark the end of processing."""
        with self._lock:
            self.end_time = time.time()
            if self.console_output and self.total_files:
                print()  # New line after progress

            logger.info(
                f"Summary - Copied: {self._summary.copied}, "
                f"Skipped: {self._summary.skipped}, "
                f"Failed: {self._summary.failed}"
            )

    def get_summary(self) -> Summary:
        """Get a snapshot of the run summary."""
        with self._lock:
            end = self.end_time or time.time()
            return Summary(
                copied=self._summary.copied,
                skipped=self._summary.skipped,
                failed=self._summary.failed,
                failures=list(self._summary.failures),
                skipped_files=list(self._summary.skipped_files),
                duration=end - self.start_time,
            )

    def save_report(self, report_path: str, extra: Optional[Dict[str, Any]] = None):
        """Save processing report to a JSON file.

        Args:
            report_path: Path to save the report
            extra: Additional top-level entries for the report
        """
        summary = self.get_summary()
        report = {
            "generated_at": datetime.now().isoformat(),
            "summary": summary.to_dict(),
            "files": [
                {
                    "source": str(outcome.task.source_path),
                    "status": outcome.status.value,
                    "target": str(outcome.target_path) if outcome.target_path else None,
                    "error": _failure_reason(outcome) if outcome.error else None,
                }
                for outcome in list(self.outcomes)
            ],
        }
        if extra:
            report.update(extra)

        path = Path(report_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(report, f, indent=2, default=str)

        logger.info(f"Report saved to: {report_path}")
