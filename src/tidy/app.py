"""
Main application controller for tidy.
Validates the source, runs one worker per file against a shared directory
coordinator and summarizes the run.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from tidy.coordination import DirectoryCoordinator
from tidy.file_access.classifier import target_dir_for
from tidy.file_access.local_accessor import FileInfo, FileSystemAccessor
from tidy.file_access.worker import FileOutcome, FileTask, FileWorker, OutcomeStatus
from tidy.utils.config_manager import ConfigManager
from tidy.utils.error_handler import ErrorHandler, SourceDirectoryError
from tidy.utils.logging_config import setup_logging
from tidy.utils.progress import FailureRecord, ProgressTracker, Summary

logger = logging.getLogger(__name__)

__all__ = ["TidyApp", "Summary", "FailureRecord"]


class TidyApp:
    """Sort the files of a directory into extension-named subdirectories."""

    def __init__(
        self,
        config_file: Optional[Union[str, Path]] = None,
        overrides: Optional[Dict[str, Any]] = None,
        configure_logging: bool = True,
    ):
        """Initialize the application.

        Args:
            config_file: Path to a JSON or YAML configuration file
            overrides: Dotted-path configuration overrides
            configure_logging: Whether initialize() sets up logging handlers
        """
        self.config_file = config_file
        self.overrides = overrides or {}
        self.configure_logging = configure_logging
        self.config_manager: Optional[ConfigManager] = None
        self.config: Optional[Dict[str, Any]] = None
        self.error_handler = ErrorHandler()
        self.coordinator: Optional[DirectoryCoordinator] = None
        self.progress_tracker: Optional[ProgressTracker] = None
        self._is_initialized = False

    def initialize(self):
        """Load configuration and set up logging."""
        if self._is_initialized:
            return

        self.config_manager = ConfigManager(
            config_file=Path(self.config_file) if self.config_file else None,
            overrides=self.overrides,
        )
        self.config = self.config_manager.config

        if self.configure_logging:
            log_config = self.config["logging"]
            setup_logging(
                log_level=log_config["level"],
                log_file=log_config.get("file"),
                fmt=log_config.get("format"),
                max_size=log_config.get("max_size", 10 * 1024 * 1024),
                backup_count=log_config.get("backup_count", 5),
            )

        self._is_initialized = True
        logger.debug("Application initialized")

    def run(
        self,
        source_dir: Union[str, Path],
        target_root: Optional[Union[str, Path]] = None,
    ) -> Summary:
        """Sort every regular file of ``source_dir`` into ``target_root``.

        Args:
            source_dir: Directory whose immediate files are sorted
            target_root: Root of the extension directories; defaults to
                ``sorting.output_directory``

        Returns:
            Summary of copied, skipped and failed files

        Raises:
            SourceDirectoryError: If the source cannot be read (fatal)
            CoordinatorError: If the directory coordinator cannot start
        """
        if not self._is_initialized:
            self.initialize()

        if not source_dir:
            raise SourceDirectoryError("No source directory given")
        if target_root is None:
            target_root = self.config_manager.get("sorting.output_directory")
        target_root = Path(target_root)

        accessor = FileSystemAccessor(source_dir)

        self.coordinator = DirectoryCoordinator(
            channel_capacity=self.config_manager.get("concurrency.channel_capacity")
        )
        self.coordinator.start()
        logger.info(f"Sorting {accessor.root_directory} into {target_root}")

        try:
            files = accessor.scan_directory()
            tasks = [self._build_task(file, target_root) for file in files]

            self.progress_tracker = ProgressTracker(
                len(tasks),
                console_output=self.config_manager.get("ui.show_progress", False),
            )
            self._run_workers(tasks)
        finally:
            # Every worker has its reply by now.
            self.coordinator.shutdown()
            if self.progress_tracker:
                self.progress_tracker.finish()

        summary = self.progress_tracker.get_summary()

        report_path = self.config_manager.get("report.path")
        if report_path:
            self._save_report(report_path, accessor.root_directory, target_root)

        errors_path = self.config_manager.get("report.errors_path")
        if errors_path:
            self.error_handler.save_error_report(
                Path(errors_path),
                extra={
                    "source_directory": str(accessor.root_directory),
                    "target_root": str(target_root),
                },
            )

        return summary

    def _build_task(self, file: FileInfo, target_root: Path) -> FileTask:
        return FileTask(
            source_path=Path(file.path),
            name=file.name,
            target_directory=target_dir_for(target_root, file.path),
        )

    def _run_workers(self, tasks: List[FileTask]):
        """Run one worker per task and record every outcome.

        A failing worker never cancels the others.
        """
        tracker = self.progress_tracker
        worker = FileWorker(
            self.coordinator,
            verify_integrity=self.config_manager.get("copy.verify_integrity"),
            preserve_metadata=self.config_manager.get("copy.preserve_metadata"),
        )

        pending = []
        for task in tasks:
            if task.skipped:
                tracker.record(FileOutcome(task=task, status=OutcomeStatus.SKIPPED))
            else:
                pending.append(task)

        if not pending:
            return

        max_workers = self.config_manager.get("concurrency.max_workers")
        with ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="tidy-worker"
        ) as executor:
            future_to_task = {executor.submit(worker.run, task): task for task in pending}

            for future in as_completed(future_to_task):
                task = future_to_task[future]
                try:
                    outcome = future.result()
                except Exception as e:
                    self.error_handler.handle_error(e, str(task.source_path))
                    tracker.record_failure(task, e)
                    continue

                if outcome.failed:
                    self.error_handler.handle_error(outcome.error, str(task.source_path))
                tracker.record(outcome)

    def _save_report(self, report_path: str, source_dir: Path, target_root: Path):
        self.progress_tracker.save_report(
            report_path,
            extra={
                "source_directory": str(source_dir),
                "target_root": str(target_root),
                "directories": self.coordinator.stats.to_dict(),
                "errors": self.error_handler.get_error_statistics(),
            },
        )
