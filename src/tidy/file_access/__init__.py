"""
Source scanning, classification and per-file copy workers.
"""

from .classifier import extension_of, target_dir_for
from .local_accessor import FileInfo, FileSystemAccessor
from .worker import FileOutcome, FileTask, FileWorker, OutcomeStatus

__all__ = [
    "extension_of",
    "target_dir_for",
    "FileInfo",
    "FileSystemAccessor",
    "FileOutcome",
    "FileTask",
    "FileWorker",
    "OutcomeStatus",
]
