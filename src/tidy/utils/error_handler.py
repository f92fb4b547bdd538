"""
Error types and error bookkeeping for the sorting run.
Provides the exception hierarchy, error categorization and error reports.
"""

import json
import logging
import traceback
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class TidyError(Exception):
    """Base class for all errors raised by tidy."""


class SourceDirectoryError(TidyError):
    """Source directory is missing, unreadable or not a directory."""


class ConfigurationError(TidyError, ValueError):
    """Configuration failed validation."""


class CoordinatorError(TidyError):
    """Directory coordinator was used in the wrong state."""


class ChannelClosedError(CoordinatorError):
    """A request was sent to, or dropped by, a coordinator that is shut down."""


class DirectoryResolutionError(TidyError):
    """A target directory could not be validated or created."""

    def __init__(self, directory: Path, reason: str):
        self.directory = Path(directory)
        self.reason = reason
        super().__init__(f"{directory}: {reason}")


class CopyError(TidyError):
    """A file could not be copied into its target directory."""

    def __init__(self, source: Path, target: Path, cause: Exception):
        self.source = Path(source)
        self.target = Path(target)
        self.cause = cause
        super().__init__(f"{source} -> {target}: {cause}")


class ErrorType(Enum):
    """Categorization of different error types."""

    FATAL = "fatal"
    DIRECTORY_RESOLUTION = "directory_resolution"
    COPY = "copy"
    CHANNEL = "channel"
    UNKNOWN = "unknown"


class ErrorRecord:
    """Record of an error occurrence."""

    def __init__(self, error: Exception, context: str, error_type: ErrorType):
        self.error = error
        self.context = context
        self.error_type = error_type
        self.timestamp = datetime.now()
        self.traceback = "".join(
            traceback.format_exception(type(error), error, error.__traceback__)
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for logging/serialization."""
        return {
            "error": str(self.error),
            "context": self.context,
            "error_type": self.error_type.value,
            "timestamp": self.timestamp.isoformat(),
            "traceback": self.traceback,
        }


class ErrorHandler:
    """Categorize and record errors raised during a run.

    Errors are never retried: directory and copy failures are scoped to a
    single file and only reported.
    """

    def __init__(self):
        self.error_history: List[ErrorRecord] = []
        self.error_counts: Dict[ErrorType, int] = {
            error_type: 0 for error_type in ErrorType
        }

    def handle_error(self, error: Exception, context: str) -> ErrorRecord:
        """Record an error and log it at a level matching its category.

        Args:
            error: The exception to record
            context: Where the error occurred (usually a source file path)

        Returns:
            The stored error record
        """
        error_type = self.categorize_error(error)
        record = ErrorRecord(error, context, error_type)
        self.error_history.append(record)
        self.error_counts[error_type] += 1

        if error_type == ErrorType.FATAL:
            logger.critical(f"Fatal error in {context}: {error}")
        elif error_type in (ErrorType.CHANNEL, ErrorType.UNKNOWN):
            logger.error(f"Unexpected error in {context}: {error}")
            logger.debug(f"Traceback: {record.traceback}")
        else:
            logger.warning(f"Error in {context}: {error}")

        return record

    def categorize_error(self, error: Exception) -> ErrorType:
        """Categorize the error type."""
        if isinstance(error, (SourceDirectoryError, ConfigurationError)):
            return ErrorType.FATAL
        elif isinstance(error, ChannelClosedError):
            return ErrorType.CHANNEL
        elif isinstance(error, DirectoryResolutionError):
            return ErrorType.DIRECTORY_RESOLUTION
        elif isinstance(error, (CopyError, OSError)):
            return ErrorType.COPY
        else:
            return ErrorType.UNKNOWN

    def get_error_statistics(self) -> Dict[str, Any]:
        """Get statistics about errors encountered."""
        return {
            "total_errors": len(self.error_history),
            "error_counts_by_type": {
                error_type.value: count
                for error_type, count in self.error_counts.items()
            },
            "recent_errors": [error.to_dict() for error in self.error_history[-10:]],
        }

    def save_error_report(self, filepath: Path, extra: Optional[Dict] = None):
        """Save a detailed error report to file."""
        report = {
            "generated_at": datetime.now().isoformat(),
            "statistics": self.get_error_statistics(),
            "error_history": [error.to_dict() for error in self.error_history],
        }
        if extra:
            report.update(extra)

        filepath = Path(filepath)
        filepath.parent.mkdir(parents=True, exist_ok=True)
        with open(filepath, "w") as f:
            json.dump(report, f, indent=2, default=str)

        logger.info(f"Error report saved to {filepath}")
