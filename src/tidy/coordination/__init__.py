"""
Directory coordination for concurrent file workers.
"""

from .coordinator import (
    CoordinatorState,
    CoordinatorStats,
    DirectoryCoordinator,
    normalize_directory,
)
from .messages import DirectoryRequest, DirectoryResult, ShutdownRequest

__all__ = [
    "CoordinatorState",
    "CoordinatorStats",
    "DirectoryCoordinator",
    "DirectoryRequest",
    "DirectoryResult",
    "ShutdownRequest",
    "normalize_directory",
]
