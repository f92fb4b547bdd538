"""
Messages exchanged between file workers and the directory coordinator.
"""

from concurrent.futures import Future
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union


@dataclass(frozen=True)
class DirectoryResult:
    """Reply to a directory request."""

    directory: Path
    success: bool
    reason: Optional[str] = None

    @classmethod
    def ok(cls, directory: Path) -> "DirectoryResult":
        return cls(directory=directory, success=True)

    @classmethod
    def failed(cls, directory: Path, reason: str) -> "DirectoryResult":
        return cls(directory=directory, success=False, reason=reason)


@dataclass
class DirectoryRequest:
    """Ask the coordinator to guarantee that a directory exists.

    ``reply`` is fulfilled exactly once by the coordinator and then discarded.
    """

    directory: Path
    reply: Future = field(default_factory=Future)


@dataclass(frozen=True)
class ShutdownRequest:
    """Terminal message: the coordinator stops after receiving it."""


CoordinatorMessage = Union[DirectoryRequest, ShutdownRequest]
