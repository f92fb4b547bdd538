"""
Directory coordinator: the single owner of the confirmed target directories.

All directory checks and creations for a run go through one serving thread
that reads requests from a bounded queue and answers each one on the
request's own reply future. Because only that thread touches the confirmed
set and the filesystem, a directory is never created twice and never by two
threads at once.
"""

import logging
import os
import threading
from concurrent.futures import Future
from dataclasses import asdict, dataclass
from enum import Enum
from pathlib import Path
from queue import Empty, Queue
from typing import Callable, Dict, Optional, Set, Union

from tidy.coordination.messages import (
    CoordinatorMessage,
    DirectoryRequest,
    DirectoryResult,
    ShutdownRequest,
)
from tidy.utils.error_handler import ChannelClosedError, CoordinatorError

logger = logging.getLogger(__name__)

DEFAULT_CHANNEL_CAPACITY = 48


class CoordinatorState(Enum):
    """Lifecycle of a coordinator."""

    CREATED = "created"
    RUNNING = "running"
    TERMINATED = "terminated"


@dataclass
class CoordinatorStats:
    """Counters of how requests were resolved.

    Written only by the serving thread; read them after shutdown.
    """

    requests: int = 0
    cache_hits: int = 0
    existing_directories: int = 0
    creation_attempts: int = 0
    failures: int = 0

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


def _make_directory(directory: Path):
    directory.mkdir(parents=True, exist_ok=True)


def normalize_directory(directory: Union[str, Path]) -> Path:
    """Normalize a directory path so equal directories compare equal."""
    return Path(os.path.normpath(directory))


class DirectoryCoordinator:
    """Serialize every target-directory decision through one thread."""

    def __init__(
        self,
        channel_capacity: int = DEFAULT_CHANNEL_CAPACITY,
        make_directory: Optional[Callable[[Path], None]] = None,
    ):
        """Initialize the coordinator.

        Args:
            channel_capacity: Maximum number of queued requests; senders
                block while the queue is full
            make_directory: Directory creation primitive, called at most
                once per directory that gets created
        """
        if channel_capacity < 1:
            raise ValueError("channel_capacity must be >= 1")

        self.channel_capacity = channel_capacity
        self.state = CoordinatorState.CREATED
        self.stats = CoordinatorStats()

        self._make_directory = make_directory or _make_directory
        self._queue: "Queue[CoordinatorMessage]" = Queue(maxsize=channel_capacity)
        self._confirmed: Set[Path] = set()
        self._send_lock = threading.Lock()
        self._closed = False
        self._thread: Optional[threading.Thread] = None

    def __enter__(self) -> "DirectoryCoordinator":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.shutdown()

    @property
    def is_running(self) -> bool:
        return self.state is CoordinatorState.RUNNING

    def start(self):
        """Start the serving thread."""
        with self._send_lock:
            if self.state is not CoordinatorState.CREATED:
                raise CoordinatorError(
                    f"Coordinator cannot be started from state {self.state.value}"
                )
            self._thread = threading.Thread(
                target=self._serve, name="directory-coordinator", daemon=True
            )
            self.state = CoordinatorState.RUNNING
            self._thread.start()

        logger.debug(
            f"Directory coordinator started (channel capacity {self.channel_capacity})"
        )

    def request(self, directory: Union[str, Path]) -> "Future[DirectoryResult]":
        """Send a directory request.

        Blocks while the channel is full.

        Args:
            directory: Directory that must exist

        Returns:
            Future resolved with a DirectoryResult

        Raises:
            ChannelClosedError: If the coordinator is not accepting requests
        """
        request = DirectoryRequest(directory=normalize_directory(directory))

        with self._send_lock:
            if self._closed or self.state is not CoordinatorState.RUNNING:
                raise ChannelClosedError(
                    f"Coordinator is not accepting requests ({self.state.value})"
                )
            self._queue.put(request)

        return request.reply

    def ensure_directory(
        self, directory: Union[str, Path], timeout: Optional[float] = None
    ) -> DirectoryResult:
        """Request a directory and wait for the coordinator's reply."""
        return self.request(directory).result(timeout=timeout)

    def shutdown(self, timeout: Optional[float] = None):
        """Stop accepting requests and wait for the serving thread to exit.

        Args:
            timeout: Seconds to wait for the serving thread

        Raises:
            CoordinatorError: If the thread is still alive after ``timeout``
        """
        with self._send_lock:
            if self.state is CoordinatorState.CREATED:
                self._closed = True
                self.state = CoordinatorState.TERMINATED
                return
            if not self._closed:
                self._closed = True
                self._queue.put(ShutdownRequest())

        if self._thread is None:
            return
        self._thread.join(timeout)
        if self._thread.is_alive():
            raise CoordinatorError("Coordinator did not terminate in time")

    def confirmed_directories(self) -> Set[Path]:
        """Copy of the confirmed set; only available once terminated."""
        if self.state is CoordinatorState.RUNNING:
            raise CoordinatorError("Confirmed directories are private while running")
        return set(self._confirmed)

    def _serve(self):
        while True:
            message = self._queue.get()
            if isinstance(message, ShutdownRequest):
                break
            self._dispatch(message)

        self._drain()
        self.state = CoordinatorState.TERMINATED
        logger.debug(f"Directory coordinator terminated: {self.stats.to_dict()}")

    def _drain(self):
        # Nothing can be enqueued after the shutdown message.
        while True:
            try:
                message = self._queue.get_nowait()
            except Empty:
                return
            if isinstance(message, DirectoryRequest):
                logger.error(
                    f"Directory request received after shutdown: {message.directory}"
                )
                if message.reply.set_running_or_notify_cancel():
                    message.reply.set_exception(
                        ChannelClosedError(
                            f"Coordinator shut down before handling {message.directory}"
                        )
                    )

    def _dispatch(self, request: DirectoryRequest):
        if not request.reply.set_running_or_notify_cancel():
            logger.debug(f"Request for {request.directory} was cancelled")
            return

        self.stats.requests += 1
        try:
            result = self._resolve(request.directory)
        except Exception as e:
            logger.exception(f"Unexpected error resolving {request.directory}")
            request.reply.set_exception(e)
            return

        request.reply.set_result(result)

    def _resolve(self, directory: Path) -> DirectoryResult:
        if directory in self._confirmed:
            self.stats.cache_hits += 1
            logger.debug(f"Directory already confirmed: {directory}")
            return DirectoryResult.ok(directory)

        try:
            exists = directory.exists()
            is_dir = exists and directory.is_dir()
        except OSError as e:
            self.stats.failures += 1
            logger.error(f"Cannot inspect {directory}: {e}")
            return DirectoryResult.failed(directory, str(e))

        if is_dir:
            self.stats.existing_directories += 1
            self._confirmed.add(directory)
            logger.debug(f"Directory exists, confirmed: {directory}")
            return DirectoryResult.ok(directory)

        if exists:
            self.stats.failures += 1
            logger.warning(f"Target exists but is not a directory: {directory}")
            return DirectoryResult.failed(directory, "not a directory")

        self.stats.creation_attempts += 1
        try:
            self._make_directory(directory)
        except OSError as e:
            self.stats.failures += 1
            logger.error(f"Failed to create directory {directory}: {e}")
            return DirectoryResult.failed(directory, str(e))

        self._confirmed.add(directory)
        logger.info(f"Created directory: {directory}")
        return DirectoryResult.ok(directory)
