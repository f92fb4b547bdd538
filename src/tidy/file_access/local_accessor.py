import os
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Union

from tidy.file_access.classifier import extension_of
from tidy.utils.error_handler import SourceDirectoryError


@dataclass
class FileInfo:
    """Data class to hold file information."""

    path: str
    name: str
    extension: Optional[str]
    size: int


class FileSystemAccessor:
    """Handles validation and scanning of the source directory."""

    def __init__(self, root_directory: Union[str, Path]):
        """Initialize the file system accessor.

        Args:
            root_directory: The directory whose files get sorted

        Raises:
            SourceDirectoryError: If the directory is missing, not a
                directory or not readable
        """
        self.root_directory = Path(root_directory)
        if not self.root_directory.exists():
            raise SourceDirectoryError(
                f"Directory does not exist: {root_directory}"
            )
        if not self.root_directory.is_dir():
            raise SourceDirectoryError(f"Path is not a directory: {root_directory}")
        if not os.access(self.root_directory, os.R_OK | os.X_OK):
            raise SourceDirectoryError(f"Directory is not readable: {root_directory}")

        self.logger = logging.getLogger(__name__)

    def scan_directory(self) -> List[FileInfo]:
        """List the regular files directly inside the root directory.

        Subdirectories and other non-regular entries are ignored.

        Returns:
            List of FileInfo objects sorted by name
        """
        self.logger.info(f"Scanning directory: {self.root_directory}")

        try:
            entries = sorted(self.root_directory.iterdir())
        except OSError as e:
            raise SourceDirectoryError(
                f"Cannot read directory {self.root_directory}: {e}"
            ) from e

        file_list = []
        for entry in entries:
            try:
                if not entry.is_file():
                    continue
                file_list.append(self._create_file_object(entry))
            except OSError as e:
                self.logger.error(f"Error reading entry {entry}: {e}")

        self.logger.info(f"Found {len(file_list)} files")
        return file_list

    def _create_file_object(self, file_path: Path) -> FileInfo:
        stat = file_path.stat()
        return FileInfo(
            path=str(file_path),
            name=file_path.name,
            extension=extension_of(file_path.name),
            size=stat.st_size,
        )

    def get_directory_stats(self) -> Dict[str, int]:
        """Get statistics about the directory.

        Returns:
            Dictionary with file counts by extension
        """
        files = self.scan_directory()
        stats = {
            "total_files": len(files),
            "without_extension": sum(1 for f in files if f.extension is None),
            "total_size": sum(f.size for f in files),
            "by_extension": {},
        }

        for file in files:
            if file.extension is None:
                continue
            stats["by_extension"][file.extension] = (
                stats["by_extension"].get(file.extension, 0) + 1
            )

        return stats
