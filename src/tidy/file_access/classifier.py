"""
Maps source files to their extension-named target directory.
"""

from pathlib import Path
from typing import Optional, Union

PathLike = Union[str, Path]


def extension_of(name: str) -> Optional[str]:
    """Return the extension of a file name, case preserved.

    The extension is the text after the last dot. Names without a dot,
    dotfiles such as ``.bashrc`` and names ending in a dot have none.

    Args:
        name: Bare file name (no directory part)

    Returns:
        Extension without the leading dot, or None
    """
    stem, dot, extension = name.rpartition(".")
    if not dot or not stem or not extension:
        return None
    return extension


def target_dir_for(root: PathLike, source_path: PathLike) -> Optional[Path]:
    """Resolve the directory a file should be copied into.

    Args:
        root: Target root directory
        source_path: Path of the source file

    Returns:
        ``root/<extension>``, or None when the file must be skipped
    """
    extension = extension_of(Path(source_path).name)
    if extension is None:
        return None
    return Path(root) / extension
