import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    log_level: Optional[str] = None,
    log_file: Optional[str] = None,
    fmt: str = DEFAULT_FORMAT,
    max_size: int = 10 * 1024 * 1024,
    backup_count: int = 5,
):
    """Configure logging for the application."""
    # Set log level from environment or default
    if log_level is None:
        log_level = os.getenv("LOG_LEVEL", "INFO")

    handlers = [logging.StreamHandler(sys.stderr)]

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(log_file, maxBytes=max_size, backupCount=backup_count)
        )

    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format=fmt,
        handlers=handlers,
        force=True,
    )

    logger = logging.getLogger("tidy")
    if log_file:
        logger.debug(f"Logging initialized. Log file: {log_file}")

    return logger
