"""Logging configuration for gpx-viewer.

Provides console logging and optional file logging with configurable levels.
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gpx_viewer.config import Config

# Module logger
logger = logging.getLogger("gpx_viewer")


def setup_logging(
    config: "Config | None" = None,
    log_dir: Path | None = None,
    console_level: int = logging.WARNING,
    file_level: int = logging.DEBUG,
    quiet: bool = False,
) -> logging.Logger:
    """Set up logging for gpx-viewer.

    Creates handlers for:
    - Console output at ``console_level`` (at least WARNING if quiet)
    - File output at DEBUG level when a log directory is configured

    Args:
        config: Application config (for the configured log directory).
        log_dir: Explicit log directory path.
        console_level: Log level for console output.
        file_level: Log level for file output.
        quiet: If True, console only shows warnings and errors.

    Returns:
        Configured logger.
    """
    # Clear existing handlers
    logger.handlers.clear()
    logger.setLevel(logging.DEBUG)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(max(console_level, logging.WARNING) if quiet else console_level)
    console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    logger.addHandler(console_handler)

    if log_dir is None and config is not None:
        log_dir = config.logging.directory

    if log_dir is None:
        return logger

    log_dir.mkdir(parents=True, exist_ok=True)

    # Timestamp-based filename (ISO 8601 basic format)
    timestamp = datetime.now().strftime("%Y%m%dT%H%M%S")
    log_file = log_dir / f"gpx-viewer-{timestamp}.log"

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(file_level)
    file_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logger.addHandler(file_handler)

    logger.debug("Logging initialized. Log file: %s", log_file)

    return logger


def verbosity_to_level(verbose: int) -> int:
    """Map a ``-v`` count to a console log level."""
    if verbose >= 2:
        return logging.DEBUG
    if verbose == 1:
        return logging.INFO
    return logging.WARNING
