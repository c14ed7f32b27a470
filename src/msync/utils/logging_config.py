"""Logging configuration for the msync application."""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any, Optional


class LocationFormatter(logging.Formatter):
    """Base formatter that adds a combined location field."""

    def format(self, record: Any) -> str:
        """Format log record with combined location field."""
        record.location = f"{record.filename}:{record.lineno}"
        return super().format(record)


class ColoredFormatter(LocationFormatter):
    """Colored log formatter for console output."""

    # Color codes
    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
        "RESET": "\033[0m",
    }

    def format(self, record: Any) -> str:
        """Format log record with colors."""
        log_color = self.COLORS.get(record.levelname, self.COLORS["RESET"])
        reset_color = self.COLORS["RESET"]

        # Pad before coloring so columns line up
        original_levelname = record.levelname
        record.levelname = f"{log_color}{original_levelname:<8}{reset_color}"
        try:
            return super().format(record)
        finally:
            record.levelname = original_levelname


def setup_logging(
    log_level: str = "WARNING",
    log_file: Optional[Path] = None,
    console_output: bool = True,
    max_file_size: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
) -> None:
    """Set up application logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to log file
        console_output: Whether to output logs to the console (stderr)
        max_file_size: Maximum size of log file before rotation
        backup_count: Number of backup log files to keep
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    if console_output:
        # Log lines go to stderr, command output to stdout
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(numeric_level)
        console_handler.setFormatter(
            ColoredFormatter(
                fmt="%(asctime)s - %(location)-30s - %(levelname)s - %(message)s",
                datefmt="%H:%M:%S",
            )
        )
        root_logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file, maxBytes=max_file_size, backupCount=backup_count
        )
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(
            LocationFormatter(
                fmt="%(asctime)s - %(location)-30s - %(levelname)-8s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        root_logger.addHandler(file_handler)

    logger = logging.getLogger(__name__)
    logger.info("Logging initialized - Level: %s", log_level)
    if log_file:
        logger.info("Log file: %s", log_file)


# Silence noisy third-party loggers
def configure_third_party_loggers() -> None:
    """Configure third-party library loggers to reduce noise."""
    # Mutagen (audio file metadata)
    logging.getLogger("mutagen").setLevel(logging.WARNING)

    # Rich markup / console internals
    logging.getLogger("rich").setLevel(logging.WARNING)
