"""
Logging output using Loguru.

File sink with rotation for every run, plus an optional stderr sink for
development. Library code only ever does ``from loguru import logger``.
"""

import sys
from pathlib import Path

from loguru import logger

from .config import LoggingConfig


def setup_loguru(
    log_file: Path,
    level: str = "INFO",
    max_file_size_mb: int = 10,
    backup_count: int = 5,
    console_output: bool = False,
) -> None:
    """
    Configure loguru for file logging with optional console output.

    Args:
        log_file: Path to log file
        level: Minimum level for logging (DEBUG, INFO, WARNING, ERROR)
        max_file_size_mb: Rotate the file once it grows past this size
        backup_count: Number of rotated files to keep
        console_output: Whether to also write to stderr
    """
    # Remove default handler
    logger.remove()

    log_file.parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_file,
        rotation=f"{max_file_size_mb} MB",
        retention=backup_count,
        level=level,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{line} | {message}",
        enqueue=False,  # Synchronous writes (thread-safe but blocking)
    )

    if console_output:
        logger.add(sys.stderr, level=level, format="{level}: {message}")

    logger.info(f"Loguru initialized: {log_file} (level={level})")


def setup_logging_from_config(log_file: Path, logging_config: LoggingConfig) -> None:
    """Configure loguru from the [logging] config section."""
    setup_loguru(
        log_file,
        level=logging_config.level,
        max_file_size_mb=logging_config.max_file_size_mb,
        backup_count=logging_config.backup_count,
        console_output=logging_config.console_output,
    )
