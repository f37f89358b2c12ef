"""Standardized logging setup for DocLLM."""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def parse_level(level: str | int) -> int:
    """Accept 'debug' / 'INFO' / 20 and return a logging level int."""
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.strip().upper())
    return value if isinstance(value, int) else logging.INFO


def setup_logger(
    name: str = "docllm",
    log_dir: Path | None = None,
    log_filename: str = "docllm.log",
    level: str | int = logging.INFO,
    console: bool = True,
    max_bytes: int = 5_000_000,
    backup_count: int = 3,
) -> logging.Logger:
    """Create a logger with console and/or rotating file handlers.

    Module loggers are children of ``name`` (e.g. "docllm.store"), so
    configuring the parent once covers the whole application.

    Args:
        name: Logger name
        log_dir: Directory for log files (created if not exists); None = no file
        log_filename: Log file name inside log_dir
        level: Logging level, as int or name
        console: Attach a stderr handler
        max_bytes: Max size per log file before rotation
        backup_count: Number of backup files to keep

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(parse_level(level))

    if not logger.handlers:
        formatter = logging.Formatter(LOG_FORMAT)

        if console:
            console_handler = logging.StreamHandler()
            console_handler.setFormatter(formatter)
            logger.addHandler(console_handler)

        if log_dir is not None:
            log_dir.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                log_dir / log_filename,
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger
