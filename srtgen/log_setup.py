"""Logging configuration for SrtGen."""

import logging
import sys
from logging.handlers import RotatingFileHandler
import os
from .utils import ensure_dir_exists

DEFAULT_LOG_FORMAT = '%(asctime)s - %(levelname)s - [%(name)s:%(lineno)d] - %(message)s'
DEFAULT_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

QUIET_LOGGERS = ("httpx", "httpcore", "openai", "multipart")
UVICORN_LOGGERS = ("uvicorn", "uvicorn.access", "uvicorn.error")


def setup_logging(
    log_level: int = logging.INFO,
    log_dir: str = "logs",
    log_file: str = "server.log",
    console: bool = True,
    log_format: str = DEFAULT_LOG_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
    max_bytes: int = 10 * 1024 * 1024, # 10 MB
    backup_count: int = 5
) -> None:
    """
    Configures logging for the application.

    Sets up logging to a rotating file and, unless disabled (production),
    to the console (stdout). Uvicorn's loggers are pointed at the same
    handlers so request logs share one format.

    Args:
        log_level: The minimum logging level (e.g., logging.INFO, logging.DEBUG).
        log_dir: The directory to store log files.
        log_file: The name of the log file.
        console: Whether to also log to stdout.
        log_format: The format string for log messages.
        date_format: The format string for timestamps in logs.
        max_bytes: Maximum size of a log file before rotation.
        backup_count: Number of backup log files to keep.
    """
    logger = logging.getLogger() # Root logger
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    logger.setLevel(log_level)
    formatter = logging.Formatter(log_format, datefmt=date_format)
    handlers = []

    if console:
        stream_handler = logging.StreamHandler(sys.stdout)
        stream_handler.setFormatter(formatter)
        stream_handler.setLevel(log_level)
        handlers.append(stream_handler)

    file_error = None
    try:
        ensure_dir_exists(log_dir)
        log_path = os.path.join(log_dir, log_file)
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding='utf-8'
        )
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)
    except Exception as e:
        file_error = e

    if not handlers:
        # File logging failed in production mode; never go silent.
        fallback = logging.StreamHandler(sys.stderr)
        fallback.setFormatter(formatter)
        handlers.append(fallback)

    for handler in handlers:
        logger.addHandler(handler)

    for name in UVICORN_LOGGERS:
        u_logger = logging.getLogger(name)
        u_logger.setLevel(log_level)
        u_logger.handlers = list(handlers)
        u_logger.propagate = False

    if file_error is not None:
        logger.error(f"Failed to set up file logging handler at {log_dir}/{log_file}: {file_error}")
    else:
        logger.info(f"Logging initialized. Log file: {os.path.join(log_dir, log_file)}")

    # Suppress overly verbose logs from dependencies
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
