"""Observability utilities for dnote doctor.

Provides logging configuration (console on standard output, optional
rotating file log) and timing of individual operations.
"""
import logging
import sys
import time
import uuid
from contextlib import contextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional, TextIO, Union

logger = logging.getLogger(__name__)

# Root of the package logger hierarchy
ROOT_LOGGER_NAME = "dnote_doctor"

# Console output mirrors the plain "DEBUG: ..." lines users paste into issues
CONSOLE_FORMAT = "%(levelname)s: %(message)s"
# File logging format with ISO 8601 timestamps
FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"


def configure_logging(
    level: int = logging.WARNING,
    console: bool = True,
    log_dir: Optional[Union[str, Path]] = None,
    stream: Optional[TextIO] = None,
    max_bytes: int = 1024 * 1024,  # 1 MB per file
    backup_count: int = 3,
) -> logging.Logger:
    """Configure logging for the dnote_doctor logger hierarchy.

    Calling this again replaces the handlers installed by a previous call.

    Args:
        level: Logging level (default: WARNING)
        console: Log to ``stream`` (default: True)
        log_dir: Directory for a rotating log file. No file log when None.
        stream: Console stream, defaults to standard output
        max_bytes: Maximum size per log file before rotation
        backup_count: Number of rotated files to keep

    Returns:
        The configured package logger.

    Example:
        configure_logging(level=logging.DEBUG)
    """
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(level)

    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    if console:
        console_handler = logging.StreamHandler(stream or sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        root_logger.addHandler(console_handler)

    if log_dir is not None:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path / "dnote-doctor.log",
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=LOG_DATE_FORMAT))
        root_logger.addHandler(file_handler)
        root_logger.debug(f"File logging enabled: {log_path / 'dnote-doctor.log'}")

    return root_logger


@contextmanager
def timed_operation(operation: str, **context):
    """Context manager for timing and logging operations.

    Args:
        operation: Name of the operation being performed
        **context: Additional context to include in log messages

    Yields:
        A dictionary where you can store result info (e.g., changed)

    Example:
        with timed_operation('fix', issue=issue.name) as op:
            op['changed'] = issue.fix.apply(ctx)
    """
    correlation_id = str(uuid.uuid4())[:8]
    start_time = time.perf_counter()
    result_info: Dict[str, Any] = {'correlation_id': correlation_id}

    context_str = ', '.join(f'{k}={v}' for k, v in context.items())
    logger.debug(f"[{correlation_id}] START {operation} ({context_str})")

    error_msg = None
    success = True

    try:
        yield result_info
    except BaseException as e:
        success = False
        error_msg = str(e) or type(e).__name__
        raise
    finally:
        duration_ms = (time.perf_counter() - start_time) * 1000
        result_str = ', '.join(f'{k}={v}' for k, v in result_info.items() if k != 'correlation_id')
        status = 'OK' if success else f'ERROR: {error_msg}'
        logger.debug(
            f"[{correlation_id}] END {operation} "
            f"({duration_ms:.2f}ms) [{status}] {result_str}"
        )
