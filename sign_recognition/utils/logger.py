"""
Logging setup, recognition event logging and call timing.
"""

import os
import logging
import logging.handlers
import time
from functools import wraps

CONSOLE_FORMAT = "%(asctime)s  %(levelname)-5s  %(message)s"
FILE_FORMAT = "%(asctime)s [%(levelname)-7s] %(name)-25s | %(message)s"
DATE_FORMAT = "%H:%M:%S"


def _file_handler(log_file, max_size_mb, backup_count) -> logging.Handler:
    log_dir = os.path.dirname(log_file)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=int(max_size_mb * 1024 * 1024),
        backupCount=backup_count,
    )
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_logging(level="INFO", log_file=None, max_size_mb=10, backup_count=3):
    """Route all package loggers to stderr and, optionally, a rotating file.

    Replaces any handlers already on the root logger. The console follows
    ``level``; the file always records DEBUG and up.
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    root.handlers.clear()

    console = logging.StreamHandler()
    console.setLevel(root.level)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    root.addHandler(console)

    if log_file:
        root.addHandler(_file_handler(log_file, max_size_mb, backup_count))
    return root


class GestureLogger:
    """Writes one line per recognition result on ``gesture_events``."""

    def __init__(self):
        self.logger = logging.getLogger("gesture_events")

    def log_result(self, result, latency_ms=None):
        """Log a RecognitionResult with its source and optional latency."""
        self.logger.info(
            "Gesture: %-8s | id %d | Confidence: %.2f | Source: %-8s | Latency: %s",
            result.gesture,
            result.id,
            result.confidence,
            result.source.value,
            "%.2fms" % latency_ms if latency_ms is not None else "N/A",
        )


def log_timing(func):
    """Decorator to log function execution time."""
    logger = logging.getLogger(func.__module__)

    @wraps(func)
    def wrapper(*args, **kwargs):
        start = time.perf_counter()
        result = func(*args, **kwargs)
        elapsed = (time.perf_counter() - start) * 1000
        logger.debug("%s took %.2fms", func.__name__, elapsed)
        return result

    return wrapper
