"""
Structured logging with gesture outcome logging.
"""

import os
import logging
import logging.handlers
import time
from functools import wraps


def setup_logging(level="INFO", log_file=None, max_size_mb=10, backup_count=3):
    """Configure console (and optional rotating file) logging."""
    console_format = "%(asctime)s  %(levelname)-5s  %(message)s"
    file_format = "%(asctime)s [%(levelname)-7s] %(threadName)-16s %(name)-28s | %(message)s"
    date_format = "%H:%M:%S"

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    root_logger.handlers.clear()

    console = logging.StreamHandler()
    console.setLevel(logging.INFO)
    console.setFormatter(logging.Formatter(console_format, datefmt=date_format))
    root_logger.addHandler(console)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_size_mb * 1024 * 1024,
            backupCount=backup_count,
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(file_format, datefmt=date_format))
        root_logger.addHandler(file_handler)

    return root_logger


class GestureLogger:
    """Keeps a history of resolved gesture cycles and logs each one."""

    def __init__(self):
        self.logger = logging.getLogger("gesture_events")
        self._history = []

    def log_result(self, result, latency_ms=None):
        """Log a resolved CycleResult."""
        entry = {
            "timestamp": time.time(),
            "cycle_id": result.cycle_id,
            "outcome": result.outcome.value,
            "expected": result.expected.value,
            "predicted": result.predicted.value if result.predicted else None,
            "confidence": result.confidence,
            "slot": result.slot,
            "latency_ms": latency_ms,
        }
        self._history.append(entry)
        self.logger.info(
            "Cycle %-4d | %-10s | Expected: %-9s | Predicted: %-9s | Conf: %.2f | Latency: %s",
            result.cycle_id,
            entry["outcome"],
            entry["expected"],
            entry["predicted"] or "none",
            result.confidence,
            f"{latency_ms:.1f}ms" if latency_ms else "N/A",
        )

    def get_history(self, last_n=None):
        if last_n:
            return self._history[-last_n:]
        return self._history.copy()

    @property
    def total_cycles(self):
        return len(self._history)


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
