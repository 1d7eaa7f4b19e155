"""Debug tracing utilities for history recording and replay.

History traces go to the "sheetundo.history" logger. Set
SHEETUNDO_DEBUG_HISTORY=1 to get them on the console; set
SHEETUNDO_DEBUG_PERF=1 to also time diffs and replays.

Usage:
    from .debug_trace import logger, perf_timer

    logger.debug("Starting operation")

    with perf_timer("compute_diff", row_count=len(rows)):
        diff = compute_diff(prev, rows)
"""

from __future__ import annotations

import logging
import sys
import time
from collections.abc import Callable
from contextlib import contextmanager
from functools import wraps
from typing import Any

from .settings import ENV_DEBUG_HISTORY, ENV_DEBUG_PERF, debug_enabled

# Performance timing is opt-in
DEBUG_PERF = debug_enabled(ENV_DEBUG_PERF)

# Module logger
logger = logging.getLogger("sheetundo.history")


def setup_debug_logging() -> None:
    """Configure console logging when history debugging is enabled.

    Safe to call more than once; only the first call installs a handler.
    """
    if logger.handlers:
        return

    if debug_enabled(ENV_DEBUG_HISTORY) and sys.stdout is not None:
        logger.setLevel(logging.DEBUG)
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(logging.DEBUG)
        formatter = logging.Formatter(
            "%(asctime)s.%(msecs)03d [%(levelname)s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    else:
        logger.setLevel(logging.WARNING)


def _report(label: str, start: float) -> None:
    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.debug(f"PERF: {label} took {elapsed_ms:.2f}ms")


@contextmanager
def perf_timer(operation: str, row_count: int | None = None):
    """Context manager for timing operations.

    Args:
        operation: Name of the operation being timed
        row_count: Optional row count for context
    """
    if not DEBUG_PERF:
        yield
        return

    label = operation if row_count is None else f"{operation} ({row_count} rows)"
    start = time.perf_counter()
    try:
        yield
    finally:
        _report(label, start)


def log_perf(func: Callable) -> Callable:
    """Decorator to log function performance."""

    @wraps(func)
    def wrapper(*args, **kwargs) -> Any:
        if not DEBUG_PERF:
            return func(*args, **kwargs)

        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            _report(func.__qualname__, start)

    return wrapper


# Initialize logging when module is imported
setup_debug_logging()
