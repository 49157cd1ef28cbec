"""
Shared decorators for the site builder.
"""

from __future__ import annotations

import functools
import logging
import time
from typing import Callable

logger = logging.getLogger(__name__)


def timed(func: Callable) -> Callable:
    """
    Decorator to log function execution time.
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed = time.perf_counter() - start
            logger.debug(f"{func.__qualname__} completed in {elapsed:.3f}s")
    return wrapper
