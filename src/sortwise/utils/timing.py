"""Timing helpers for imports and report generation."""
import logging
import time
from contextlib import contextmanager
from functools import wraps
from typing import Optional


def _now():
    return time.perf_counter()


@contextmanager
def section_timer(name: str, logger: logging.Logger):
    """Log how long the enclosed block took."""
    t0 = _now()
    try:
        yield
    finally:
        dt = _now() - t0
        logger.info("TIMER %s took %.3f s", name, dt)


def timeit(logger: logging.Logger, name: Optional[str] = None):
    """Decorator form of section_timer."""
    def deco(fn):
        label = name or fn.__qualname__
        @wraps(fn)
        def wrapper(*args, **kwargs):
            t0 = _now()
            try:
                return fn(*args, **kwargs)
            finally:
                dt = _now() - t0
                logger.info("TIMER %s took %.3f s", label, dt)
        return wrapper
    return deco
