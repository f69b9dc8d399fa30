"""
Timing helpers for geocoder lookups and measurement passes.
"""

import functools
import logging
import time
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


def _report_duration(
    label: str,
    verb: str,
    duration_ms: float,
    log_level: int,
    threshold_ms: Optional[float],
    **fields: Any,
) -> None:
    if threshold_ms is not None and duration_ms < threshold_ms:
        return
    logger.log(
        log_level,
        f"{label} {verb} in {duration_ms:.2f}ms",
        extra={"duration_ms": duration_ms, **fields},
    )


def log_async_performance(
    log_level: int = logging.DEBUG,
    threshold_ms: Optional[float] = None,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """
    Log how long each call of an async function takes.

    The duration is logged whether the call returns or raises.

    Args:
        log_level: Level of the timing record
        threshold_ms: Skip calls faster than this many milliseconds

    Example:
        @log_async_performance(threshold_ms=1000)
        async def geocode(self, query):
            ...
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        qualified_name = f"{func.__module__}.{func.__qualname__}"

        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            started = time.perf_counter()
            try:
                return await func(*args, **kwargs)
            finally:
                _report_duration(
                    qualified_name,
                    "executed",
                    (time.perf_counter() - started) * 1000,
                    log_level,
                    threshold_ms,
                    function=qualified_name,
                )

        return wrapper

    return decorator


class PerformanceTimer:
    """
    Time a block of code.

    ``duration_ms`` is available after the block exits.

    Usage:
        with PerformanceTimer("measure polygon") as timer:
            area = ring_area(points)
    """

    def __init__(
        self,
        operation_name: str,
        log_level: int = logging.DEBUG,
        threshold_ms: Optional[float] = None,
    ):
        self.operation_name = operation_name
        self.log_level = log_level
        self.threshold_ms = threshold_ms
        self.duration_ms: Optional[float] = None
        self._started: Optional[float] = None

    def __enter__(self) -> "PerformanceTimer":
        self._started = time.perf_counter()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._started is None:
            return
        self.duration_ms = (time.perf_counter() - self._started) * 1000
        _report_duration(
            self.operation_name,
            "completed",
            self.duration_ms,
            self.log_level,
            self.threshold_ms,
            operation=self.operation_name,
        )
