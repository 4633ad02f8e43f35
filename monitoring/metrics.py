"""
Core metrics and the error-tracking decorator for the orchestration core.

This module defines Prometheus metrics for tracking:
- Completion backend latency
- Time spent waiting on approval actors
- Orchestration rounds per lane
- Approval requests and decisions
- Error rates
"""

import functools
import inspect
import logging
from typing import Callable

from prometheus_client import Counter, Histogram

logger = logging.getLogger(__name__)

# Error metrics
ERROR_COUNT = Counter(
    'error_total',
    'Total number of errors',
    ['type', 'location']  # type: e.g., 'backend', 'approval', 'round'; location: specific component
)

# Round metrics
ROUNDS_TOTAL = Counter(
    'orchestration_rounds_total',
    'Completed chat rounds',
    ['lane']
)

# Approval metrics
APPROVAL_REQUESTS_TOTAL = Counter(
    'approval_requests_total',
    'Approval requests raised for embedded commands',
    ['risk']
)

APPROVAL_DECISIONS_TOTAL = Counter(
    'approval_decisions_total',
    'Approval decisions by outcome',
    ['outcome']  # 'approved' or 'denied'
)

APPROVAL_WAIT_TIME = Histogram(
    'approval_wait_duration_seconds',
    'Time spent waiting for an approval decision',
    ['risk'],
    buckets=[0.1, 0.5, 1.0, 5.0, 30.0, 120.0, float("inf")]
)

# External API metrics
COMPLETION_REQUEST_TIME = Histogram(
    'completion_request_duration_seconds',
    'Time spent waiting for the completion backend',
    ['backend'],
    buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0, float("inf")]
)


def track_errors(error_type: str, location: str) -> Callable:
    """
    A decorator factory that counts and logs exceptions escaping a function, then re-raises them.

    Args:
        error_type (str): Type of error (e.g., 'backend', 'approval', 'round')
        location (str): Where the error occurred

    Returns:
        Callable: The decorated function

    Example:
        @track_errors('round', 'orchestrator')
        async def _run_round(self, content: str):
            ...
    """
    def record(exc: Exception) -> None:
        ERROR_COUNT.labels(type=error_type, location=location).inc()
        logger.error(
            f"Error in {location} ({error_type}): {str(exc)}",
            extra={
                'error_type': error_type,
                'location': location,
                'error': str(exc)
            },
            exc_info=True
        )

    def decorator(func: Callable) -> Callable:
        if inspect.iscoroutinefunction(func):
            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    record(e)
                    raise  # Re-raise the exception after tracking
            return async_wrapper

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except Exception as e:
                record(e)
                raise
        return wrapper
    return decorator
