"""
Retry helpers.

Collection is a single bounded step, so the only retry pattern needed is a
fixed number of attempts with a fixed delay, restricted to the exception
types the caller considers transient.
"""

import logging
import time
from typing import Callable, Tuple, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')


def simple_retry(
    func: Callable[[], T],
    max_attempts: int = 3,
    delay: float = 1.0,
    context: str = "operation",
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Call ``func`` until it succeeds or ``max_attempts`` is exhausted.

    Only exceptions listed in ``retry_on`` trigger another attempt; anything
    else propagates immediately.

    Args:
        func: Function to retry
        max_attempts: Maximum number of attempts (1 means no retry)
        delay: Delay between attempts in seconds
        context: Context description for log messages
        retry_on: Exception types that are worth retrying
        sleep: Sleep function, replaceable in tests

    Returns:
        Result from func if successful

    Raises:
        Exception: The last retryable exception if all attempts fail
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")

    for attempt in range(max_attempts):
        try:
            result = func()
            if attempt > 0:
                logger.info(f"Operation '{context}' succeeded on attempt {attempt + 1}")
            return result
        except retry_on as e:
            if attempt < max_attempts - 1:
                logger.debug(f"Attempt {attempt + 1} failed for {context}: {e}")
                if delay > 0:
                    sleep(delay)
            else:
                if max_attempts > 1:
                    logger.warning(f"All {max_attempts} attempts failed for {context}: {e}")
                raise

    raise AssertionError("unreachable")
