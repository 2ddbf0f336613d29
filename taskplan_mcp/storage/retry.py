"""Retry helper with exponential backoff."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterator
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_BASE_DELAY = 0.1  # seconds


def backoff_delays(max_attempts: int, base_delay: float) -> Iterator[float]:
    """Yield the sleep before each retry: base, 2*base, 4*base, ...

    There is one delay fewer than attempts since no sleep follows the last one.
    """
    for attempt in range(max_attempts - 1):
        yield base_delay * (2**attempt)


def retry_with_backoff(
    func: Callable[[], T],
    *,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    base_delay: float = DEFAULT_BASE_DELAY,
    is_retryable: Callable[[BaseException], bool] = lambda e: True,
    sleep_func: Callable[[float], None] = time.sleep,
) -> T:
    """Call ``func`` until it succeeds or attempts run out.

    Args:
        func: Zero-argument callable (use a lambda or closure for arguments).
        max_attempts: Total number of calls, including the first.
        base_delay: Delay in seconds before the first retry; doubles each time.
        is_retryable: Predicate deciding whether an exception is transient.
        sleep_func: Injectable sleep for tests.

    Returns:
        Result of the first successful call.

    Raises:
        Exception: A non-retryable exception immediately, otherwise the last
            exception once every attempt has failed.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    delays = backoff_delays(max_attempts, base_delay)
    attempt = 0
    while True:
        attempt += 1
        try:
            return func()
        except Exception as e:
            if not is_retryable(e):
                raise
            delay = next(delays, None)
            if delay is None:
                logger.warning("Giving up after %d attempts: %s", attempt, e)
                raise
            logger.debug("Attempt %d/%d failed (%s), retrying in %.2fs", attempt, max_attempts, e, delay)
            sleep_func(delay)
