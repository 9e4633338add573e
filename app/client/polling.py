"""Bounded state-refresh loop with exponential backoff."""

import logging
import time
from collections.abc import Callable
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PollTimeoutError(Exception):
    """Raised when the predicate never held within the attempt or time budget."""

    def __init__(self, attempts: int, last_value):
        super().__init__(f"Condition not met after {attempts} attempts")
        self.attempts = attempts
        self.last_value = last_value


def poll_until(
    fetch: Callable[[], T],
    predicate: Callable[[T], bool],
    *,
    max_attempts: int = 10,
    initial_delay: float = 0.5,
    backoff: float = 2.0,
    max_delay: float = 10.0,
    timeout: float = 60.0,
    sleep: Callable[[float], None] = time.sleep,
    monotonic: Callable[[], float] = time.monotonic,
) -> T:
    """
    Call ``fetch`` until ``predicate`` accepts its result.

    The delay between attempts starts at ``initial_delay`` and is multiplied by
    ``backoff`` after each miss, capped at ``max_delay``. The loop stops after
    ``max_attempts`` fetches or once ``timeout`` seconds have elapsed, whichever
    comes first.

    Raises:
        PollTimeoutError: carrying the last fetched value.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")
    if backoff < 1:
        raise ValueError("backoff must be at least 1")

    deadline = monotonic() + timeout
    delay = initial_delay
    value = None
    for attempt in range(1, max_attempts + 1):
        value = fetch()
        if predicate(value):
            return value
        remaining = deadline - monotonic()
        if attempt == max_attempts or remaining <= 0:
            break
        logger.debug("Poll attempt %s/%s not satisfied; retrying in %.2fs", attempt, max_attempts, delay)
        sleep(min(delay, remaining))
        delay = min(delay * backoff, max_delay)

    logger.warning("Polling gave up after %s attempts", attempt)
    raise PollTimeoutError(attempt, value)
