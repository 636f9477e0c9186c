"""
Bounded-retry polling.

wait_until() is the only way clustershift waits for anything: a member to
reach SECONDARY, a pod to become ready, a target member to win an election.
It blocks the calling thread, invoking a predicate at a fixed interval.

A predicate reports "not yet" by returning False. Any exception it raises is
propagated immediately; only the deadline produces a WaitTimeoutError.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from clustershift.exceptions import WaitTimeoutError

logger = logging.getLogger(__name__)

Predicate = Callable[[], bool]


def wait_until(
    predicate: Predicate,
    *,
    interval: float,
    timeout: float,
    description: str,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> int:
    """
    Invoke ``predicate`` every ``interval`` seconds until it returns True.

    The predicate is always invoked at least once, even with a zero timeout.

    Args:
        predicate: Zero-argument callable returning True when the condition holds.
        interval: Seconds to sleep between attempts.
        timeout: Seconds after which to give up.
        description: What is being waited for, used in logs and the error.
        sleep: Sleep function (injectable for tests).
        clock: Monotonic clock (injectable for tests).

    Returns:
        Number of attempts it took.

    Raises:
        WaitTimeoutError: If the deadline elapses before the predicate holds.
        Exception: Whatever the predicate raises, unchanged.

    Example:
        >>> wait_until(
        ...     lambda: admin.role_of(primary, "mongo-0.target:27017") is MemberRole.SECONDARY,
        ...     interval=5.0,
        ...     timeout=600.0,
        ...     description="mongo-0.target:27017 to become SECONDARY",
        ... )
    """
    start = clock()
    deadline = start + timeout
    attempts = 0

    while True:
        attempts += 1
        if predicate():
            logger.debug("Condition met after %d attempt(s): %s", attempts, description)
            return attempts

        now = clock()
        if now >= deadline:
            raise WaitTimeoutError(description, timeout=timeout, elapsed=now - start)

        logger.debug("Waiting for %s (attempt %d)", description, attempts)
        sleep(min(interval, max(deadline - now, 0.0)))


__all__ = ["wait_until", "Predicate"]
