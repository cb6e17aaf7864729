# ============================================================================
# DEADLINE RETRY HELPERS
# ============================================================================
# EPOCH: 1 - SPARK SUBMISSION GATEWAY
# STATUS: Core - Polling with a wall-clock deadline
# PURPOSE: Shared retry loop for teardown confirmation and CLI polling
# CREATED: 12 OCT 2026
# ============================================================================
"""
Deadline Retry Helpers

retry_until() runs a predicate until it returns True or the wall-clock
deadline passes. The deadline is measured from the first call, so a slow
predicate eats into the budget instead of extending it.

Usage:
    retry_until(lambda: client.is_gone(name), max_wait=30.0, interval=0.1)

    await retry_until_async(check_gone, max_wait=30.0, interval=0.1)
"""

import asyncio
import time
from typing import Awaitable, Callable


class RetryTimeoutError(TimeoutError):
    """Predicate never returned True before the deadline."""

    def __init__(self, max_wait: float, attempts: int):
        super().__init__(f"Timed out after {max_wait:g}s ({attempts} attempts)")
        self.max_wait = max_wait
        self.attempts = attempts


def retry_until(
    predicate: Callable[[], bool],
    max_wait: float,
    interval: float,
) -> int:
    """
    Call predicate until it returns True or max_wait seconds elapse.

    Args:
        predicate: Zero-arg callable; exceptions propagate to the caller
        max_wait: Deadline in seconds, measured from the first call
        interval: Sleep between attempts in seconds

    Returns:
        Number of attempts made (1 when the first call succeeded)

    Raises:
        RetryTimeoutError: deadline passed without success
    """
    deadline = time.monotonic() + max_wait
    attempts = 0
    while time.monotonic() <= deadline:
        attempts += 1
        if predicate():
            return attempts
        time.sleep(interval)
    raise RetryTimeoutError(max_wait, attempts)


async def retry_until_async(
    predicate: Callable[[], Awaitable[bool]],
    max_wait: float,
    interval: float,
) -> int:
    """Async variant of retry_until(); the predicate is awaited."""
    deadline = time.monotonic() + max_wait
    attempts = 0
    while time.monotonic() <= deadline:
        attempts += 1
        if await predicate():
            return attempts
        await asyncio.sleep(interval)
    raise RetryTimeoutError(max_wait, attempts)


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "RetryTimeoutError",
    "retry_until",
    "retry_until_async",
]
