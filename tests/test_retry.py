# ============================================================================
# RETRY HELPER TESTS
# ============================================================================
# EPOCH: 1 - SPARK SUBMISSION GATEWAY
# STATUS: Tests - Deadline-based retry helpers
# PURPOSE: Verify retry_until / retry_until_async attempt counts and deadlines
# CREATED: 16 OCT 2026
# ============================================================================
"""
Retry Helper Tests

Run with:
    pytest tests/test_retry.py -v
"""

import asyncio
import time

import pytest

from core.retry import RetryTimeoutError, retry_until, retry_until_async


class TestRetryUntil:

    def test_first_call_succeeds(self):
        assert retry_until(lambda: True, max_wait=1.0, interval=0.01) == 1

    def test_succeeds_after_failures(self):
        results = iter([False, False, True])
        assert retry_until(lambda: next(results), max_wait=1.0, interval=0.001) == 3

    def test_times_out_on_wall_clock(self):
        start = time.monotonic()
        with pytest.raises(RetryTimeoutError) as exc:
            retry_until(lambda: False, max_wait=0.2, interval=0.05)
        elapsed = time.monotonic() - start
        assert 0.2 <= elapsed < 0.2 + 0.05 + 0.2
        assert exc.value.attempts >= 2
        assert isinstance(exc.value, TimeoutError)

    def test_predicate_errors_propagate(self):
        def boom():
            raise ValueError("boom")

        with pytest.raises(ValueError):
            retry_until(boom, max_wait=1.0, interval=0.01)


class TestRetryUntilAsync:

    def test_succeeds_after_failures(self):
        results = iter([False, True])

        async def predicate():
            return next(results)

        attempts = asyncio.run(retry_until_async(predicate, max_wait=1.0, interval=0.001))
        assert attempts == 2

    def test_times_out(self):
        async def never():
            return False

        with pytest.raises(RetryTimeoutError):
            asyncio.run(retry_until_async(never, max_wait=0.1, interval=0.02))
