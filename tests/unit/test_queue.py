"""Unit tests for the work queue and the retry rate limiter."""

import asyncio
import pytest
from workloadctl.controller import ItemExponentialRateLimiter, WorkQueue


class TestWorkQueue:
    """Tests for WorkQueue."""

    @pytest.mark.asyncio
    async def test_duplicates_are_merged(self):
        queue = WorkQueue(maxsize=16)

        assert await queue.add("key") is True
        assert await queue.add("key") is False
        assert queue.depth() == 1

    @pytest.mark.asyncio
    async def test_fifo(self):
        queue = WorkQueue()
        await queue.add("a")
        await queue.add("b")

        assert await queue.get() == "a"
        assert await queue.get() == "b"

    @pytest.mark.asyncio
    async def test_added_while_processing_is_requeued_on_done(self):
        queue = WorkQueue()
        await queue.add("key")
        key = await queue.get()

        assert await queue.add("key") is False
        assert queue.depth() == 0

        await queue.done(key)

        assert queue.depth() == 1
        assert await queue.get() == "key"

    @pytest.mark.asyncio
    async def test_done_without_changes(self):
        queue = WorkQueue()
        await queue.add("key")
        await queue.done(await queue.get())

        assert queue.depth() == 0
        assert await queue.add("key") is True

    @pytest.mark.asyncio
    async def test_get_waits_for_add(self):
        queue = WorkQueue()
        getter = asyncio.ensure_future(queue.get())
        await asyncio.sleep(0)
        assert not getter.done()

        await queue.add("key")

        assert await asyncio.wait_for(getter, timeout=1) == "key"

    @pytest.mark.asyncio
    async def test_wait_time(self):
        queue = WorkQueue()
        await queue.add("key")
        await queue.get()

        assert queue.wait_time("key") >= 0.0
        assert queue.wait_time("unknown") == 0.0


class TestItemExponentialRateLimiter:
    """Tests for ItemExponentialRateLimiter."""

    def test_backoff_doubles(self):
        limiter = ItemExponentialRateLimiter(base_delay=0.005, max_delay=1000.0)

        delays = [limiter.when("key") for _ in range(4)]

        assert delays == [0.005, 0.01, 0.02, 0.04]
        assert limiter.retries("key") == 4

    def test_capped(self):
        limiter = ItemExponentialRateLimiter(base_delay=1.0, max_delay=5.0)

        delays = [limiter.when("key") for _ in range(5)]

        assert delays == [1.0, 2.0, 4.0, 5.0, 5.0]

    def test_huge_failure_count_does_not_overflow(self):
        limiter = ItemExponentialRateLimiter(base_delay=0.005, max_delay=1000.0)
        limiter._failures["key"] = 5000

        assert limiter.when("key") == 1000.0

    def test_forget_resets(self):
        limiter = ItemExponentialRateLimiter(base_delay=0.005)
        limiter.when("key")
        limiter.when("key")

        limiter.forget("key")

        assert limiter.retries("key") == 0
        assert limiter.when("key") == 0.005

    def test_keys_are_independent(self):
        limiter = ItemExponentialRateLimiter(base_delay=1.0)
        limiter.when("a")
        limiter.when("a")

        assert limiter.when("b") == 1.0
