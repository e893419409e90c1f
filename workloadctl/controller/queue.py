import asyncio
import time
from typing import Dict, Hashable, Set


class WorkQueue:
    """Bounded FIFO of keys that holds each key at most once.

    A key requested while it is being processed is queued again once
    processing is done, so a change during a pass is never lost.
    """

    def __init__(self, maxsize: int = 0) -> None:
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._queued: Set[Hashable] = set()
        self._processing: Set[Hashable] = set()
        self._dirty: Set[Hashable] = set()
        self._enqueued_at: Dict[Hashable, float] = {}
        self._lock = asyncio.Lock()

    async def add(self, key: Hashable) -> bool:
        """Queue ``key`` unless it is already waiting. Returns whether it was added."""
        async with self._lock:
            if key in self._queued:
                return False
            if key in self._processing:
                self._dirty.add(key)
                return False
            self._queued.add(key)
            self._enqueued_at[key] = time.monotonic()
        await self._queue.put(key)
        return True

    async def get(self) -> Hashable:
        key = await self._queue.get()
        async with self._lock:
            self._queued.discard(key)
            self._processing.add(key)
        return key

    async def done(self, key: Hashable) -> None:
        async with self._lock:
            self._processing.discard(key)
            requeue = key in self._dirty
            self._dirty.discard(key)
        if requeue:
            await self.add(key)

    def wait_time(self, key: Hashable) -> float:
        """Seconds ``key`` spent waiting before it was last handed out."""
        enqueued_at = self._enqueued_at.pop(key, None)
        return time.monotonic() - enqueued_at if enqueued_at is not None else 0.0

    def depth(self) -> int:
        return self._queue.qsize()


class ItemExponentialRateLimiter:
    """Per key exponential backoff: ``base * 2^failures``, capped at ``max_delay``."""

    def __init__(self, base_delay: float = 0.005, max_delay: float = 1000.0) -> None:
        self.base_delay = base_delay
        self.max_delay = max_delay
        self._failures: Dict[Hashable, int] = {}

    def when(self, key: Hashable) -> float:
        failures = self._failures.get(key, 0)
        self._failures[key] = failures + 1
        try:
            delay = self.base_delay * (2 ** failures)
        except OverflowError:
            return self.max_delay
        return min(delay, self.max_delay)

    def forget(self, key: Hashable) -> None:
        self._failures.pop(key, None)

    def retries(self, key: Hashable) -> int:
        return self._failures.get(key, 0)

    def __repr__(self) -> str:
        return f"ItemExponentialRateLimiter(base_delay={self.base_delay}, max_delay={self.max_delay})"


