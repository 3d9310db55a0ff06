from __future__ import annotations

import asyncio
import logging
import random
import time
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

from config.settings import get_settings
from pipelines.errors import QueueFull


logger = logging.getLogger(__name__)

T = TypeVar("T")

_HOUR_SECONDS = 3600.0


class FifoSerializer:
    """Runs enqueued operations one at a time, in arrival order, under an hourly quota.

    Between consecutive operations a random human-like gap is kept. The queue is
    bounded; enqueueing beyond `max_queue` pending operations raises QueueFull.
    Failures propagate to the caller that enqueued the operation and do not stop
    the queue.
    """

    def __init__(
        self,
        max_per_hour: Optional[int] = None,
        min_delay_seconds: Optional[float] = None,
        max_delay_seconds: Optional[float] = None,
        max_queue: Optional[int] = None,
    ):
        settings = get_settings()
        self.max_per_hour = max_per_hour if max_per_hour is not None else settings.rate_limit_per_hour
        self.min_delay = min_delay_seconds if min_delay_seconds is not None else settings.rate_min_delay_seconds
        self.max_delay = max_delay_seconds if max_delay_seconds is not None else settings.rate_max_delay_seconds
        self.max_queue = max_queue if max_queue is not None else settings.rate_max_queue
        if self.max_delay < self.min_delay:
            raise ValueError("max_delay_seconds must be >= min_delay_seconds")
        self._lock: Optional[asyncio.Lock] = None
        self._pending = 0
        self._running = False
        self._request_count = 0
        self._hour_start = time.monotonic()
        self._last_finished: Optional[float] = None

    def _get_lock(self) -> asyncio.Lock:
        if self._lock is None:
            self._lock = asyncio.Lock()
        return self._lock

    def _random_delay(self) -> float:
        return random.uniform(self.min_delay, self.max_delay)

    async def _respect_limits(self) -> None:
        now = time.monotonic()
        elapsed = now - self._hour_start
        if elapsed > _HOUR_SECONDS:
            logger.info("Hour elapsed, resetting request counter (was %d)", self._request_count)
            self._request_count = 0
            self._hour_start = now
        elif self._request_count >= self.max_per_hour:
            wait = _HOUR_SECONDS - elapsed
            logger.warning(
                "Rate limit reached (%d/%d), waiting %.0fs", self._request_count, self.max_per_hour, wait
            )
            await asyncio.sleep(wait)
            self._request_count = 0
            self._hour_start = time.monotonic()

        if self._last_finished is not None:
            gap = self._random_delay() - (time.monotonic() - self._last_finished)
            if gap > 0:
                logger.debug("Waiting %.1fs before next operation", gap)
                await asyncio.sleep(gap)

    async def enqueue(self, operation: Callable[[], Awaitable[T]]) -> T:
        if self._pending >= self.max_queue:
            raise QueueFull(f"Serializer queue full ({self.max_queue} pending operations)")
        self._pending += 1
        try:
            # asyncio.Lock wakes waiters in FIFO order
            async with self._get_lock():
                await self._respect_limits()
                self._running = True
                try:
                    return await operation()
                finally:
                    self._running = False
                    self._request_count += 1
                    self._last_finished = time.monotonic()
                    logger.debug(
                        "Operation %d/%d finished, %d pending",
                        self._request_count,
                        self.max_per_hour,
                        self._pending - 1,
                    )
        finally:
            self._pending -= 1

    def get_stats(self) -> Dict[str, Any]:
        return {
            "queue_length": self._pending,
            "request_count": self._request_count,
            "max_requests": self.max_per_hour,
            "seconds_until_reset": max(0.0, _HOUR_SECONDS - (time.monotonic() - self._hour_start)),
            "processing": self._running,
        }
