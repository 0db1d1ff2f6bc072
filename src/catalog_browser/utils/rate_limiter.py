"""Rate limiting for polite fetching."""

import asyncio
from contextlib import asynccontextmanager
from time import monotonic


class RateLimiter:
    """Rate limiter with semaphore-based concurrency and staggered delays.

    At most ``max_concurrent`` requests are in flight and new requests start
    at least ``delay_seconds`` apart.
    """

    _MAX_DELAY = 10.0  # Upper bound for adaptive back-off

    def __init__(self, delay_seconds: float = 0.5, max_concurrent: int = 2):
        self.delay_seconds = delay_seconds
        self._original_delay = delay_seconds
        self._semaphore = asyncio.Semaphore(max_concurrent)
        self._last_request_time: float = 0.0
        self._lock = asyncio.Lock()
        self.backoff_count: int = 0

    async def acquire(self) -> None:
        """Acquire a concurrency slot, then enforce minimum delay between starts."""
        await self._semaphore.acquire()
        async with self._lock:
            wait_time = self.delay_seconds - (monotonic() - self._last_request_time)
            if wait_time > 0:
                await asyncio.sleep(wait_time)
            self._last_request_time = monotonic()

    def release(self) -> None:
        """Release a concurrency slot."""
        self._semaphore.release()

    @asynccontextmanager
    async def slot(self):
        """Hold a request slot for the duration of the block."""
        await self.acquire()
        try:
            yield
        finally:
            self.release()

    def back_off(self) -> None:
        """Double the delay between requests after a 429 (capped)."""
        self.delay_seconds = min(max(self.delay_seconds, 0.1) * 2, self._MAX_DELAY)
        self.backoff_count += 1

    @property
    def is_throttled(self) -> bool:
        """Whether the current delay exceeds the configured value."""
        return self.delay_seconds > self._original_delay

    def ease_off(self) -> None:
        """Halve the delay back toward the configured value after a success."""
        self.delay_seconds = max(self.delay_seconds / 2, self._original_delay)
