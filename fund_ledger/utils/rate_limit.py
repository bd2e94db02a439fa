"""Async pacing for sequential units of work."""

import asyncio
import time


class RateLimiter:
    """Minimum-interval limiter; calls_per_second <= 0 disables pacing."""

    def __init__(self, calls_per_second: float = 0.0):
        self.calls_per_second = calls_per_second
        self.min_interval = 1.0 / calls_per_second if calls_per_second > 0 else 0.0
        self.last_call = 0.0
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        """Wait if needed to respect rate limit."""
        if self.min_interval <= 0:
            return
        async with self._lock:
            now = time.monotonic()
            elapsed = now - self.last_call
            if elapsed < self.min_interval:
                await asyncio.sleep(self.min_interval - elapsed)
            self.last_call = time.monotonic()
