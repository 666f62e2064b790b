"""Sliding-window request limiter for remote providers."""

import asyncio
import time
from collections import deque


class RateLimiter:
    """Allow at most ``max_requests`` acquisitions per ``period`` seconds."""

    def __init__(self, max_requests: int, period: float = 60.0) -> None:
        if max_requests <= 0:
            raise ValueError("max_requests must be positive")
        self._max_requests = max_requests
        self._period = period
        self._timestamps: deque[float] = deque()
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        """Wait until a request slot is free, then claim it."""
        async with self._lock:
            while True:
                now = time.monotonic()
                while self._timestamps and now - self._timestamps[0] >= self._period:
                    self._timestamps.popleft()
                if len(self._timestamps) < self._max_requests:
                    self._timestamps.append(now)
                    return
                await asyncio.sleep(self._period - (now - self._timestamps[0]))

    @property
    def in_flight_window(self) -> int:
        """Requests recorded in the current window."""
        return len(self._timestamps)
