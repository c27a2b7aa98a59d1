import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import TypeVar

T = TypeVar("T")


class RateLimiter:
    """Minimum-interval gate between consecutive outbound calls.

    Each ``execute`` waits until at least ``rate_limit_ms`` has passed since the
    previous call started, then awaits ``fn``. Errors from ``fn`` propagate.
    """

    def __init__(self, rate_limit_ms: int = 500):
        self.rate_limit_ms = max(rate_limit_ms, 0)
        self._min_interval_seconds = self.rate_limit_ms / 1000
        self._last_call_started: float | None = None
        self._lock = asyncio.Lock()

    async def execute(self, fn: Callable[[], Awaitable[T]]) -> T:
        async with self._lock:
            if self._last_call_started is not None:
                elapsed = time.monotonic() - self._last_call_started
                if elapsed < self._min_interval_seconds:
                    await asyncio.sleep(self._min_interval_seconds - elapsed)
            self._last_call_started = time.monotonic()
            return await fn()
