import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def retry_api_call(
    fn: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    delay_seconds: float = 1.0,
    backoff_factor: float = 2.0,
) -> T:
    """Await ``fn`` up to ``max_retries + 1`` times, re-raising the last error.

    Every exception is retried the same way. The delay before the first retry is
    ``delay_seconds`` and grows by ``backoff_factor`` after each retry.
    """
    delay = delay_seconds
    attempt = 0
    while True:
        attempt += 1
        try:
            return await fn()
        except Exception as exc:
            retries_left = max_retries - (attempt - 1)
            if retries_left <= 0:
                raise
            logger.warning(
                "Call failed, retrying",
                extra={
                    "attempt": attempt,
                    "retries_left": retries_left,
                    "delay_seconds": delay,
                    "error_type": exc.__class__.__name__,
                    "error": str(exc),
                },
            )
            await asyncio.sleep(delay)
            delay *= backoff_factor
