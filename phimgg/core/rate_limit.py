import asyncio
import time
from collections import defaultdict
from collections.abc import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from phimgg.core.errors import APIError, error_response
from phimgg.core.settings import Settings


class InMemoryRateLimiter:
    def __init__(self) -> None:
        self._events: dict[tuple[str, str], list[float]] = defaultdict(list)
        self._lock = asyncio.Lock()

    async def allow(self, key: tuple[str, str], limit: int, window_seconds: int = 60) -> bool:
        now = time.monotonic()
        async with self._lock:
            bucket = self._events[key]
            cutoff = now - window_seconds
            while bucket and bucket[0] < cutoff:
                bucket.pop(0)
            if len(bucket) >= limit:
                return False
            bucket.append(now)
            return True


class ImportTriggerRateLimitMiddleware(BaseHTTPMiddleware):
    """Caps manual import triggers per client; reads pass through."""

    def __init__(self, app, settings: Settings):
        super().__init__(app)
        self.settings = settings
        self.limiter = InMemoryRateLimiter()

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        if request.method != "POST" or not path.startswith("/v1/import"):
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        limit = self.settings.import_requests_per_minute
        allowed = await self.limiter.allow(key=(path, client_ip), limit=limit)
        if not allowed:
            # app exception handlers do not see errors raised from middleware
            return error_response(
                APIError(
                    code="rate_limited",
                    message="Too many import requests",
                    status_code=429,
                    details={"path": path, "limit_per_minute": limit},
                )
            )

        return await call_next(request)
