"""Fixed-window, per-client request limiter kept in process memory."""
from __future__ import annotations

import threading
import time
from typing import Callable

from fastapi import Request

from ..errors import RateLimitError

WINDOW_SECONDS = 15 * 60

LIMITS: dict[str, int] = {
    "login": 5,
    "register": 10,
    "forgot-password": 3,
}


class RateLimiter:
    def __init__(
        self,
        limits: dict[str, int] | None = None,
        window_seconds: float = WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.limits = dict(LIMITS if limits is None else limits)
        self.window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.Lock()
        # (bucket, client) -> (window start, hits)
        self._windows: dict[tuple[str, str], tuple[float, int]] = {}

    def hit(self, bucket: str, client: str) -> None:
        limit = self.limits.get(bucket)
        if limit is None:
            return
        now = self._clock()
        key = (bucket, client)
        with self._lock:
            start, count = self._windows.get(key, (now, 0))
            if now - start >= self.window_seconds:
                start, count = now, 0
            if count >= limit:
                raise RateLimitError()
            self._windows[key] = (start, count + 1)

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()


def rate_limited(bucket: str) -> Callable[[Request], None]:
    """Dependency factory: count the request against ``bucket`` for its client IP."""

    def dependency(request: Request) -> None:
        client = request.client.host if request.client else "unknown"
        request.app.state.rate_limiter.hit(bucket, client)

    return dependency
