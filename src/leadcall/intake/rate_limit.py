"""
In-memory sliding-window rate limiter for the public intake endpoint.

State lives in process memory: limits are per worker and reset on restart.
Keys whose requests have all left the window are swept at most once per
window, so memory is bounded by the clients seen in the last two windows.
"""

from __future__ import annotations

import asyncio
import time
from typing import Callable

from leadcall.shared.logging import get_logger

logger = get_logger(__name__)


class SlidingWindowRateLimiter:
    """Allows at most max_requests per client key within window_seconds."""

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._max_requests = max_requests
        self._window_seconds = window_seconds
        self._clock = clock
        self._requests: dict[str, list[float]] = {}
        self._lock = asyncio.Lock()
        self._last_sweep = clock()

    @property
    def tracked_clients(self) -> int:
        return len(self._requests)

    async def check(self, key: str) -> bool:
        """Record a request for key. Returns True if allowed, False if blocked."""
        async with self._lock:
            now = self._clock()
            cutoff = now - self._window_seconds
            if now - self._last_sweep >= self._window_seconds:
                self._sweep(cutoff)
                self._last_sweep = now

            requests = [t for t in self._requests.get(key, []) if t > cutoff]
            if len(requests) >= self._max_requests:
                self._requests[key] = requests
                logger.warning("Rate limit exceeded", extra={"client": key, "requests": len(requests)})
                return False

            requests.append(now)
            self._requests[key] = requests
            return True

    def reset(self) -> None:
        self._requests.clear()

    def _sweep(self, cutoff: float) -> None:
        expired = [key for key, times in self._requests.items() if not times or times[-1] <= cutoff]
        for key in expired:
            del self._requests[key]
        if expired:
            logger.debug("Rate limiter swept expired clients", extra={"removed": len(expired)})
