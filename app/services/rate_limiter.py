"""
In-memory fixed-window rate limiting
One counter per (scope, client IP), reset when its window elapses
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Dict, Optional, Tuple

from fastapi import Request

from app.errors import RateLimitExceededError

logger = logging.getLogger("formrelay.rate_limiter")

# Expired windows are swept at most this often
CLEANUP_INTERVAL_SECONDS = 60


@dataclass
class WindowCounter:
    count: int
    reset_at: float


class FixedWindowRateLimiter:
    """Allow `limit` hits per key in each window of `window_seconds`.

    Counters live in process memory and are updated under a lock, so
    concurrent requests from the same client are counted exactly.
    """

    def __init__(
        self,
        limit: int,
        window_seconds: int,
        *,
        scope: str = "rate_limit",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.limit = limit
        self.window_seconds = window_seconds
        self.scope = scope
        self.clock = clock
        self._counters: Dict[str, WindowCounter] = {}
        self._lock = Lock()
        self._last_cleanup = clock()

    def _cleanup(self, now: float) -> None:
        if now - self._last_cleanup < CLEANUP_INTERVAL_SECONDS:
            return
        expired = [k for k, v in self._counters.items() if now >= v.reset_at]
        for k in expired:
            del self._counters[k]
        if expired:
            logger.debug("Cleaned up %d expired %s windows", len(expired), self.scope)
        self._last_cleanup = now

    def hit(self, key: str) -> Tuple[bool, int, int]:
        """Record one request for `key`.

        Returns:
            Tuple of (is_allowed, current_count, seconds_until_reset)
        """
        with self._lock:
            now = self.clock()
            self._cleanup(now)
            counter = self._counters.get(key)
            if counter is None or now >= counter.reset_at:
                counter = WindowCounter(count=0, reset_at=now + self.window_seconds)
                self._counters[key] = counter

            is_allowed = counter.count < self.limit
            if is_allowed:
                counter.count += 1
            ttl = max(0, int(round(counter.reset_at - now)))
            return is_allowed, counter.count, ttl

    def check(self, key: str) -> None:
        """Record a hit and raise `RateLimitExceededError` when over the limit."""
        is_allowed, current_count, ttl = self.hit(key)
        if not is_allowed:
            logger.warning(
                "Rate limit exceeded for %s:%s - %d/%d requests used",
                self.scope,
                key,
                current_count,
                self.limit,
            )
            raise RateLimitExceededError(self.limit, self.window_seconds, retry_after=max(1, ttl))

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()


def client_ip(request: Request, trust_forwarded_for: bool = False) -> str:
    """Best-effort client address; ``X-Forwarded-For`` only when behind a trusted proxy."""
    if trust_forwarded_for:
        forwarded: Optional[str] = request.headers.get("X-Forwarded-For")
        if forwarded:
            return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"
