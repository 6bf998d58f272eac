"""Fixed-window request limiter.

A window starts lazily on a key's first request and is replaced wholesale once its
reset time passes. Bursts straddling a window boundary can reach twice the limit.
"""
from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from ..core.exceptions import RateLimitedError
from .store import InMemoryRateLimitStore, RateLimitStore, RateLimitWindow


@dataclass(frozen=True)
class RateLimitConfig:
    max_requests: int
    window_seconds: int


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_time: float

    def retry_after(self, now: float) -> int:
        return max(0, math.ceil(self.reset_time - now))


class RateLimits:
    """Presets per entry point."""

    # Spreadsheet sync polls once a minute.
    EXPORT_API = RateLimitConfig(5, 60)
    SCAN_API = RateLimitConfig(100, 60)
    AUTH_API = RateLimitConfig(10, 60)
    DEFAULT = RateLimitConfig(60, 60)


class RateLimiter:
    def __init__(self, store: Optional[RateLimitStore] = None, *, clock: Callable[[], float] = time.time):
        self._store = store if store is not None else InMemoryRateLimitStore()
        self._clock = clock
        # get/set on the store are not atomic together.
        self._lock = threading.Lock()

    @property
    def store(self) -> RateLimitStore:
        return self._store

    def check_rate_limit(self, key: str, config: RateLimitConfig, *, now: Optional[float] = None) -> RateLimitResult:
        now = self._clock() if now is None else now

        with self._lock:
            window = self._store.get(key)
            if window is None or window.reset_time < now:
                window = RateLimitWindow(count=0, reset_time=now + config.window_seconds)
            window.count += 1
            self._store.set(key, window)

        return RateLimitResult(
            allowed=window.count <= config.max_requests,
            remaining=max(0, config.max_requests - window.count),
            reset_time=window.reset_time,
        )

    def enforce(self, key: str, config: RateLimitConfig, *, now: Optional[float] = None) -> RateLimitResult:
        """Like check_rate_limit but raises RateLimitedError when the window is spent."""
        now = self._clock() if now is None else now
        result = self.check_rate_limit(key, config, now=now)
        if not result.allowed:
            raise RateLimitedError(
                "Too many requests", retry_after=result.retry_after(now), reset_time=result.reset_time
            )
        return result

    def sweep(self, *, now: Optional[float] = None) -> int:
        return self._store.sweep(self._clock() if now is None else now)


def rate_limit_headers(result: RateLimitResult, config: RateLimitConfig) -> dict[str, str]:
    return {
        "X-RateLimit-Limit": str(config.max_requests),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(math.ceil(result.reset_time)),
    }


def rate_limited_headers(e: RateLimitedError, config: RateLimitConfig) -> dict[str, str]:
    """Headers for a 429 answer."""
    headers = {
        "X-RateLimit-Limit": str(config.max_requests),
        "X-RateLimit-Remaining": "0",
        "Retry-After": str(e.retry_after),
    }
    if e.reset_time is not None:
        headers["X-RateLimit-Reset"] = str(math.ceil(e.reset_time))
    return headers
