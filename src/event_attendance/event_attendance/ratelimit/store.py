from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Optional, Protocol


@dataclass
class RateLimitWindow:
    count: int
    reset_time: float


class RateLimitStore(Protocol):
    """Where fixed-window counters live.

    The in-memory store below is per process; several app instances need a shared
    implementation of this interface.
    """

    def get(self, key: str) -> Optional[RateLimitWindow]:
        raise NotImplementedError

    def set(self, key: str, window: RateLimitWindow) -> None:
        raise NotImplementedError

    def sweep(self, now: float) -> int:
        """Drop windows whose reset time has passed; returns how many were dropped."""
        raise NotImplementedError


class InMemoryRateLimitStore(RateLimitStore):
    def __init__(self):
        self._windows: dict[str, RateLimitWindow] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[RateLimitWindow]:
        with self._lock:
            window = self._windows.get(key)
            return RateLimitWindow(window.count, window.reset_time) if window else None

    def set(self, key: str, window: RateLimitWindow) -> None:
        with self._lock:
            self._windows[key] = RateLimitWindow(window.count, window.reset_time)

    def sweep(self, now: float) -> int:
        with self._lock:
            expired = [k for k, w in self._windows.items() if w.reset_time < now]
            for k in expired:
                del self._windows[k]
            return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)
