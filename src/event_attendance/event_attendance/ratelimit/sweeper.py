from __future__ import annotations

import logging
import threading
from typing import Optional

from ..core.constants import RATE_LIMIT_SWEEP_SECONDS
from .limiter import RateLimiter

logger = logging.getLogger(__name__)


class RateLimitSweeper:
    """Daemon thread that periodically drops expired rate-limit windows."""

    def __init__(self, limiter: RateLimiter, *, interval_seconds: float = RATE_LIMIT_SWEEP_SECONDS):
        self._limiter = limiter
        self._interval = float(interval_seconds)
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="rate-limit-sweeper", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _run(self) -> None:
        while not self._stop.wait(self._interval):
            removed = self._limiter.sweep()
            if removed:
                logger.debug("swept %d expired rate-limit windows", removed)
