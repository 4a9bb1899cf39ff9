"""Token-bucket throttling for calls to rate-limited third-party APIs."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable

logger = logging.getLogger(__name__)


class TokenBucket:
    """Blocking token bucket.

    ``rate_per_second`` tokens are added continuously up to ``capacity``;
    ``acquire`` sleeps until enough tokens are available. A non-positive rate
    disables throttling. Clock and sleep are injectable so callers and tests
    can run without wall-clock waits.
    """

    def __init__(
        self,
        rate_per_second: float,
        capacity: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if capacity <= 0:
            raise ValueError("Token bucket capacity must be positive.")
        self.rate_per_second = rate_per_second
        self.capacity = capacity
        self._clock = clock
        self._sleep = sleep
        self._tokens = capacity
        self._updated_at = clock()
        self._lock = threading.Lock()

    @classmethod
    def from_interval(
        cls,
        interval_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> "TokenBucket":
        """Bucket that lets one call through every ``interval_seconds``."""
        rate = 1.0 / interval_seconds if interval_seconds > 0 else 0.0
        return cls(rate, capacity=1.0, clock=clock, sleep=sleep)

    @property
    def enabled(self) -> bool:
        return self.rate_per_second > 0

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self._updated_at)
        self._tokens = min(self.capacity, self._tokens + elapsed * self.rate_per_second)
        self._updated_at = now

    def acquire(self, tokens: float = 1.0) -> float:
        """Take ``tokens`` from the bucket, sleeping as needed. Returns seconds waited."""
        if not self.enabled:
            return 0.0
        if tokens > self.capacity:
            raise ValueError(f"Cannot acquire {tokens} tokens from a bucket of capacity {self.capacity}.")

        waited = 0.0
        with self._lock:
            self._refill()
            while self._tokens < tokens:
                wait = (tokens - self._tokens) / self.rate_per_second
                logger.debug(f"Throttling for {wait:.3f}s")
                self._sleep(wait)
                waited += wait
                self._refill()
            self._tokens -= tokens
        return waited


def unthrottled() -> TokenBucket:
    return TokenBucket(0.0)
