"""
blinkit_agent/core/rate_limiter.py

Token bucket that bounds outbound request frequency against the remote target.

Bursts of up to ``capacity`` requests go through immediately, steady-state
throughput is capped at ``refill_rate`` per second, and any two grants are at
least ``min_interval_ms`` apart regardless of how many tokens are left.
"""

import threading
import time
from collections.abc import Callable

from blinkit_agent.constants import (
    RATE_LIMIT_BUCKET_CAPACITY,
    RATE_LIMIT_MIN_INTERVAL_MS,
    RATE_LIMIT_REFILL_RATE,
)
from blinkit_agent.utils.logger import get_logger

logger = get_logger(name=__name__)


class RateLimiter:
    """
    Token bucket with a minimum spacing between grants.

    Invariant: 0 <= tokens <= capacity at every instant.
    """

    def __init__(
        self,
        capacity: int = RATE_LIMIT_BUCKET_CAPACITY,
        refill_rate: float = RATE_LIMIT_REFILL_RATE,
        min_interval_ms: float = RATE_LIMIT_MIN_INTERVAL_MS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        if refill_rate <= 0:
            raise ValueError("refill_rate must be positive")
        if min_interval_ms < 0:
            raise ValueError("min_interval_ms must not be negative")

        self.capacity = capacity
        self.refill_rate = refill_rate
        self.min_interval = min_interval_ms / 1000.0
        self._clock = clock
        self._sleep = sleep

        self._tokens: float = float(capacity)
        self._last_refill: float = clock()
        self._last_request: float | None = None
        self._lock = threading.Lock()

    @property
    def tokens(self) -> float:
        """Tokens currently available, after a lazy refill."""
        with self._lock:
            self._refill()
            return self._tokens

    def _refill(self) -> None:
        now = self._clock()
        elapsed = now - self._last_refill
        if elapsed > 0:
            self._tokens = min(float(self.capacity), self._tokens + elapsed * self.refill_rate)
        self._last_refill = now

    def acquire(self) -> None:
        """
        Block until a request may be sent, then consume one token.
        """
        with self._lock:
            self._refill()

            if self._last_request is not None:
                since_last = self._clock() - self._last_request
                if since_last < self.min_interval:
                    self._sleep(self.min_interval - since_last)
                    self._refill()

            while self._tokens < 1:
                wait = (1 - self._tokens) / self.refill_rate
                logger.debug("Rate limit reached, waiting %.3fs for next token", wait)
                self._sleep(wait)
                self._refill()

            self._tokens -= 1
            self._last_request = self._clock()
