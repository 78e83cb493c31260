"""
tests/unit/test_rate_limiter.py

Unit tests for the token bucket rate limiter.
"""

import pytest

from blinkit_agent.core.rate_limiter import RateLimiter


def make_limiter(fake_clock, **kwargs) -> RateLimiter:
    return RateLimiter(clock=fake_clock, sleep=fake_clock.sleep, **kwargs)


class TestRateLimiterBurst:
    """Burst capacity and steady-state refill."""

    def test_burst_up_to_capacity_does_not_wait(self, fake_clock) -> None:
        """Five grants in a row go through without sleeping."""
        limiter = make_limiter(fake_clock, capacity=5, refill_rate=2.0, min_interval_ms=0)
        for _ in range(5):
            limiter.acquire()
        assert fake_clock.sleeps == []

    def test_grant_after_burst_waits_for_refill(self, fake_clock) -> None:
        """The sixth grant waits (1 - tokens) / rate seconds."""
        limiter = make_limiter(fake_clock, capacity=5, refill_rate=2.0, min_interval_ms=0)
        for _ in range(6):
            limiter.acquire()
        assert fake_clock.sleeps == [pytest.approx(0.5)]

    def test_steady_state_rate_is_bounded(self, fake_clock) -> None:
        """Fifteen grants at 2/s after a burst of 5 take at least 5 seconds."""
        limiter = make_limiter(fake_clock, capacity=5, refill_rate=2.0, min_interval_ms=0)
        start = fake_clock.now
        for _ in range(15):
            limiter.acquire()
        assert fake_clock.now - start >= 5.0 - 1e-9

    def test_tokens_never_exceed_capacity(self, fake_clock) -> None:
        """Idle time refills only up to capacity."""
        limiter = make_limiter(fake_clock, capacity=5, refill_rate=2.0)
        limiter.acquire()
        fake_clock.now += 3600
        assert limiter.tokens == 5


class TestRateLimiterSpacing:
    """Minimum interval between consecutive grants."""

    def test_back_to_back_grants_are_spaced(self, fake_clock) -> None:
        """A second grant right after the first waits out the minimum interval."""
        limiter = make_limiter(fake_clock, capacity=5, refill_rate=2.0, min_interval_ms=200)
        limiter.acquire()
        limiter.acquire()
        assert fake_clock.sleeps == [pytest.approx(0.2)]

    def test_no_wait_when_interval_already_elapsed(self, fake_clock) -> None:
        """Grants further apart than the interval do not sleep."""
        limiter = make_limiter(fake_clock, capacity=5, refill_rate=2.0, min_interval_ms=200)
        limiter.acquire()
        fake_clock.now += 1.0
        limiter.acquire()
        assert fake_clock.sleeps == []

    def test_first_grant_is_immediate(self, fake_clock) -> None:
        limiter = make_limiter(fake_clock, min_interval_ms=200)
        limiter.acquire()
        assert fake_clock.sleeps == []


class TestRateLimiterValidation:

    @pytest.mark.parametrize("kwargs", [
        {"capacity": 0},
        {"refill_rate": 0},
        {"min_interval_ms": -1},
    ])
    def test_invalid_arguments_rejected(self, kwargs) -> None:
        with pytest.raises(ValueError):
            RateLimiter(**kwargs)
