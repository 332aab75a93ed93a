"""Tests for helpmybarber.core.rate_limiter — sliding-window rate limiting.

Tests cover:
- The limit is reached at exactly ``max_requests`` within one window.
- Rejected requests are not recorded.
- Requests are admitted again once earlier ones age out.
- Per-client isolation.
- Periodic sweeping of idle clients.
- Concurrent callers sharing a client identifier.
"""

from __future__ import annotations

import threading

import pytest

from helpmybarber.core.rate_limiter import RateLimiter


class TestWindowLimit:
    """Verify the per-window request cap."""

    def test_tenth_request_allowed_eleventh_rejected(self, fake_clock):
        limiter = RateLimiter(max_requests=10, window_seconds=60, clock=fake_clock)

        results = [limiter.allow("10.0.0.1") for _ in range(10)]
        assert all(results)
        assert limiter.allow("10.0.0.1") is False

    def test_requests_spread_inside_window_still_count(self, fake_clock):
        limiter = RateLimiter(max_requests=10, window_seconds=60, clock=fake_clock)

        for _ in range(10):
            assert limiter.allow("10.0.0.1")
            fake_clock.advance(5)

        # The first request was 50s ago, so the window is still full.
        assert limiter.allow("10.0.0.1") is False

    def test_allowed_after_window_elapses(self, fake_clock):
        limiter = RateLimiter(max_requests=10, window_seconds=60, clock=fake_clock)
        for _ in range(10):
            limiter.allow("10.0.0.1")
        assert limiter.allow("10.0.0.1") is False

        fake_clock.advance(60)
        assert limiter.allow("10.0.0.1") is True

    def test_oldest_request_frees_one_slot(self, fake_clock):
        limiter = RateLimiter(max_requests=3, window_seconds=60, clock=fake_clock)
        limiter.allow("c")
        fake_clock.advance(30)
        limiter.allow("c")
        limiter.allow("c")
        assert limiter.allow("c") is False

        # Only the first request has aged out.
        fake_clock.advance(31)
        assert limiter.allow("c") is True
        assert limiter.allow("c") is False

    def test_rejections_are_not_recorded(self, fake_clock):
        limiter = RateLimiter(max_requests=2, window_seconds=60, clock=fake_clock)
        limiter.allow("c")
        limiter.allow("c")

        # Hammering while limited must not extend the lockout.
        for _ in range(5):
            fake_clock.advance(10)
            assert limiter.allow("c") is False

        fake_clock.advance(10)
        assert limiter.allow("c") is True


class TestClientIsolation:
    """Verify that quotas are tracked per client."""

    def test_saturated_client_does_not_affect_others(self, fake_clock):
        limiter = RateLimiter(max_requests=10, window_seconds=60, clock=fake_clock)
        for _ in range(10):
            limiter.allow("10.0.0.1")
        assert limiter.allow("10.0.0.1") is False

        assert limiter.allow("10.0.0.2") is True

    def test_reset_forgets_all_clients(self, fake_clock):
        limiter = RateLimiter(max_requests=1, window_seconds=60, clock=fake_clock)
        limiter.allow("a")
        limiter.reset()

        assert limiter.tracked_clients() == 0
        assert limiter.allow("a") is True


class TestSweep:
    """Verify that idle clients are eventually forgotten."""

    def test_idle_clients_swept(self, fake_clock):
        limiter = RateLimiter(max_requests=10, window_seconds=60, clock=fake_clock, sweep_interval=5)
        for i in range(4):
            limiter.allow(f"client-{i}")
        assert limiter.tracked_clients() == 4

        fake_clock.advance(61)
        # Fifth check triggers the sweep; only the active client survives.
        assert limiter.allow("active") is True
        assert limiter.tracked_clients() == 1

    def test_sweep_keeps_recent_clients(self, fake_clock):
        limiter = RateLimiter(max_requests=10, window_seconds=60, clock=fake_clock, sweep_interval=2)
        limiter.allow("a")
        fake_clock.advance(10)
        limiter.allow("b")

        assert limiter.tracked_clients() == 2

    def test_client_swept_on_its_own_check_is_still_recorded(self, fake_clock):
        limiter = RateLimiter(max_requests=1, window_seconds=60, clock=fake_clock, sweep_interval=2)
        limiter.allow("a")
        fake_clock.advance(61)

        # This check prunes "a" to empty and triggers a sweep.
        assert limiter.allow("a") is True
        assert limiter.allow("a") is False


class TestConstruction:
    """Verify argument validation."""

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"max_requests": 0},
            {"window_seconds": 0},
            {"window_seconds": -1},
            {"sweep_interval": 0},
        ],
    )
    def test_invalid_limits_raise(self, kwargs):
        with pytest.raises(ValueError):
            RateLimiter(**kwargs)

    def test_defaults(self):
        limiter = RateLimiter()
        assert limiter.max_requests == 10
        assert limiter.window_seconds == 60.0


class TestConcurrency:
    """Check-and-record must be atomic across threads."""

    def test_concurrent_callers_never_exceed_limit(self):
        limiter = RateLimiter(max_requests=10, window_seconds=60)
        results: list[bool] = []
        results_lock = threading.Lock()
        start = threading.Barrier(50)

        def worker():
            start.wait()
            allowed = limiter.allow("shared")
            with results_lock:
                results.append(allowed)

        threads = [threading.Thread(target=worker) for _ in range(50)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count(True) == 10
        assert results.count(False) == 40
