"""ABOUTME: Unit tests for the login attempt limiter
ABOUTME: Covers thresholds, clearing, window expiry, sweeping and concurrent failures"""

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import pytest

from crisisconnect.service_layer.login_limiter import LoginAttemptLimiter
from tests.fakes import FakeClock


@pytest.fixture
def limiter(fake_clock: FakeClock) -> LoginAttemptLimiter:
    return LoginAttemptLimiter(max_failures=5, window=timedelta(minutes=15), clock=fake_clock)


class TestThreshold:
    def test_unknown_identifier_is_not_limited(self, limiter: LoginAttemptLimiter) -> None:
        assert limiter.is_rate_limited("nobody@example.org") is False

    def test_empty_identifier_is_not_limited(self, limiter: LoginAttemptLimiter) -> None:
        assert limiter.is_rate_limited("") is False

    def test_limited_exactly_at_max_failures(self, limiter: LoginAttemptLimiter) -> None:
        for _ in range(4):
            assert limiter.record_failed_login("a@x.com") is False
        assert limiter.is_rate_limited("a@x.com") is False

        assert limiter.record_failed_login("a@x.com") is True
        assert limiter.is_rate_limited("a@x.com") is True

    def test_scenario_limit_then_clear(self, limiter: LoginAttemptLimiter) -> None:
        results = [limiter.record_failed_login("a@x.com") for _ in range(4)]
        assert results == [False, False, False, False]
        assert limiter.is_rate_limited("a@x.com") is False

        assert limiter.record_failed_login("a@x.com") is True
        assert limiter.is_rate_limited("a@x.com") is True

        limiter.clear_failed_logins("a@x.com")
        assert limiter.is_rate_limited("a@x.com") is False

    def test_identifiers_are_tracked_separately(self, limiter: LoginAttemptLimiter) -> None:
        for _ in range(5):
            limiter.record_failed_login("a@x.com")

        assert limiter.is_rate_limited("a@x.com") is True
        assert limiter.is_rate_limited("b@x.com") is False

    def test_identifier_case_and_whitespace_are_ignored(self, limiter: LoginAttemptLimiter) -> None:
        for _ in range(5):
            limiter.record_failed_login(" A@X.com")

        assert limiter.is_rate_limited("a@x.com") is True
        assert limiter.failure_count("a@x.COM") == 5

    def test_max_failures_of_one(self, fake_clock: FakeClock) -> None:
        limiter = LoginAttemptLimiter(max_failures=1, clock=fake_clock)

        assert limiter.record_failed_login("a@x.com") is True
        assert limiter.is_rate_limited("a@x.com") is True


class TestClear:
    def test_clear_requires_fresh_sequence(self, limiter: LoginAttemptLimiter) -> None:
        for _ in range(7):
            limiter.record_failed_login("a@x.com")

        limiter.clear_failed_logins("a@x.com")

        assert limiter.is_rate_limited("a@x.com") is False
        for _ in range(4):
            assert limiter.record_failed_login("a@x.com") is False
        assert limiter.record_failed_login("a@x.com") is True

    def test_clear_is_idempotent(self, limiter: LoginAttemptLimiter) -> None:
        limiter.clear_failed_logins("a@x.com")
        limiter.clear_failed_logins("a@x.com")

        assert len(limiter) == 0
        assert limiter.is_rate_limited("a@x.com") is False


class TestWindowExpiry:
    def test_limit_lifts_after_window(self, limiter: LoginAttemptLimiter, fake_clock: FakeClock) -> None:
        for _ in range(5):
            limiter.record_failed_login("a@x.com")
        assert limiter.is_rate_limited("a@x.com") is True

        fake_clock.advance(timedelta(minutes=15, seconds=1))

        assert limiter.is_rate_limited("a@x.com") is False

    def test_failure_after_window_starts_fresh_count(
        self, limiter: LoginAttemptLimiter, fake_clock: FakeClock
    ) -> None:
        for _ in range(5):
            limiter.record_failed_login("a@x.com")

        fake_clock.advance(timedelta(minutes=16))

        assert limiter.record_failed_login("a@x.com") is False
        assert limiter.failure_count("a@x.com") == 1
        assert limiter.remaining_attempts("a@x.com") == 4

    def test_still_limited_at_window_boundary(self, limiter: LoginAttemptLimiter, fake_clock: FakeClock) -> None:
        for _ in range(5):
            limiter.record_failed_login("a@x.com")

        fake_clock.advance(timedelta(minutes=15))

        assert limiter.is_rate_limited("a@x.com") is True

    def test_failures_in_later_window_do_not_stack(
        self, limiter: LoginAttemptLimiter, fake_clock: FakeClock
    ) -> None:
        for _ in range(4):
            limiter.record_failed_login("a@x.com")
        fake_clock.advance(timedelta(minutes=20))
        for _ in range(4):
            assert limiter.record_failed_login("a@x.com") is False

        assert limiter.is_rate_limited("a@x.com") is False

    def test_window_is_anchored_at_first_failure(self, limiter: LoginAttemptLimiter, fake_clock: FakeClock) -> None:
        limiter.record_failed_login("a@x.com")
        fake_clock.advance(timedelta(minutes=10))
        for _ in range(3):
            limiter.record_failed_login("a@x.com")
        fake_clock.advance(timedelta(minutes=6))

        # the window opened 16 minutes ago, so this failure starts a new one
        assert limiter.record_failed_login("a@x.com") is False
        assert limiter.failure_count("a@x.com") == 1

    def test_expired_record_is_evicted_on_read(self, limiter: LoginAttemptLimiter, fake_clock: FakeClock) -> None:
        limiter.record_failed_login("a@x.com")
        fake_clock.advance(timedelta(hours=1))

        limiter.is_rate_limited("a@x.com")

        assert len(limiter) == 0


class TestRemainingAndRetryAfter:
    def test_remaining_attempts_counts_down(self, limiter: LoginAttemptLimiter) -> None:
        assert limiter.remaining_attempts("a@x.com") == 5
        limiter.record_failed_login("a@x.com")
        limiter.record_failed_login("a@x.com")
        assert limiter.remaining_attempts("a@x.com") == 3

        for _ in range(5):
            limiter.record_failed_login("a@x.com")
        assert limiter.remaining_attempts("a@x.com") == 0

    def test_seconds_until_reset(self, limiter: LoginAttemptLimiter, fake_clock: FakeClock) -> None:
        assert limiter.seconds_until_reset("a@x.com") == 0

        limiter.record_failed_login("a@x.com")
        fake_clock.advance(timedelta(minutes=5))

        assert limiter.seconds_until_reset("a@x.com") == 600


class TestSweep:
    def test_sweep_keeps_records_inside_grace(self, fake_clock: FakeClock) -> None:
        limiter = LoginAttemptLimiter(
            window=timedelta(minutes=15), sweep_grace=timedelta(minutes=15), clock=fake_clock
        )
        limiter.record_failed_login("old@x.com")
        fake_clock.advance(timedelta(minutes=20))
        limiter.record_failed_login("new@x.com")

        assert limiter.sweep_expired() == 0
        assert len(limiter) == 2

        fake_clock.advance(timedelta(minutes=11))

        assert limiter.sweep_expired() == 1
        assert len(limiter) == 1
        assert limiter.failure_count("new@x.com") == 1

    def test_sweep_does_not_change_limit_decisions(self, limiter: LoginAttemptLimiter, fake_clock: FakeClock) -> None:
        for _ in range(5):
            limiter.record_failed_login("a@x.com")

        limiter.sweep_expired()

        assert limiter.is_rate_limited("a@x.com") is True

    def test_sweep_on_empty_table(self, limiter: LoginAttemptLimiter) -> None:
        assert limiter.sweep_expired() == 0


class TestConfiguration:
    @pytest.mark.parametrize(
        "kwargs",
        [
            {"max_failures": 0},
            {"window": timedelta(0)},
            {"sweep_grace": timedelta(seconds=-1)},
        ],
    )
    def test_invalid_configuration(self, kwargs: dict) -> None:
        with pytest.raises(ValueError):
            LoginAttemptLimiter(**kwargs)

    def test_defaults(self) -> None:
        limiter = LoginAttemptLimiter()

        assert limiter.max_failures == 5
        assert limiter.window == timedelta(minutes=15)


class TestConcurrency:
    def test_parallel_failures_are_not_lost(self, limiter: LoginAttemptLimiter) -> None:
        workers = 5
        barrier = threading.Barrier(workers)

        def fail_once() -> bool:
            barrier.wait()
            return limiter.record_failed_login("a@x.com")

        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(lambda _: fail_once(), range(workers)))

        assert results.count(True) == 1
        assert limiter.failure_count("a@x.com") == 5
        assert limiter.is_rate_limited("a@x.com") is True

    def test_many_threads_many_identifiers(self, fake_clock: FakeClock) -> None:
        limiter = LoginAttemptLimiter(max_failures=1000, clock=fake_clock, stripes=4)
        identifiers = [f"user{i}@x.com" for i in range(20)]

        def hammer(identifier: str) -> None:
            for _ in range(50):
                limiter.record_failed_login(identifier)

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(hammer, identifiers * 2))

        assert all(limiter.failure_count(identifier) == 100 for identifier in identifiers)

    def test_sweep_while_recording(self, fake_clock: FakeClock) -> None:
        limiter = LoginAttemptLimiter(sweep_grace=timedelta(0), clock=fake_clock)
        for i in range(200):
            limiter.record_failed_login(f"stale{i}@x.com")
        fake_clock.advance(timedelta(hours=1))

        with ThreadPoolExecutor(max_workers=2) as pool:
            sweep = pool.submit(limiter.sweep_expired)
            record = pool.submit(lambda: [limiter.record_failed_login("fresh@x.com") for _ in range(3)])
            removed = sweep.result()
            record.result()

        assert limiter.failure_count("fresh@x.com") == 3
        assert removed == 200
        assert len(limiter) == 1
