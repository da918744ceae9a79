"""ABOUTME: In-memory limiter for failed login attempts per account identifier
ABOUTME: Counts failures inside a fixed window and reports identifiers that reached the threshold"""

from datetime import timedelta

import structlog

from crisisconnect.adapters.clock import Clock, SystemClock
from crisisconnect.domain.rate_limits import AttemptRecord
from crisisconnect.domain.value_objects import normalize_identifier

from .locking import DEFAULT_STRIPES, StripedLock

log = structlog.get_logger(__name__)

MAX_LOGIN_FAILURES = 5
LOGIN_WINDOW = timedelta(minutes=15)
SWEEP_GRACE = timedelta(minutes=15)


class LoginAttemptLimiter:
    """
    Tracks failed login attempts per identifier (normalised email) and
    denies further attempts once `max_failures` is reached inside the window.

    Fixed-window counting: a window starts at the first failure and every
    failure until it expires counts against it. One record per identifier,
    O(1) per operation. The table is only touched through these methods;
    each read-modify-write holds the stripe lock for its identifier.
    """

    def __init__(
        self,
        max_failures: int = MAX_LOGIN_FAILURES,
        window: timedelta = LOGIN_WINDOW,
        sweep_grace: timedelta = SWEEP_GRACE,
        clock: Clock | None = None,
        stripes: int = DEFAULT_STRIPES,
    ) -> None:
        if max_failures < 1:
            raise ValueError(f"max_failures must be at least 1, got {max_failures}")
        if window <= timedelta(0):
            raise ValueError(f"window must be positive, got {window}")
        if sweep_grace < timedelta(0):
            raise ValueError(f"sweep_grace cannot be negative, got {sweep_grace}")
        self.max_failures = max_failures
        self.window = window
        self.sweep_grace = sweep_grace
        self._clock = clock or SystemClock()
        self._locks = StripedLock(stripes)
        self._records: dict[str, AttemptRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def _live_record(self, key: str) -> AttemptRecord | None:
        """Return the record for key if its window is still open, evicting it otherwise.

        Caller must hold the stripe lock for key.
        """
        record = self._records.get(key)
        if record is None:
            return None
        if record.is_expired(self._clock.now(), self.window):
            del self._records[key]
            return None
        return record

    def is_rate_limited(self, identifier: str) -> bool:
        """Check whether login attempts for this identifier must be rejected outright."""
        key = normalize_identifier(identifier)
        with self._locks.for_key(key):
            record = self._live_record(key)
            return record is not None and record.failure_count >= self.max_failures

    def record_failed_login(self, identifier: str) -> bool:
        """
        Record a failed login attempt.

        Starts a fresh window when there is no record or the previous window
        has expired, otherwise counts against the current one.

        Returns:
            True if the identifier is rate limited after this failure
        """
        key = normalize_identifier(identifier)
        with self._locks.for_key(key):
            now = self._clock.now()
            record = self._records.get(key)
            if record is None:
                record = AttemptRecord(key, window_start=now)
                self._records[key] = record
            elif record.is_expired(now, self.window):
                record.reset(now)
            failures = record.increment()

        if failures == self.max_failures:
            log.warning("login_rate_limit_exceeded", identifier=key, failures=failures)
        return failures >= self.max_failures

    def clear_failed_logins(self, identifier: str) -> None:
        """Forget all failures for this identifier, e.g. after a successful login."""
        key = normalize_identifier(identifier)
        with self._locks.for_key(key):
            self._records.pop(key, None)

    def remaining_attempts(self, identifier: str) -> int:
        """Number of failures still allowed before the identifier is limited."""
        key = normalize_identifier(identifier)
        with self._locks.for_key(key):
            record = self._live_record(key)
            if record is None:
                return self.max_failures
            return max(0, self.max_failures - record.failure_count)

    def failure_count(self, identifier: str) -> int:
        key = normalize_identifier(identifier)
        with self._locks.for_key(key):
            record = self._live_record(key)
            return record.failure_count if record else 0

    def seconds_until_reset(self, identifier: str) -> int:
        """Seconds until the current window closes, 0 if nothing is being counted."""
        key = normalize_identifier(identifier)
        with self._locks.for_key(key):
            record = self._live_record(key)
            if record is None:
                return 0
            return record.seconds_remaining(self._clock.now(), self.window)

    def sweep_expired(self) -> int:
        """
        Remove records whose window closed more than `sweep_grace` ago.

        Only bounds memory; `is_rate_limited` is correct without it. Iterates a
        snapshot and re-checks each candidate under its lock, since another
        thread may have reset it in the meantime.

        Returns:
            Number of records removed
        """
        removed = 0
        for key in list(self._records.copy()):
            with self._locks.for_key(key):
                record = self._records.get(key)
                if record is not None and record.is_stale(self._clock.now(), self.window, self.sweep_grace):
                    del self._records[key]
                    removed += 1
        log.info("rate_limit_sweep", table="login_attempts", removed=removed, remaining=len(self._records))
        return removed
