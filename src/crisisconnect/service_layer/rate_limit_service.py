"""ABOUTME: Rate limiting for abuse prevention across logins, need views and API requests
ABOUTME: Bundles the login limiter with fixed-window request counters and sweeps all of them"""

import uuid
from datetime import timedelta

import structlog

from crisisconnect.adapters.clock import Clock, SystemClock
from crisisconnect.domain.rate_limits import RequestWindow
from crisisconnect.domain.value_objects import UserRole

from .exceptions import RateLimitExceeded
from .locking import DEFAULT_STRIPES, StripedLock
from .login_limiter import LoginAttemptLimiter

log = structlog.get_logger(__name__)


class RequestRateLimiter:
    """Fixed-window request counter keyed by an arbitrary string.

    Each hit increments first, then the caller is over the limit once the
    count in the window is greater than `limit`.
    """

    def __init__(
        self,
        name: str,
        limit: int,
        window: timedelta,
        clock: Clock | None = None,
        stripes: int = DEFAULT_STRIPES,
    ) -> None:
        if limit < 1:
            raise ValueError(f"limit must be at least 1, got {limit}")
        if window <= timedelta(0):
            raise ValueError(f"window must be positive, got {window}")
        self.name = name
        self.limit = limit
        self.window = window
        self._clock = clock or SystemClock()
        self._locks = StripedLock(stripes)
        self._windows: dict[str, RequestWindow] = {}

    def __len__(self) -> int:
        return len(self._windows)

    def hit(self, key: str) -> int:
        """Count one request for key and return the count in the current window."""
        with self._locks.for_key(key):
            now = self._clock.now()
            request_window = self._windows.get(key)
            if request_window is None:
                request_window = RequestWindow(key, window_start=now)
                self._windows[key] = request_window
            elif request_window.is_expired(now, self.window):
                request_window.reset(now)
            return request_window.increment()

    def retry_after_seconds(self, key: str) -> int:
        with self._locks.for_key(key):
            request_window = self._windows.get(key)
            if request_window is None:
                return 0
            return request_window.seconds_remaining(self._clock.now(), self.window)

    def check(self, key: str) -> int:
        """
        Count one request and enforce the limit.

        Raises:
            RateLimitExceeded: If this request takes the count over the limit
        """
        count = self.hit(key)
        if count > self.limit:
            retry_after = self.retry_after_seconds(key)
            log.warning(f"{self.name}_rate_limit_exceeded", key=key, count=count, limit=self.limit)
            raise RateLimitExceeded(operation=self.name.replace("_", " "), retry_after_seconds=retry_after)
        return count

    def sweep_expired(self) -> int:
        """Remove windows that have closed; returns the number removed."""
        removed = 0
        for key in list(self._windows.copy()):
            with self._locks.for_key(key):
                request_window = self._windows.get(key)
                if request_window is not None and request_window.is_expired(self._clock.now(), self.window):
                    del self._windows[key]
                    removed += 1
        return removed


class RateLimitService:
    """
    Rate limits for abuse prevention:
    - Login attempts: 5 failures per 15 minutes
    - Need detail views: 20 per hour (admins exempt)
    - API requests: 100 per minute (authenticated users)
    """

    def __init__(
        self,
        login_limiter: LoginAttemptLimiter,
        need_view_limiter: RequestRateLimiter,
        api_request_limiter: RequestRateLimiter,
    ) -> None:
        self.login_limiter = login_limiter
        self.need_view_limiter = need_view_limiter
        self.api_request_limiter = api_request_limiter

    def check_need_view_rate_limit(self, user_id: uuid.UUID, role: UserRole | None) -> None:
        """Protects against insiders browsing many cases; admins are not limited.

        Raises:
            RateLimitExceeded: If the user viewed too many needs in the window
        """
        if role == UserRole.ADMIN:
            return
        self.need_view_limiter.check(str(user_id))

    def check_api_rate_limit(self, user_id: uuid.UUID | None) -> None:
        """Unauthenticated requests are skipped here; they are limited by other means."""
        if user_id is None:
            return
        self.api_request_limiter.check(str(user_id))

    def cleanup_expired_entries(self) -> dict[str, int]:
        """Sweep every table. Run periodically by the sweep scheduler."""
        result = {
            "login_attempts": self.login_limiter.sweep_expired(),
            "need_views": self.need_view_limiter.sweep_expired(),
            "api_requests": self.api_request_limiter.sweep_expired(),
        }
        log.info("rate_limit_cleanup_completed", **result)
        return result
