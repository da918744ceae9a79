"""ABOUTME: Domain models for fixed-window rate limiting
ABOUTME: Tracks failed logins and request counts per identifier inside a counting window"""

import math
from datetime import datetime, timedelta


class CountingWindow:
    """A fixed time window that starts at `window_start` and lasts `window`.

    The exact end instant still belongs to the window; anything later is expired.
    """

    def __init__(self, identifier: str, window_start: datetime, count: int = 0):
        self.identifier = identifier
        self.window_start = window_start
        self.count = count

    def window_end(self, window: timedelta) -> datetime:
        return self.window_start + window

    def is_expired(self, now: datetime, window: timedelta) -> bool:
        return now > self.window_end(window)

    def is_stale(self, now: datetime, window: timedelta, grace: timedelta) -> bool:
        """Expired for longer than `grace`, so nothing will miss it if it goes."""
        return now > self.window_end(window) + grace

    def seconds_remaining(self, now: datetime, window: timedelta) -> int:
        remaining = (self.window_end(window) - now).total_seconds()
        return max(0, math.ceil(remaining))

    def increment(self) -> int:
        self.count += 1
        return self.count

    def reset(self, now: datetime) -> None:
        self.count = 0
        self.window_start = now

    def __repr__(self) -> str:
        return f"{type(self).__name__}(identifier={self.identifier!r}, count={self.count}, window_start={self.window_start.isoformat()})"


class AttemptRecord(CountingWindow):
    """Failed login attempts for one account identifier."""

    @property
    def failure_count(self) -> int:
        return self.count


class RequestWindow(CountingWindow):
    """Requests made by one user inside the current window."""
