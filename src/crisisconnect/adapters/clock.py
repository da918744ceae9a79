"""ABOUTME: Time source abstraction so window expiry can be driven by tests
ABOUTME: Provides the Clock protocol and the wall-clock implementation used in production"""

from datetime import UTC, datetime
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Timezone-aware UTC wall clock."""

    def now(self) -> datetime:
        return datetime.now(UTC)
