"""ABOUTME: Custom exceptions for service layer operations
ABOUTME: Defines the errors the authentication flow and rate limiters raise to their callers"""

import math

from crisisconnect.translations import gettext as _


class CrisisConnectError(Exception):
    """Base exception for all our custom errors."""


class ServiceLayerError(CrisisConnectError):
    """Base exception for all service layer errors."""


class InvalidCredentials(ServiceLayerError):
    """Raised when authentication fails due to invalid credentials.

    The message never says whether the account exists.
    """

    def __init__(self, message: str = "", remaining_attempts: int | None = None) -> None:
        if not message:
            if remaining_attempts is not None and 0 < remaining_attempts <= 3:
                message = _(
                    "Invalid email or password. %(remaining)s attempts remaining before account lockout",
                    remaining=remaining_attempts,
                )
            else:
                message = _("Invalid email or password")
        super().__init__(message)
        self.remaining_attempts = remaining_attempts


class RateLimitExceeded(ServiceLayerError):
    """Raised when a user has exceeded rate limits for an operation."""

    def __init__(self, operation: str = "", retry_after_seconds: int = 0, message: str = "") -> None:
        if not message:
            if operation and retry_after_seconds:
                message = _(
                    "Rate limit exceeded for %(operation)s. Please try again in %(seconds)s seconds",
                    operation=operation,
                    seconds=retry_after_seconds,
                )
            elif operation:
                message = _("Rate limit exceeded for %(operation)s", operation=operation)
            else:
                message = _("Rate limit exceeded. Please try again later")
        super().__init__(message)
        self.operation = operation
        self.retry_after_seconds = retry_after_seconds


class TooManyLoginAttempts(RateLimitExceeded):
    """Raised before credentials are checked when the identifier is already limited."""

    def __init__(self, retry_after_seconds: int = 0) -> None:
        minutes = _minutes_for_message(retry_after_seconds)
        super().__init__(
            operation="login",
            retry_after_seconds=retry_after_seconds,
            message=_("Too many login attempts. Please try again in %(minutes)s minutes.", minutes=minutes),
        )


class AccountTemporarilyLocked(RateLimitExceeded):
    """Raised when a failed login is the one that tips the identifier over the threshold."""

    def __init__(self, retry_after_seconds: int = 0) -> None:
        minutes = _minutes_for_message(retry_after_seconds)
        super().__init__(
            operation="login",
            retry_after_seconds=retry_after_seconds,
            message=_(
                "Too many failed login attempts. Account temporarily locked for %(minutes)s minutes.",
                minutes=minutes,
            ),
        )


def _minutes_for_message(retry_after_seconds: int) -> int:
    # round up, and never tell the user to wait 0 minutes
    return max(1, math.ceil(retry_after_seconds / 60))
