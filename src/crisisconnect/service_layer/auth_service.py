"""ABOUTME: Login flow that puts the login attempt limiter in front of credential checks
ABOUTME: Rejects limited identifiers, records failures, and clears the history on success"""

from collections.abc import Callable

import structlog

from crisisconnect.domain.value_objects import normalize_identifier

from .exceptions import AccountTemporarilyLocked, InvalidCredentials, TooManyLoginAttempts
from .login_limiter import LoginAttemptLimiter

log = structlog.get_logger(__name__)

# (email, password) -> whether the credentials are valid. Backed by the user store.
CredentialChecker = Callable[[str, str], bool]


def authenticate(
    limiter: LoginAttemptLimiter,
    email: str,
    password: str,
    check_credentials: CredentialChecker,
) -> str:
    """
    Authenticate a user with email and password, enforcing the login rate limit.

    Args:
        limiter: Shared login attempt limiter
        email: User's email address
        password: Plain text password
        check_credentials: Verifies the pair against the user store

    Returns:
        The normalised email of the authenticated user

    Raises:
        TooManyLoginAttempts: If the email is already rate limited (credentials are not checked)
        AccountTemporarilyLocked: If this failure made the email rate limited
        InvalidCredentials: If authentication fails
    """
    identifier = normalize_identifier(email)

    if limiter.is_rate_limited(identifier):
        log.info("login_rate_limit_blocked", identifier=identifier)
        raise TooManyLoginAttempts(retry_after_seconds=limiter.seconds_until_reset(identifier))

    if not check_credentials(email, password):
        log.info("login_failed", identifier=identifier)
        if limiter.record_failed_login(identifier):
            raise AccountTemporarilyLocked(retry_after_seconds=limiter.seconds_until_reset(identifier))
        raise InvalidCredentials(remaining_attempts=limiter.remaining_attempts(identifier))

    limiter.clear_failed_logins(identifier)
    log.info("login_succeeded", identifier=identifier)
    return identifier
