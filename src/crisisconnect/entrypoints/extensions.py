"""ABOUTME: Flask extensions initialization and configuration
ABOUTME: Sets up Flask-Babel and registers the shared rate limit service and its sweeper on the app"""

import atexit
import uuid

from flask import Flask, current_app, has_request_context, request
from flask_babel import Babel

from crisisconnect.adapters.scheduler import SweepScheduler
from crisisconnect.domain.value_objects import UserRole, parse_role
from crisisconnect.service_layer.auth_service import CredentialChecker
from crisisconnect.service_layer.rate_limit_service import RateLimitService

babel = Babel()

USER_ID_HEADER = "X-User-Id"
USER_ROLE_HEADER = "X-User-Role"


def init_extensions(
    app: Flask,
    rate_limits: RateLimitService,
    sweeper: SweepScheduler,
    credential_checker: CredentialChecker,
) -> None:
    """Initialize Flask extensions with app instance."""

    # Initialize Flask-Babel for i18n/l10n
    babel.init_app(app, locale_selector=get_locale)

    # One limiter table per process, shared by every request thread
    app.extensions["rate_limits"] = rate_limits
    app.extensions["rate_limit_sweeper"] = sweeper
    app.extensions["credential_checker"] = credential_checker

    if app.config.get("RATE_LIMIT_SWEEPER_ENABLED", False):
        sweeper.start()
        atexit.register(sweeper.shutdown)


def get_locale() -> str:
    """Get the best language match for the request."""
    supported_languages = current_app.config.get("LANGUAGES", ["en"])
    if not has_request_context():
        return str(current_app.config.get("BABEL_DEFAULT_LOCALE", supported_languages[0]))

    requested_language = request.args.get("lang")
    if requested_language and requested_language in supported_languages:
        return requested_language

    return request.accept_languages.best_match(supported_languages) or supported_languages[0]


def get_rate_limits() -> RateLimitService:
    rate_limits = current_app.extensions["rate_limits"]
    assert isinstance(rate_limits, RateLimitService)
    return rate_limits


def get_sweeper() -> SweepScheduler:
    sweeper = current_app.extensions["rate_limit_sweeper"]
    assert isinstance(sweeper, SweepScheduler)
    return sweeper


def get_credential_checker() -> CredentialChecker:
    checker: CredentialChecker = current_app.extensions["credential_checker"]
    return checker


def get_request_user() -> tuple[uuid.UUID | None, UserRole | None]:
    """The caller's identity as forwarded by the session layer in front of us.

    Missing or malformed ids count as unauthenticated.
    """
    raw_user_id = request.headers.get(USER_ID_HEADER, "")
    try:
        user_id = uuid.UUID(raw_user_id) if raw_user_id else None
    except ValueError:
        user_id = None
    return user_id, parse_role(request.headers.get(USER_ROLE_HEADER))
