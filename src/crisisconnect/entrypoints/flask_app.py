"""ABOUTME: Flask application factory with configuration, blueprints, and error handling
ABOUTME: Creates the app, wires the rate limit service, and maps service errors to HTTP responses"""

from flask import Flask, Response, jsonify
from werkzeug.exceptions import HTTPException

import crisisconnect.logging
from crisisconnect import bootstrap, config
from crisisconnect.adapters.clock import Clock
from crisisconnect.entrypoints.extensions import get_rate_limits, get_request_user, init_extensions
from crisisconnect.service_layer.auth_service import CredentialChecker
from crisisconnect.service_layer.exceptions import InvalidCredentials, RateLimitExceeded
from crisisconnect.translations import load_translations


def create_app(
    config_name: str = "",
    credential_checker: CredentialChecker | None = None,
    clock: Clock | None = None,
) -> Flask:
    """
    Flask application factory.

    Args:
        config_name: Configuration name (development, testing, production)
        credential_checker: Verifies (email, password) against the user store
        clock: Time source for the limiters (tests pass a fake one)

    Returns:
        Configured Flask application instance
    """
    crisisconnect.logging.logging_setup(config.get_log_level())

    if credential_checker is None:
        raise config.InvalidConfig("create_app needs a credential_checker to authenticate logins")

    app = Flask(__name__)

    # Load configuration
    flask_config = config.get_config(config_name)
    app.config.from_object(flask_config)
    load_translations(app.config["BABEL_TRANSLATION_DIRECTORIES"], app.config["LANGUAGES"])

    rate_limits = bootstrap.bootstrap(flask_config, clock=clock)
    sweeper = bootstrap.build_sweeper(rate_limits, flask_config)
    init_extensions(app, rate_limits, sweeper, credential_checker)

    register_blueprints(app)
    register_before_request_handlers(app)
    register_error_handlers(app)

    app.logger.info("CrisisConnect application startup")

    return app


def register_blueprints(app: Flask) -> None:
    """Register application blueprints."""
    from .blueprints.auth import auth_bp
    from .blueprints.health import health_bp
    from .blueprints.needs import needs_bp

    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(needs_bp, url_prefix="/needs")
    app.register_blueprint(health_bp)


def register_before_request_handlers(app: Flask) -> None:
    @app.before_request
    def enforce_api_rate_limit() -> None:
        """General per-user request limit; raises RateLimitExceeded, handled below."""
        user_id, _role = get_request_user()
        get_rate_limits().check_api_rate_limit(user_id)


def _error_response(message: str, status: int) -> tuple[Response, int]:
    return jsonify({"error": message}), status


def register_error_handlers(app: Flask) -> None:
    """Register error handlers translating service errors to HTTP responses."""

    @app.errorhandler(RateLimitExceeded)
    def rate_limited(error: RateLimitExceeded) -> tuple[Response, int]:
        response, status = _error_response(str(error), 429)
        if error.retry_after_seconds:
            response.headers["Retry-After"] = str(error.retry_after_seconds)
        return response, status

    @app.errorhandler(InvalidCredentials)
    def invalid_credentials(error: InvalidCredentials) -> tuple[Response, int]:
        return _error_response(str(error), 401)

    @app.errorhandler(HTTPException)
    def http_error(error: HTTPException) -> tuple[Response, int]:
        return _error_response(error.description or error.name, error.code or 500)

    @app.errorhandler(500)
    def internal_error(error: Exception) -> tuple[Response, int]:
        app.logger.error(f"Server Error: {error}")
        return _error_response("Internal server error", 500)
