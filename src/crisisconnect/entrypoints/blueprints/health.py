"""ABOUTME: Health check endpoint for monitoring service status
ABOUTME: Reports the size of the login attempt table and whether the sweeper runs, as JSON"""

from importlib.metadata import PackageNotFoundError, version

from flask import Blueprint, current_app, jsonify
from flask.typing import ResponseReturnValue

from crisisconnect.entrypoints.extensions import get_rate_limits, get_sweeper

health_bp = Blueprint("health", __name__)


def get_crisisconnect_version() -> str:
    try:
        return version("crisisconnect")
    except PackageNotFoundError:
        return "UNKNOWN"


@health_bp.route("/health")
def health_check() -> ResponseReturnValue:
    """
    Health check endpoint returning JSON with system status.

    Returns:
        JSON response with:
        - tracked_identifiers: int
        - sweeper_running: bool
        - version: str

    HTTP status 200 if everything is healthy, 500 if the sweeper should be
    running and is not.
    """
    sweeper_ok = get_sweeper().running
    sweeper_expected = bool(current_app.config.get("RATE_LIMIT_SWEEPER_ENABLED", False))

    response_data = {
        "tracked_identifiers": len(get_rate_limits().login_limiter),
        "sweeper_running": sweeper_ok,
        "version": get_crisisconnect_version(),
    }

    status_code = 500 if sweeper_expected and not sweeper_ok else 200
    return jsonify(response_data), status_code
