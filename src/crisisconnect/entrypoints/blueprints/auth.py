"""ABOUTME: Authentication routes guarded by the login attempt limiter
ABOUTME: Accepts JSON credentials and returns 200, 401 or 429 with generic messages"""

from flask import Blueprint, jsonify, request
from flask.typing import ResponseReturnValue
from werkzeug.exceptions import BadRequest

from crisisconnect.entrypoints.extensions import get_credential_checker, get_rate_limits
from crisisconnect.service_layer.auth_service import authenticate
from crisisconnect.translations import _

auth_bp = Blueprint("auth", __name__)


@auth_bp.route("/login", methods=["POST"])
def login() -> ResponseReturnValue:
    """Log in with email and password.

    Limit and credential errors propagate to the app's error handlers.
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise BadRequest(_("Expected a JSON object with email and password"))

    email = data.get("email")
    password = data.get("password")
    if not isinstance(email, str) or not email.strip() or not isinstance(password, str):
        raise BadRequest(_("Email and password are required"))

    identifier = authenticate(
        get_rate_limits().login_limiter,
        email,
        password,
        get_credential_checker(),
    )
    return jsonify({"email": identifier}), 200
