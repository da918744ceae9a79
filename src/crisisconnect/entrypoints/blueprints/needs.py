"""ABOUTME: Need detail access gate applying the per-user need view limit
ABOUTME: Stops data harvesting by non-admin users browsing many cases"""

import uuid

from flask import Blueprint, jsonify
from flask.typing import ResponseReturnValue
from werkzeug.exceptions import Unauthorized

from crisisconnect.entrypoints.extensions import get_rate_limits, get_request_user
from crisisconnect.translations import _

needs_bp = Blueprint("needs", __name__)


@needs_bp.route("/<uuid:need_id>/access")
def need_access(need_id: uuid.UUID) -> ResponseReturnValue:
    """Count a need detail view for the caller, before the need itself is loaded."""
    user_id, role = get_request_user()
    if user_id is None:
        raise Unauthorized(_("Authentication required"))

    get_rate_limits().check_need_view_rate_limit(user_id, role)
    return jsonify({"need_id": str(need_id), "allowed": True}), 200
