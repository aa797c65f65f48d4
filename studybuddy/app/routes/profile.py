"""
routes/profile.py — The caller's own identity.

Endpoints:
  GET    /me   → 200  current identity + created_at
  PUT    /me   → 200  update display name
"""

from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from studybuddy.app.extensions import db
from studybuddy.app.middleware.auth_middleware import require_auth
from studybuddy.app.schemas.auth_schema import UpdateProfileSchema
from studybuddy.app.services import identity_service

profile_bp = Blueprint("profile", __name__)


@profile_bp.route("/me", methods=["GET"])
@require_auth
def me():
    """GET /me — The caller's identity and when the account was created."""
    profile = identity_service.get_profile(
        user_id=g.identity.id,
        session=db.session,
    )
    return jsonify({"data": {"user": profile}, "warnings": []}), 200


@profile_bp.route("/me", methods=["PUT"])
@require_auth
def update_me():
    """PUT /me — Change display name. Existing listings keep the old name."""
    data = UpdateProfileSchema().load(request.get_json(force=True, silent=True) or {})
    profile = identity_service.update_display_name(
        user_id=g.identity.id,
        display_name=data["display_name"],
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": {"user": profile}, "warnings": []}), 200
