"""
routes/auth.py — Sign-up, login and logout.

Layer rules:
  - Parse request body
  - Validate with the appropriate schema (raises ValidationError on bad input)
  - Call exactly ONE service function
  - Commit the DB session
  - Return the standard response envelope: {"data": {...}, "warnings": []}

The session credential is set and cleared as an HttpOnly cookie only; it is
never part of a response body.

Endpoints (registered at the application root):
  POST   /signup   → 201
  POST   /login    → 200
  POST   /logout   → 200
"""

from __future__ import annotations

from flask import Blueprint, current_app, g, jsonify, request

from studybuddy.app.extensions import db
from studybuddy.app.middleware.auth_middleware import require_auth
from studybuddy.app.schemas.auth_schema import LoginSchema, SignUpSchema
from studybuddy.app.services import identity_service

auth_bp = Blueprint("auth", __name__)


def _set_session_cookie(response, issued: identity_service.IssuedSession):
    response.set_cookie(
        current_app.config["AUTH_COOKIE_NAME"],
        issued.token,
        max_age=issued.max_age,
        httponly=True,
        secure=current_app.config["AUTH_COOKIE_SECURE"],
        samesite=current_app.config["AUTH_COOKIE_SAMESITE"],
        path="/",
    )
    return response


def _clear_session_cookie(response):
    response.delete_cookie(
        current_app.config["AUTH_COOKIE_NAME"],
        path="/",
        httponly=True,
        secure=current_app.config["AUTH_COOKIE_SECURE"],
        samesite=current_app.config["AUTH_COOKIE_SAMESITE"],
    )
    return response


@auth_bp.route("/signup", methods=["POST"])
def signup():
    """POST /signup — Create account and start a session. (No auth required.)"""
    data = SignUpSchema().load(request.get_json(force=True, silent=True) or {})
    issued = identity_service.sign_up(
        email=data["email"],
        password=data["password"],
        session=db.session,
    )
    db.session.commit()
    response = jsonify({"data": {"ok": True, "user": issued.identity.to_dict()}, "warnings": []})
    response.status_code = 201
    return _set_session_cookie(response, issued)


@auth_bp.route("/login", methods=["POST"])
def login():
    """POST /login — Authenticate and start a session. (No auth required.)"""
    data = LoginSchema().load(request.get_json(force=True, silent=True) or {})
    issued = identity_service.sign_in(
        email=data["email"],
        password=data["password"],
        session=db.session,
    )
    db.session.commit()
    response = jsonify({"data": {"ok": True, "user": issued.identity.to_dict()}, "warnings": []})
    return _set_session_cookie(response, issued)


@auth_bp.route("/logout", methods=["POST"])
@require_auth
def logout():
    """POST /logout — Revoke the current session and clear the cookie. (Auth required.)"""
    identity_service.revoke_session(
        raw_token=g.session_token,
        session=db.session,
    )
    db.session.commit()
    response = jsonify({"data": {"ok": True}, "warnings": []})
    return _clear_session_cookie(response)
