"""
middleware/auth_middleware.py — Session validation decorator.

The @require_auth decorator:
  1. Reads the session credential from transport-level state: the session
     cookie, or failing that an "Authorization: Bearer <token>" header.
     The request body is never consulted.
  2. Hands it to identity_service.resolve_session(), which verifies the
     signature, the server-side session row and the user row.
  3. Attaches the resulting Identity to flask.g for this request only.

Strict responsibility boundary:
  - This middleware answers "who are you" (401) and nothing else.
  - Ownership and membership decisions (403/404/409) belong to
    services/authorization_service.py.
  - Services receive the Identity as a plain argument, with no knowledge of
    cookies or headers.

Error codes:
  UNAUTHENTICATED (401) — no credential at all
  INVALID_SESSION (401) — credential present but not resolvable
"""

from __future__ import annotations

import functools
from typing import Callable

from flask import current_app, g, request

from studybuddy.app.errors import AppError, ErrorCode
from studybuddy.app.extensions import db
from studybuddy.app.services import identity_service


def require_auth(f: Callable) -> Callable:
    """
    Route decorator that enforces an authenticated session.

    Sets flask.g.identity (an identity_service.Identity) and
    flask.g.session_token. Raises AppError on failure; the global error
    handler renders it.

    Usage:
        @listings_bp.route("/listings")
        @require_auth
        def list_listings():
            identity = g.identity
            ...
    """
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        _authenticate_request()
        return f(*args, **kwargs)

    return decorated


def extract_credential() -> str | None:
    """
    Returns the raw session credential carried by the current request, or None.

    Cookie first (browser clients), then the Authorization header (API
    clients). A malformed Authorization header counts as an invalid credential,
    not a missing one.
    """
    cookie_name = current_app.config.get("AUTH_COOKIE_NAME", "access_token")
    token = request.cookies.get(cookie_name)
    if token:
        return token

    auth_header = request.headers.get("Authorization", "")
    if not auth_header:
        return None

    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise AppError(
            ErrorCode.INVALID_SESSION,
            "Authorization header must be in the format: Bearer <token>.",
            401,
        )
    return parts[1]


def _authenticate_request() -> None:
    """
    Resolves the caller's Identity and stores it on flask.g.

    Separated from the decorator wrapper so tests can call it directly
    inside a test_request_context.
    """
    raw_token = extract_credential()
    if not raw_token:
        raise AppError(
            ErrorCode.UNAUTHENTICATED,
            "Authentication required. Log in to continue.",
            401,
        )

    g.identity = identity_service.resolve_session(raw_token, db.session)
    g.session_token = raw_token
