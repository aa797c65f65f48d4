"""
app/__init__.py — Flask application factory.

Pattern: create_app(config_name) creates and returns a configured Flask app.
         Nothing is initialised at import time — this enables:
           - Multiple isolated test app instances
           - Clean separation between app creation and app startup
           - Alembic to import the metadata without starting the server

Responsibilities:
  1. Load configuration from config_by_name[config_name]
  2. Initialise SQLAlchemy via init_app()
  3. Register the route blueprints
  4. Register global error handlers (AppError → JSON, store outage → 503,
     HTTPException → JSON, Exception → 500)
  5. Add credentialed CORS headers for the configured browser origins

Note on model imports:
  All model classes are imported inside create_app() so that SQLAlchemy's
  metadata is populated before Alembic or create_all() inspects it.
"""

from __future__ import annotations

import logging
import traceback

from flask import Flask, jsonify, request
from marshmallow import ValidationError
from sqlalchemy.exc import OperationalError, TimeoutError as PoolTimeoutError
from werkzeug.exceptions import HTTPException

from studybuddy.config import config_by_name, validate_production_config


# ── Application factory ────────────────────────────────────────────────────

def create_app(config_name: str = "development") -> Flask:
    """
    Creates and returns a configured Flask application instance.

    Args:
        config_name: One of "development", "testing", "production".
                     Resolved via config_by_name in config.py.
                     Defaults to "development".

    Returns:
        A fully configured Flask app ready to serve requests.
    """
    app = Flask(__name__)

    # ── Configuration ──────────────────────────────────────────────────────
    config_class = config_by_name.get(config_name, config_by_name["development"])
    app.config.from_object(config_class)

    if config_name == "production":
        validate_production_config(app)  # raises ValueError if misconfigured

    _configure_logging(app)

    # ── Extensions ─────────────────────────────────────────────────────────
    # Import here (not at module top) to avoid circular imports.
    from studybuddy.app.extensions import db
    db.init_app(app)

    # ── Model registration ─────────────────────────────────────────────────
    with app.app_context():
        from studybuddy.app.models import (  # noqa: F401
            auth_session,
            listing,
            membership,
            user,
        )

    _register_blueprints(app)
    _register_error_handlers(app)
    _register_cors(app)

    return app


def _configure_logging(app: Flask) -> None:
    """Applies LOG_LEVEL to the app logger and the studybuddy service loggers."""
    level = logging.getLevelName(str(app.config.get("LOG_LEVEL", "INFO")).upper())
    if not isinstance(level, int):
        level = logging.INFO
    app.logger.setLevel(level)
    logging.getLogger("studybuddy").setLevel(level)


def _register_blueprints(app: Flask) -> None:
    """
    Registers all route blueprints.

    Account routes live at the root (/signup, /login, /logout, /me) to match
    what the browser client calls; everything else hangs off /listings.
    """
    from studybuddy.app.routes.auth import auth_bp
    from studybuddy.app.routes.listings import listings_bp
    from studybuddy.app.routes.profile import profile_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(profile_bp)
    app.register_blueprint(listings_bp, url_prefix="/listings")


def _register_error_handlers(app: Flask) -> None:
    """
    Registers global error handlers.

    Handlers:
      AppError          → structured JSON error envelope with its HTTP status
      ValidationError   → INVALID_ARGUMENT (400) naming the first bad field
      OperationalError /
      pool TimeoutError → UNAVAILABLE (503), retryable
      HTTPException     → same envelope, werkzeug's status
      Exception         → INTERNAL_ERROR (500); traceback logged, never returned
    """
    from studybuddy.app.errors import AppError, ErrorCode, unavailable
    from studybuddy.app.extensions import db

    @app.errorhandler(AppError)
    def handle_app_error(error: AppError):
        """
        Converts an AppError raised anywhere in the request lifecycle
        (middleware, service, route) into the standard error envelope.

        Routes never catch AppError — they let it propagate here.
        """
        return jsonify(error.to_dict()), error.http_status

    @app.errorhandler(ValidationError)
    def handle_validation_error(error: ValidationError):
        """
        Reports the FIRST offending field only.

        messages looks like {"group_size": ["group_size must be at least 1."]};
        schema-level errors arrive under "_schema" and carry no field.
        """
        messages = error.messages
        field = None
        message = "Invalid input."

        if isinstance(messages, dict):
            for field_name, field_errors in messages.items():
                field = field_name if field_name != "_schema" else None
                if isinstance(field_errors, list):
                    message = str(field_errors[0]) if field_errors else "Invalid value."
                else:
                    message = str(field_errors)
                break
        elif isinstance(messages, list) and messages:
            message = str(messages[0])

        return jsonify(AppError(ErrorCode.INVALID_ARGUMENT, message, 400, field=field).to_dict()), 400

    @app.errorhandler(OperationalError)
    @app.errorhandler(PoolTimeoutError)
    def handle_store_unavailable(error: Exception):
        """
        The database timed out or could not be reached. Whatever the request
        already sent may or may not have been applied; the caller may retry.
        """
        app.logger.warning("store unavailable: %s", error.__class__.__name__)
        db.session.rollback()
        err = unavailable()
        return jsonify(err.to_dict()), err.http_status

    @app.errorhandler(HTTPException)
    def handle_http_exception(error: HTTPException):
        return jsonify({
            "error": {
                "code": error.name.upper().replace(" ", "_"),
                "message": error.description,
            }
        }), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        """
        Catches all unhandled exceptions and returns a generic 500 response.
        Stack traces never leave the server in the response body.
        """
        app.logger.error(
            "Unhandled exception: %s\n%s",
            str(error),
            traceback.format_exc(),
        )
        return jsonify({
            "error": {
                "code": ErrorCode.INTERNAL_ERROR,
                "message": "An unexpected error occurred. Please try again later.",
            }
        }), 500


def _register_cors(app: Flask) -> None:
    """
    Adds credentialed CORS headers for the configured browser origins.

    The session travels in a cookie, so the origin must be echoed back
    exactly (a wildcard is not allowed together with credentials).
    """

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allowed = app.config.get("CORS_ALLOWED_ORIGINS") or []

        if origin and origin in allowed:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Access-Control-Allow-Credentials"] = "true"
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Methods"] = "GET, POST, PUT, DELETE, OPTIONS"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"

        return response
