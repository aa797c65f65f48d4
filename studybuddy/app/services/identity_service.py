"""
services/identity_service.py — Identity provider: accounts and sessions.

Responsibilities:
  - Account creation and credential validation (bcrypt)
  - Session issuance: a signed JWT (HS256) carried in the session cookie,
    backed by an auth_sessions row so logout really revokes it
  - Session resolution: credential → Identity, re-done on every request
  - Profile read (identity plus created_at) and display-name update, the
    only profile field the core may change

Layer rules:
  - No imports from routes or schemas
  - No use of flask.request, flask.g, or HTTP cookies
  - current_app.config is read for the JWT secret, TTL and bcrypt cost only

Token design:
  - JWT claims: sub (user id as str), sid (random hex), iat, exp
  - auth_sessions stores sha256(sid), never the sid itself
  - The raw JWT only ever leaves the server inside the session cookie

Password storage:
  - bcrypt, cost factor from BCRYPT_LOG_ROUNDS
  - Raw password is never stored, never logged
"""

from __future__ import annotations

import hashlib
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timezone

import bcrypt
import jwt
from flask import current_app
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from studybuddy.app.errors import AppError, ErrorCode
from studybuddy.app.models.auth_session import AuthSession
from studybuddy.app.models.user import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """A verified caller. Lives for one request."""

    id: int
    email: str
    display_name: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "display_name": self.display_name,
        }


@dataclass(frozen=True)
class IssuedSession:
    identity: Identity
    token: str
    max_age: int  # seconds, for the cookie


# ── Private helpers ────────────────────────────────────────────────────────

def _hash_token(raw_token: str) -> str:
    """SHA-256 hex digest of a raw token string."""
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone=True columns.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _normalise_email(email: str) -> str:
    return email.strip().lower()


def _identity_from_user(user: User) -> Identity:
    return Identity(
        id=user.id,
        email=user.email,
        display_name=user.display_name or user.email,
    )


def _profile_from_user(user: User) -> dict:
    profile = _identity_from_user(user).to_dict()
    profile["created_at"] = user.created_at.isoformat() if user.created_at else None
    return profile


def _invalid_session(message: str = "The session is invalid or has expired. Please log in again.") -> AppError:
    return AppError(ErrorCode.INVALID_SESSION, message, 401)


def _issue_session(user: User, session: Session) -> IssuedSession:
    """
    Creates an auth_sessions row and the signed JWT that points at it.
    Flushes only; commit is the route's job.
    """
    now = datetime.now(timezone.utc)
    ttl = current_app.config["JWT_ACCESS_TOKEN_EXPIRES"]
    sid = secrets.token_hex(32)

    session.add(AuthSession(
        user_id=user.id,
        token_hash=_hash_token(sid),
        expires_at=now + ttl,
    ))
    session.flush()

    token = jwt.encode(
        {
            "sub": str(user.id),
            "sid": sid,
            "iat": now,
            "exp": now + ttl,
        },
        current_app.config["JWT_SECRET_KEY"],
        algorithm=current_app.config.get("JWT_ALGORITHM", "HS256"),
    )
    return IssuedSession(
        identity=_identity_from_user(user),
        token=token,
        max_age=int(ttl.total_seconds()),
    )


def _decode(raw_token: str) -> dict:
    try:
        return jwt.decode(
            raw_token,
            current_app.config["JWT_SECRET_KEY"],
            algorithms=[current_app.config.get("JWT_ALGORITHM", "HS256")],
            options={"require": ["sub", "sid", "exp"]},
        )
    except jwt.ExpiredSignatureError:
        raise _invalid_session("The session has expired. Please log in again.")
    except jwt.InvalidTokenError:
        # Bad signature, malformed token, missing claims.
        raise _invalid_session()


def _find_session_record(sid: str, session: Session) -> AuthSession | None:
    return session.execute(
        select(AuthSession).where(AuthSession.token_hash == _hash_token(sid))
    ).scalar_one_or_none()


# ── Public service functions ───────────────────────────────────────────────

def sign_up(email: str, password: str, session: Session) -> IssuedSession:
    """
    Creates an account and signs it in straight away (no email verification).

    Raises:
      AppError(INVALID_ARGUMENT, 400) — email already registered
    """
    email = _normalise_email(email)
    existing = session.execute(
        select(User).where(User.email == email)
    ).scalar_one_or_none()
    if existing is not None:
        raise AppError(
            ErrorCode.INVALID_ARGUMENT,
            f"The email address '{email}' is already registered.",
            400,
            field="email",
        )

    rounds = current_app.config.get("BCRYPT_LOG_ROUNDS", 12)
    password_hash = bcrypt.hashpw(
        password.encode("utf-8"),
        bcrypt.gensalt(rounds=rounds),
    ).decode("utf-8")

    user = User(email=email, password_hash=password_hash)
    session.add(user)
    try:
        session.flush()  # populate user.id before issuing the session
    except IntegrityError:
        # Lost a race with a concurrent sign-up for the same address.
        session.rollback()
        raise AppError(
            ErrorCode.INVALID_ARGUMENT,
            f"The email address '{email}' is already registered.",
            400,
            field="email",
        )

    logger.info("account created user_id=%s", user.id)
    return _issue_session(user, session)


def sign_in(email: str, password: str, session: Session) -> IssuedSession:
    """
    Validates credentials and issues a new session.

    Raises:
      AppError(UNAUTHENTICATED, 401) — unknown email or wrong password.
      Same error for both to avoid account enumeration.
    """
    email = _normalise_email(email)
    user = session.execute(
        select(User).where(User.email == email)
    ).scalar_one_or_none()

    if user is None or not bcrypt.checkpw(
            password.encode("utf-8"),
            user.password_hash.encode("utf-8"),
    ):
        logger.info("sign-in rejected")
        raise AppError(
            ErrorCode.UNAUTHENTICATED,
            "The email or password is incorrect.",
            401,
        )

    return _issue_session(user, session)


def resolve_session(raw_token: str, session: Session) -> Identity:
    """
    Exchanges a session credential for the Identity behind it.

    Nothing is cached: the session row and the user row are read on every call,
    so revocation and profile edits take effect on the next request.

    Raises:
      AppError(INVALID_SESSION, 401) — bad/expired token, unknown or revoked
        session, or the user no longer exists.
    """
    payload = _decode(raw_token)

    record = _find_session_record(str(payload["sid"]), session)
    if record is None or record.revoked:
        logger.info("rejected session: unknown or revoked")
        raise _invalid_session()
    if _as_utc(record.expires_at) <= datetime.now(timezone.utc):
        raise _invalid_session("The session has expired. Please log in again.")
    if str(record.user_id) != str(payload["sub"]):
        logger.warning("rejected session: sub does not match session owner")
        raise _invalid_session()

    user = session.get(User, record.user_id)
    if user is None:
        raise _invalid_session()
    return _identity_from_user(user)


def revoke_session(raw_token: str, session: Session) -> bool:
    """
    Marks the session behind `raw_token` as revoked.

    Idempotent: unknown or already revoked sessions are left alone.
    Returns True when a row was revoked by this call.
    """
    try:
        payload = jwt.decode(
            raw_token,
            current_app.config["JWT_SECRET_KEY"],
            algorithms=[current_app.config.get("JWT_ALGORITHM", "HS256")],
            options={"verify_exp": False},
        )
    except jwt.InvalidTokenError:
        return False

    sid = payload.get("sid")
    if not sid:
        return False

    record = _find_session_record(str(sid), session)
    if record is None or record.revoked:
        return False

    record.revoked = True
    session.flush()
    return True


def get_profile(user_id: int, session: Session) -> dict:
    """
    The caller's identity plus the account creation time, for GET /me.

    Raises:
      AppError(NOT_FOUND, 404) — user does not exist.
    """
    user = session.get(User, user_id)
    if user is None:
        raise AppError(ErrorCode.NOT_FOUND, f"User {user_id} not found.", 404)
    return _profile_from_user(user)


def update_display_name(user_id: int, display_name: str, session: Session) -> dict:
    """
    Sets the caller's display name.

    Listings and memberships keep the name they captured when they were
    created; nothing is propagated here.

    Raises:
      AppError(INVALID_ARGUMENT, 400) — blank name
      AppError(NOT_FOUND, 404)        — user does not exist
    """
    display_name = display_name.strip()
    if not display_name:
        raise AppError(
            ErrorCode.INVALID_ARGUMENT,
            "Display name must not be blank.",
            400,
            field="displayName",
        )

    user = session.get(User, user_id)
    if user is None:
        raise AppError(ErrorCode.NOT_FOUND, f"User {user_id} not found.", 404)

    user.display_name = display_name
    session.flush()
    return _profile_from_user(user)
