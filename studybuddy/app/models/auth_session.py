"""
models/auth_session.py — AuthSession table definition.

One row per signed-in browser session. The session cookie carries a signed
JWT whose `sid` claim names this row; only the SHA-256 digest of the sid is
stored, so a leaked table does not yield usable credentials.

FK policy: user_id ON DELETE CASCADE — sessions are owned by the user.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from studybuddy.app.extensions import db


class AuthSession(db.Model):
    __tablename__ = "auth_sessions"

    id: Mapped[int] = mapped_column(primary_key=True)

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # hashlib.sha256(sid).hexdigest(), computed by identity_service._hash_token().
    token_hash: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        unique=True,
    )

    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    # Set on POST /logout.
    revoked: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default="false",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )

    user: Mapped["User"] = relationship(  # noqa: F821
        "User",
        back_populates="auth_sessions",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<AuthSession id={self.id} "
            f"user_id={self.user_id} "
            f"revoked={self.revoked}>"
        )
