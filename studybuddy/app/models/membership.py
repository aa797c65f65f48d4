"""
models/membership.py — Membership table definition.

No business logic. No imports from services or routes.

UNIQUE(listing_id, member_id) is the authoritative guard against double
joins; membership_service's pre-check only gives the common case a clean
error without hitting the constraint.

listing_id deliberately has no foreign key: deleting a listing leaves its
membership rows behind (no cascade, no RESTRICT). They become unreachable
because every membership read starts from the listing lookup.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from studybuddy.app.extensions import db


class Membership(db.Model):
    __tablename__ = "memberships"

    __table_args__ = (
        UniqueConstraint("listing_id", "member_id", name="uq_memberships_listing_member"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    listing_id: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        index=True,
    )

    member_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    # Snapshot at join time, same semantics as Listing.owner_*.
    member_email: Mapped[str] = mapped_column(String(255), nullable=False)

    member_display_name: Mapped[str] = mapped_column(String(255), nullable=False)

    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<Membership id={self.id} "
            f"listing_id={self.listing_id} "
            f"member_id={self.member_id}>"
        )
