"""
models/listing.py — Listing table definition.

No business logic. No imports from services or routes.

owner_email / owner_display_name are a snapshot taken when the listing is
created. They are not rewritten when the owner edits their profile.

sqlite_autoincrement keeps SQLite from handing a deleted listing's id to a
new row, so orphaned memberships can never attach to a different listing.
PostgreSQL sequences already behave this way.
"""

from __future__ import annotations

from datetime import date, datetime, timezone

from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from studybuddy.app.extensions import db

# Largest value an Integer column holds on every supported backend.
INT_COLUMN_MAX = 2**31 - 1


class Listing(db.Model):
    __tablename__ = "listings"

    __table_args__ = (
        CheckConstraint("group_size >= 1", name="ck_listings_group_size_positive"),
        CheckConstraint("LENGTH(TRIM(location)) > 0", name="ck_listings_location_nonempty"),
        CheckConstraint("LENGTH(TRIM(time)) > 0", name="ck_listings_time_nonempty"),
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    # Immutable after insert. listing_service never writes it on update.
    owner_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    group_size: Mapped[int] = mapped_column(Integer, nullable=False)

    location: Mapped[str] = mapped_column(String(120), nullable=False)

    # Free-form slot label, e.g. "14:00" or "Afternoon".
    time: Mapped[str] = mapped_column(String(50), nullable=False)

    meeting_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    owner_email: Mapped[str] = mapped_column(String(255), nullable=False)

    owner_display_name: Mapped[str] = mapped_column(String(255), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
        index=True,
    )

    owner: Mapped["User"] = relationship(  # noqa: F821
        "User",
        back_populates="listings",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<Listing id={self.id} "
            f"owner_id={self.owner_id} "
            f"location={self.location!r}>"
        )
