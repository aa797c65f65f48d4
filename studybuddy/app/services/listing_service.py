"""
services/listing_service.py — Listing CRUD and filtered retrieval.

Authorization rules (see authorization_service):
  - Create: any caller; owner_id is always the caller
  - Read/list: any caller
  - Update/delete: owner only, checked against a fresh read of the row

Partial updates: only keys present in `changes` are written. A key mapped to
None clears an optional field; a missing key leaves the column untouched.

Deleting a listing leaves its memberships in place.

Layer rules:
  - No Flask imports. Pure Python with a SQLAlchemy session parameter.
  - Commits are the route's responsibility — only flush here.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from studybuddy.app.errors import AppError, ErrorCode
from studybuddy.app.models.listing import INT_COLUMN_MAX, Listing
from studybuddy.app.services import authorization_service
from studybuddy.app.services.authorization_service import Action
from studybuddy.app.services.identity_service import Identity

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = ("group_size", "location", "time", "meeting_date", "description")
_REQUIRED_TEXT_FIELDS = ("location", "time")


# ── Private helpers ────────────────────────────────────────────────────────

def _invalid(field: str, message: str) -> AppError:
    return AppError(ErrorCode.INVALID_ARGUMENT, message, 400, field=field)


def _check_group_size(value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= INT_COLUMN_MAX:
        raise _invalid(
            "group_size",
            f"group_size must be an integer between 1 and {INT_COLUMN_MAX}.",
        )


def _check_required_text(field: str, value: Any) -> None:
    if value is None or not str(value).strip():
        raise _invalid(field, f"{field} is required and must not be blank.")


def build_listing_dict(listing: Listing) -> dict:
    """Serialises a Listing to a plain dict. No business logic."""
    return {
        "id": listing.id,
        "owner_id": listing.owner_id,
        "group_size": listing.group_size,
        "location": listing.location,
        "time": listing.time,
        "meeting_date": listing.meeting_date.isoformat() if listing.meeting_date else None,
        "description": listing.description,
        "owner_email": listing.owner_email,
        "owner_display_name": listing.owner_display_name,
        "created_at": listing.created_at.isoformat() if listing.created_at else None,
    }


# ── Public service functions ───────────────────────────────────────────────

def create_listing(identity: Identity, fields: dict, session: Session) -> dict:
    """
    Creates a listing owned by `identity`.

    Any owner-ish key in `fields` is ignored; owner_id and the owner snapshot
    come from the identity alone.

    Raises:
      AppError(INVALID_ARGUMENT, 400) — group_size < 1, blank location or time
    """
    authorization_service.require(identity, Action.CREATE_LISTING, None, session)

    _check_group_size(fields.get("group_size"))
    for name in _REQUIRED_TEXT_FIELDS:
        _check_required_text(name, fields.get(name))

    listing = Listing(
        owner_id=identity.id,
        group_size=fields["group_size"],
        location=fields["location"].strip(),
        time=fields["time"].strip(),
        meeting_date=fields.get("meeting_date"),
        description=fields.get("description") or None,
        owner_email=identity.email,
        owner_display_name=identity.display_name,
    )
    session.add(listing)
    session.flush()

    return build_listing_dict(listing)


def get_listing(identity: Identity, listing_id: int, session: Session) -> dict:
    """
    Raises:
      AppError(NOT_FOUND, 404) — listing does not exist
    """
    decision = authorization_service.require(identity, Action.READ_LISTING, listing_id, session)
    return build_listing_dict(decision.listing)


def update_listing(
        identity: Identity,
        listing_id: int,
        changes: dict,
        session: Session,
) -> dict:
    """
    Applies a partial update to a listing the caller owns.

    Raises:
      AppError(NOT_AUTHORIZED, 403)   — not the owner, or no such listing
      AppError(INVALID_ARGUMENT, 400) — group_size < 1, blank location/time
    """
    decision = authorization_service.require(identity, Action.UPDATE_LISTING, listing_id, session)
    listing = decision.listing

    if "group_size" in changes:
        _check_group_size(changes["group_size"])
    for name in _REQUIRED_TEXT_FIELDS:
        if name in changes:
            _check_required_text(name, changes[name])

    for name in _UPDATABLE_FIELDS:
        if name not in changes:
            continue
        value = changes[name]
        if name in _REQUIRED_TEXT_FIELDS:
            value = value.strip()
        setattr(listing, name, value)

    session.flush()
    return build_listing_dict(listing)


def delete_listing(identity: Identity, listing_id: int, session: Session) -> None:
    """
    Deletes a listing the caller owns. Memberships are not touched.

    Raises:
      AppError(NOT_AUTHORIZED, 403) — not the owner, or no such listing
    """
    decision = authorization_service.require(identity, Action.DELETE_LISTING, listing_id, session)
    session.delete(decision.listing)
    session.flush()
    logger.info("listing deleted listing_id=%s owner_id=%s", listing_id, identity.id)


def list_listings(caller_id: int, filters: dict, session: Session) -> list[dict]:
    """
    Returns listings matching every supplied filter, newest first.

    filters (all optional, equality only):
      mine         — True restricts to listings owned by caller_id
      group_size   — int
      location     — exact string
      time         — exact string
      meeting_date — date
    """
    stmt = select(Listing)

    if filters.get("mine"):
        stmt = stmt.where(Listing.owner_id == caller_id)
    if filters.get("group_size") is not None:
        stmt = stmt.where(Listing.group_size == filters["group_size"])
    if filters.get("location"):
        stmt = stmt.where(Listing.location == filters["location"])
    if filters.get("time"):
        stmt = stmt.where(Listing.time == filters["time"])
    if filters.get("meeting_date") is not None:
        stmt = stmt.where(Listing.meeting_date == filters["meeting_date"])

    stmt = stmt.order_by(Listing.created_at.desc(), Listing.id.desc())
    listings = session.execute(stmt).scalars().all()

    return [build_listing_dict(listing) for listing in listings]
