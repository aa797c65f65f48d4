"""
services/membership_service.py — Join/leave lifecycle and member lists.

Invariants:
  - At most one membership per (listing, member). The pre-check in
    authorization_service gives the usual duplicate a clean ALREADY_JOINED;
    the uq_memberships_listing_member constraint settles concurrent
    duplicates, and its IntegrityError is reported the same way.
  - Leave is idempotent: leaving without a membership succeeds and changes
    nothing. Callers that time out may safely repeat join or leave.

Layer rules:
  - No Flask imports. Pure Python with a SQLAlchemy session parameter.
  - Commits are the route's responsibility — only flush here.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from studybuddy.app.errors import AppError, ErrorCode
from studybuddy.app.models.membership import Membership
from studybuddy.app.services import authorization_service
from studybuddy.app.services.authorization_service import Action
from studybuddy.app.services.identity_service import Identity

logger = logging.getLogger(__name__)


def build_membership_dict(membership: Membership) -> dict:
    """Serialises a Membership to a plain dict. No business logic."""
    return {
        "id": membership.id,
        "listing_id": membership.listing_id,
        "member_id": membership.member_id,
        "member_email": membership.member_email,
        "member_display_name": membership.member_display_name,
        "joined_at": membership.joined_at.isoformat() if membership.joined_at else None,
    }


def join(identity: Identity, listing_id: int, session: Session) -> dict:
    """
    Adds the caller to a listing.

    Raises:
      AppError(NOT_FOUND, 404)      — listing does not exist
      AppError(ALREADY_JOINED, 409) — caller already has a membership
    """
    authorization_service.require(identity, Action.JOIN, listing_id, session)

    membership = Membership(
        listing_id=listing_id,
        member_id=identity.id,
        member_email=identity.email,
        member_display_name=identity.display_name,
    )
    session.add(membership)
    try:
        session.flush()
    except IntegrityError:
        # A concurrent join for the same pair won between our check and insert.
        session.rollback()
        logger.info(
            "duplicate join rejected by constraint listing_id=%s member_id=%s",
            listing_id,
            identity.id,
        )
        raise AppError(
            ErrorCode.ALREADY_JOINED,
            f"You have already joined listing {listing_id}.",
            409,
        )

    return build_membership_dict(membership)


def leave(identity: Identity, listing_id: int, session: Session) -> bool:
    """
    Removes the caller's own membership, if any.

    Returns True if a membership was removed, False if there was none.
    Never raises for a missing membership or listing.
    """
    decision = authorization_service.require(identity, Action.LEAVE, listing_id, session)
    if decision.membership is None:
        return False

    session.delete(decision.membership)
    session.flush()
    return True


def list_members(identity: Identity, listing_id: int, session: Session) -> list[dict]:
    """
    Returns the listing's memberships, earliest join first.

    Raises:
      AppError(NOT_FOUND, 404)       — listing does not exist (including deleted)
      AppError(MUST_JOIN_FIRST, 403) — caller is neither owner nor member
    """
    authorization_service.require(identity, Action.VIEW_MEMBERS, listing_id, session)

    stmt = (
        select(Membership)
        .where(Membership.listing_id == listing_id)
        .order_by(Membership.joined_at.asc(), Membership.id.asc())
    )
    memberships = session.execute(stmt).scalars().all()

    return [build_membership_dict(m) for m in memberships]
