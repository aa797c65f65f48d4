"""
services/authorization_service.py — Allow/deny decisions for listings and memberships.

Every decision re-reads the listing and membership rows it depends on. Nothing
the client sends (owner ids, membership flags) is trusted.

Rules:
  CREATE_LISTING   always allowed; the owner is forced to the caller later
  READ_LISTING     any caller; NOT_FOUND if the listing is gone
  UPDATE_LISTING   owner only
  DELETE_LISTING   owner only
  VIEW_MEMBERS     owner or current member; NOT_FOUND / MUST_JOIN_FIRST otherwise
  JOIN             any caller; NOT_FOUND / ALREADY_JOINED
  LEAVE            always allowed, scoped to the caller's own membership

Update/delete on a listing that does not exist and on a listing owned by
someone else produce one and the same denial, so a caller cannot tell which
listing ids exist.

Layer rules:
  - No Flask imports. Pure Python with a SQLAlchemy session parameter.
  - Never writes.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from studybuddy.app.errors import AppError, ErrorCode
from studybuddy.app.models.listing import INT_COLUMN_MAX, Listing
from studybuddy.app.models.membership import Membership
from studybuddy.app.services.identity_service import Identity


class Action(str, enum.Enum):
    CREATE_LISTING = "create_listing"
    READ_LISTING   = "read_listing"
    UPDATE_LISTING = "update_listing"
    DELETE_LISTING = "delete_listing"
    VIEW_MEMBERS   = "view_members"
    JOIN           = "join"
    LEAVE          = "leave"


@dataclass(frozen=True)
class Decision:
    """
    Outcome of authorize(). On allow, carries the rows that were read to reach
    it so callers do not re-query; on deny, carries the error to surface.
    """

    allowed: bool
    listing: Listing | None = None
    membership: Membership | None = None
    code: str | None = None
    message: str | None = None
    http_status: int | None = None

    @classmethod
    def allow(cls, listing: Listing | None = None, membership: Membership | None = None) -> "Decision":
        return cls(allowed=True, listing=listing, membership=membership)

    @classmethod
    def deny(cls, code: str, message: str, http_status: int) -> "Decision":
        return cls(allowed=False, code=code, message=message, http_status=http_status)

    def to_error(self) -> AppError:
        return AppError(self.code, self.message, self.http_status)


# ── Private helpers ────────────────────────────────────────────────────────

def _not_found(listing_id: int) -> Decision:
    return Decision.deny(
        ErrorCode.NOT_FOUND,
        f"Listing {listing_id} does not exist.",
        404,
    )


def _not_yours(listing_id: int) -> Decision:
    # Shared by "missing" and "foreign" so the two cannot be told apart.
    return Decision.deny(
        ErrorCode.NOT_AUTHORIZED,
        f"Listing {listing_id} does not exist or you are not its owner.",
        403,
    )


def _storable_id(value: int) -> bool:
    return 1 <= value <= INT_COLUMN_MAX


def load_listing(listing_id: int, session: Session) -> Listing | None:
    # Ids the column cannot hold belong to no listing.
    if not _storable_id(listing_id):
        return None
    return session.get(Listing, listing_id)


def find_membership(listing_id: int, member_id: int, session: Session) -> Membership | None:
    if not (_storable_id(listing_id) and _storable_id(member_id)):
        return None
    return session.execute(
        select(Membership).where(
            Membership.listing_id == listing_id,
            Membership.member_id == member_id,
        )
    ).scalar_one_or_none()


def _authorize_owner_action(identity: Identity, listing_id: int, session: Session) -> Decision:
    listing = load_listing(listing_id, session)
    if listing is None or listing.owner_id != identity.id:
        return _not_yours(listing_id)
    return Decision.allow(listing=listing)


def _authorize_view_members(identity: Identity, listing_id: int, session: Session) -> Decision:
    listing = load_listing(listing_id, session)
    if listing is None:
        return _not_found(listing_id)

    # Owners see their members without having to join their own listing.
    if listing.owner_id == identity.id:
        return Decision.allow(listing=listing)

    membership = find_membership(listing_id, identity.id, session)
    if membership is None:
        return Decision.deny(
            ErrorCode.MUST_JOIN_FIRST,
            "Join this listing to see who else is in the group.",
            403,
        )
    return Decision.allow(listing=listing, membership=membership)


def _authorize_join(identity: Identity, listing_id: int, session: Session) -> Decision:
    listing = load_listing(listing_id, session)
    if listing is None:
        return _not_found(listing_id)

    if find_membership(listing_id, identity.id, session) is not None:
        return Decision.deny(
            ErrorCode.ALREADY_JOINED,
            f"You have already joined listing {listing_id}.",
            409,
        )
    return Decision.allow(listing=listing)


# ── Public service functions ───────────────────────────────────────────────

def authorize(
        identity: Identity,
        action: Action,
        listing_id: int | None,
        session: Session,
) -> Decision:
    """
    Decides whether `identity` may perform `action` on listing `listing_id`.

    listing_id is ignored for CREATE_LISTING.
    """
    if action is Action.CREATE_LISTING:
        return Decision.allow()

    if action is Action.READ_LISTING:
        listing = load_listing(listing_id, session)
        if listing is None:
            return _not_found(listing_id)
        return Decision.allow(listing=listing)

    if action in (Action.UPDATE_LISTING, Action.DELETE_LISTING):
        return _authorize_owner_action(identity, listing_id, session)

    if action is Action.VIEW_MEMBERS:
        return _authorize_view_members(identity, listing_id, session)

    if action is Action.JOIN:
        return _authorize_join(identity, listing_id, session)

    if action is Action.LEAVE:
        # Only ever the caller's own row; a missing row makes leave a no-op.
        return Decision.allow(
            membership=find_membership(listing_id, identity.id, session),
        )

    raise ValueError(f"Unknown action: {action!r}")


def require(
        identity: Identity,
        action: Action,
        listing_id: int | None,
        session: Session,
) -> Decision:
    """authorize() that raises the denial as an AppError."""
    decision = authorize(identity, action, listing_id, session)
    if not decision.allowed:
        raise decision.to_error()
    return decision
