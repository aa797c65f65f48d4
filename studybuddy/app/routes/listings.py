"""
routes/listings.py — Listing, membership and search route handlers.

Layer rules:
  - Parse, validate, call ONE service, commit, return envelope.
  - No business logic. No DB queries. No authorization decisions.

Endpoints (base url_prefix=/listings):
  GET    /listings                  → 200  filtered list, newest first
  GET    /listings/search           → 200  filters + keyword, with summary
  POST   /listings                  → 201  create (caller becomes owner)
  GET    /listings/:id              → 200  single listing
  PUT    /listings/:id              → 200  partial update (owner only)
  DELETE /listings/:id              → 200  delete (owner only)
  GET    /listings/:id/members      → 200  members (owner or member)
  POST   /listings/:id/join         → 201  join
  DELETE /listings/:id/join         → 200  leave (idempotent)
"""

from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from studybuddy.app.extensions import db
from studybuddy.app.middleware.auth_middleware import require_auth
from studybuddy.app.schemas.listing_schema import (
    CreateListingSchema,
    ListingFilterSchema,
    SearchQuerySchema,
    UpdateListingSchema,
    non_empty_args,
)
from studybuddy.app.services import listing_service, membership_service, search_service

listings_bp = Blueprint("listings", __name__)


@listings_bp.route("", methods=["GET"])
@require_auth
def list_listings():
    """GET /listings — Equality filters: mine, group_size, location, time, meeting_date."""
    filters = ListingFilterSchema().load(non_empty_args(request.args))
    result = listing_service.list_listings(
        caller_id=g.identity.id,
        filters=filters,
        session=db.session,
    )
    return jsonify({"data": result, "warnings": []}), 200


@listings_bp.route("/search", methods=["GET"])
@require_auth
def search_listings():
    """GET /listings/search — Structured filters narrowed further by keyword."""
    query = SearchQuerySchema().load(non_empty_args(request.args))
    keyword = query.pop("keyword", None)
    results = search_service.search(
        caller_id=g.identity.id,
        filters=query,
        keyword=keyword,
        session=db.session,
    )
    return jsonify({
        "data": {
            "results": results,
            "count": len(results),
            "summary": search_service.summarise(query, keyword, len(results)),
        },
        "warnings": [],
    }), 200


@listings_bp.route("", methods=["POST"])
@require_auth
def create_listing():
    """POST /listings — Create a listing owned by the caller."""
    data = CreateListingSchema().load(request.get_json(force=True, silent=True) or {})
    result = listing_service.create_listing(
        identity=g.identity,
        fields=data,
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 201


@listings_bp.route("/<int:listing_id>", methods=["GET"])
@require_auth
def get_listing(listing_id: int):
    """GET /listings/:id"""
    result = listing_service.get_listing(
        identity=g.identity,
        listing_id=listing_id,
        session=db.session,
    )
    return jsonify({"data": result, "warnings": []}), 200


@listings_bp.route("/<int:listing_id>", methods=["PUT"])
@require_auth
def update_listing(listing_id: int):
    """PUT /listings/:id — Only keys present in the body are changed."""
    changes = UpdateListingSchema().load(request.get_json(force=True, silent=True) or {})
    result = listing_service.update_listing(
        identity=g.identity,
        listing_id=listing_id,
        changes=changes,
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 200


@listings_bp.route("/<int:listing_id>", methods=["DELETE"])
@require_auth
def delete_listing(listing_id: int):
    """DELETE /listings/:id — Owner only. Memberships are left in place."""
    listing_service.delete_listing(
        identity=g.identity,
        listing_id=listing_id,
        session=db.session,
    )
    db.session.commit()
    return jsonify({
        "data": {"deleted": True, "listing_id": listing_id},
        "warnings": [],
    }), 200


@listings_bp.route("/<int:listing_id>/members", methods=["GET"])
@require_auth
def list_members(listing_id: int):
    """GET /listings/:id/members — Owner or member only."""
    result = membership_service.list_members(
        identity=g.identity,
        listing_id=listing_id,
        session=db.session,
    )
    return jsonify({"data": result, "warnings": []}), 200


@listings_bp.route("/<int:listing_id>/join", methods=["POST"])
@require_auth
def join_listing(listing_id: int):
    """POST /listings/:id/join — One membership per caller per listing."""
    result = membership_service.join(
        identity=g.identity,
        listing_id=listing_id,
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 201


@listings_bp.route("/<int:listing_id>/join", methods=["DELETE"])
@require_auth
def leave_listing(listing_id: int):
    """DELETE /listings/:id/join — Succeeds whether or not the caller was a member."""
    left = membership_service.leave(
        identity=g.identity,
        listing_id=listing_id,
        session=db.session,
    )
    db.session.commit()
    return jsonify({
        "data": {"left": left, "listing_id": listing_id},
        "warnings": [],
    }), 200
