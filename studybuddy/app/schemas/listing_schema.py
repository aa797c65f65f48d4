"""
schemas/listing_schema.py — Marshmallow schemas for listing and search endpoints.

Validation responsibility:
  - This file: field types, lengths, non-empty checks (including trim),
    group_size >= 1, date parsing, query-string parsing.
  - services/authorization_service.py: ownership, membership, existence
    (all need a DB lookup).

Unknown keys are dropped, not rejected: a client that sends owner_id or
created_at gets them silently ignored, and the owner is always the caller.

Update semantics: no field has a load_default, so keys absent from the body
are absent from the loaded dict and listing_service leaves those columns
alone. description and meeting_date accept null (clear the value).

IMPORTANT: Inherits from marshmallow.Schema directly.
"""

from __future__ import annotations

from marshmallow import EXCLUDE, Schema, ValidationError, fields, validate

from studybuddy.app.models.listing import INT_COLUMN_MAX


def _validate_non_empty_after_trim(value: str) -> None:
    """
    Raises ValidationError if the string is blank or contains only whitespace.
    Mirrors the DB CHECK(LENGTH(TRIM(...)) > 0) constraint at the API layer.
    """
    if not value.strip():
        raise ValidationError("This field must not be blank or contain only whitespace.")


_GROUP_SIZE_RANGE = validate.Range(
    min=1,
    max=INT_COLUMN_MAX,
    error="group_size must be between {min} and {max}.",
)


class CreateListingSchema(Schema):
    """
    POST /listings

    group_size : integer >= 1 (numeric strings such as "4" are accepted)
    location   : required, non-blank, max 120
    time       : required, non-blank, max 50
    meeting_date : optional ISO date
    description  : optional
    """

    class Meta:
        unknown = EXCLUDE

    group_size = fields.Int(required=True, validate=_GROUP_SIZE_RANGE)
    location = fields.Str(
        required=True,
        validate=[validate.Length(max=120), _validate_non_empty_after_trim],
    )
    time = fields.Str(
        required=True,
        validate=[validate.Length(max=50), _validate_non_empty_after_trim],
    )
    meeting_date = fields.Date(allow_none=True)
    description = fields.Str(allow_none=True, validate=validate.Length(max=2000))


class UpdateListingSchema(Schema):
    """PUT /listings/:id — every field optional; absent means unchanged."""

    class Meta:
        unknown = EXCLUDE

    group_size = fields.Int(validate=_GROUP_SIZE_RANGE)
    location = fields.Str(
        validate=[validate.Length(max=120), _validate_non_empty_after_trim],
    )
    time = fields.Str(
        validate=[validate.Length(max=50), _validate_non_empty_after_trim],
    )
    meeting_date = fields.Date(allow_none=True)
    description = fields.Str(allow_none=True, validate=validate.Length(max=2000))


class ListingFilterSchema(Schema):
    """GET /listings query string. All filters are equality matches."""

    class Meta:
        unknown = EXCLUDE

    mine = fields.Bool(load_default=False)
    group_size = fields.Int(validate=_GROUP_SIZE_RANGE)
    location = fields.Str()
    time = fields.Str()
    meeting_date = fields.Date()


class SearchQuerySchema(Schema):
    """GET /listings/search query string."""

    class Meta:
        unknown = EXCLUDE

    group_size = fields.Int(validate=_GROUP_SIZE_RANGE)
    location = fields.Str()
    time = fields.Str()
    keyword = fields.Str(validate=validate.Length(max=200))


def non_empty_args(args) -> dict:
    """
    Query-string dict without empty values, so "?location=&time=14:00" means
    "filter on time only" rather than "location equals ''".
    """
    return {key: value for key, value in args.items() if value.strip() != ""}
