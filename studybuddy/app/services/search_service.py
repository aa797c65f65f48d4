"""
services/search_service.py — Structured filters plus keyword pass.

Two stages:
  1. group_size / location / time go to listing_service.list_listings() as
     equality predicates. This is the only narrowing done in the database.
  2. The keyword, if any, is matched case-insensitively as a substring of
     description, owner_display_name or owner_email, over whatever stage 1
     returned. A narrow structured filter therefore limits keyword recall.

No scoring: results keep the store's newest-first order.
"""

from __future__ import annotations

from sqlalchemy.orm import Session

from studybuddy.app.services import listing_service

SEARCH_FILTER_FIELDS = ("group_size", "location", "time")
KEYWORD_FIELDS = ("description", "owner_display_name", "owner_email")
SUMMARY_SEPARATOR = " • "
NO_CRITERIA_SUMMARY = "All groups"


def normalise_keyword(keyword: str | None) -> str | None:
    """Trimmed, lower-cased keyword; None when blank."""
    if keyword is None:
        return None
    keyword = keyword.strip().lower()
    return keyword or None


def _pushdown_filters(filters: dict) -> dict:
    return {
        name: filters[name]
        for name in SEARCH_FILTER_FIELDS
        if filters.get(name) not in (None, "")
    }


def matches_keyword(listing: dict, keyword: str) -> bool:
    keyword = keyword.lower()
    return any(
        keyword in (listing.get(field) or "").lower()
        for field in KEYWORD_FIELDS
    )


def search(
        caller_id: int,
        filters: dict,
        keyword: str | None,
        session: Session,
) -> list[dict]:
    listings = listing_service.list_listings(caller_id, _pushdown_filters(filters), session)

    keyword = normalise_keyword(keyword)
    if keyword is None:
        return listings
    return [listing for listing in listings if matches_keyword(listing, keyword)]


def describe(filters: dict, keyword: str | None) -> str:
    """
    Human-readable summary of the criteria actually supplied, always in the
    order size, location, time, keyword.

    >>> describe({"group_size": 4, "location": "Library"}, "Calc")
    'Size: 4 • Location: Library • Keyword: "calc"'
    """
    parts = []
    if filters.get("group_size") not in (None, ""):
        parts.append(f"Size: {filters['group_size']}")
    if filters.get("location"):
        parts.append(f"Location: {filters['location']}")
    if filters.get("time"):
        parts.append(f"Time: {filters['time']}")

    keyword = normalise_keyword(keyword)
    if keyword:
        parts.append(f'Keyword: "{keyword}"')

    return SUMMARY_SEPARATOR.join(parts) if parts else NO_CRITERIA_SUMMARY


def summarise(filters: dict, keyword: str | None, count: int) -> str:
    """describe() plus the result count, e.g. 'Size: 4 (1 result)'."""
    summary = describe(filters, keyword)
    if summary == NO_CRITERIA_SUMMARY:
        return summary
    noun = "result" if count == 1 else "results"
    return f"{summary} ({count} {noun})"
