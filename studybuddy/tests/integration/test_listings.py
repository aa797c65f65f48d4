"""
tests/integration/test_listings.py — Listing CRUD, ownership and filtering.

Endpoints covered:
  POST   /listings       → 201
  GET    /listings       → 200 (filters: mine, group_size, location, time, meeting_date)
  GET    /listings/:id   → 200
  PUT    /listings/:id   → 200 (owner only)
  DELETE /listings/:id   → 200 (owner only)

Ownership: every non-owner gets the same NOT_AUTHORIZED response whether or
not the listing exists.
"""

from __future__ import annotations

from .conftest import make_listing, new_user


# ═══════════════════════════════════════════════════════════════════════════
# POST /listings
# ═══════════════════════════════════════════════════════════════════════════

class TestCreateListing:

    def test_create_returns_201_owned_by_caller(self, app):
        alice, alice_user = new_user(app, "alice")

        resp = alice.post("/listings", json={
            "group_size": 4, "location": "Library", "time": "14:00",
        })

        assert resp.status_code == 201
        data = resp.get_json()["data"]
        assert data["owner_id"] == alice_user["id"]
        assert data["group_size"] == 4
        assert data["location"] == "Library"
        assert data["time"] == "14:00"
        assert data["description"] is None
        assert data["meeting_date"] is None
        assert data["owner_email"] == "alice@test.com"
        assert data["created_at"]

    def test_caller_supplied_owner_is_ignored(self, app):
        alice, alice_user = new_user(app, "alice")
        _, bob_user = new_user(app, "bob")

        listing = make_listing(alice, owner_id=bob_user["id"], owner_email="bob@test.com")

        assert listing["owner_id"] == alice_user["id"]
        assert listing["owner_email"] == "alice@test.com"

    def test_numeric_string_group_size_is_accepted(self, app):
        alice, _ = new_user(app, "alice")
        listing = make_listing(alice, group_size="3")
        assert listing["group_size"] == 3

    def test_meeting_date_round_trips(self, app):
        alice, _ = new_user(app, "alice")
        listing = make_listing(alice, meeting_date="2026-11-02")
        assert listing["meeting_date"] == "2026-11-02"

    def test_zero_group_size_is_invalid_argument(self, app):
        alice, _ = new_user(app, "alice")
        resp = alice.post("/listings", json={"group_size": 0, "location": "Library", "time": "14:00"})

        assert resp.status_code == 400
        error = resp.get_json()["error"]
        assert error["code"] == "INVALID_ARGUMENT"
        assert error["field"] == "group_size"

    def test_blank_location_is_invalid_argument(self, app):
        alice, _ = new_user(app, "alice")
        resp = alice.post("/listings", json={"group_size": 2, "location": "   ", "time": "14:00"})

        assert resp.status_code == 400
        assert resp.get_json()["error"]["field"] == "location"

    def test_missing_time_is_invalid_argument(self, app):
        alice, _ = new_user(app, "alice")
        resp = alice.post("/listings", json={"group_size": 2, "location": "Library"})

        assert resp.status_code == 400
        assert resp.get_json()["error"]["field"] == "time"


# ═══════════════════════════════════════════════════════════════════════════
# GET /listings, GET /listings/:id
# ═══════════════════════════════════════════════════════════════════════════

class TestReadListings:

    def test_list_is_newest_first_and_visible_to_everyone(self, app):
        alice, _ = new_user(app, "alice")
        bob, _ = new_user(app, "bob")
        first = make_listing(alice, location="Library")
        second = make_listing(bob, location="Cafe")

        resp = alice.get("/listings")

        assert resp.status_code == 200
        ids = [listing["id"] for listing in resp.get_json()["data"]]
        assert ids == [second["id"], first["id"]]

    def test_mine_filter_returns_only_own_listings(self, app):
        alice, alice_user = new_user(app, "alice")
        bob, _ = new_user(app, "bob")
        mine = make_listing(alice)
        make_listing(bob)

        data = alice.get("/listings?mine=true").get_json()["data"]

        assert [listing["id"] for listing in data] == [mine["id"]]
        assert all(listing["owner_id"] == alice_user["id"] for listing in data)

    def test_equality_filters_combine(self, app):
        alice, _ = new_user(app, "alice")
        match = make_listing(alice, group_size=4, location="Library", time="14:00")
        make_listing(alice, group_size=4, location="Cafe", time="14:00")
        make_listing(alice, group_size=2, location="Library", time="14:00")

        data = alice.get("/listings?group_size=4&location=Library&time=14:00").get_json()["data"]

        assert [listing["id"] for listing in data] == [match["id"]]

    def test_location_filter_is_exact_not_fuzzy(self, app):
        alice, _ = new_user(app, "alice")
        make_listing(alice, location="Library")

        data = alice.get("/listings?location=Lib").get_json()["data"]
        assert data == []

    def test_meeting_date_filter(self, app):
        alice, _ = new_user(app, "alice")
        match = make_listing(alice, meeting_date="2026-11-02")
        make_listing(alice, meeting_date="2026-11-03")

        data = alice.get("/listings?meeting_date=2026-11-02").get_json()["data"]
        assert [listing["id"] for listing in data] == [match["id"]]

    def test_empty_query_values_are_ignored(self, app):
        alice, _ = new_user(app, "alice")
        make_listing(alice)

        data = alice.get("/listings?location=&group_size=").get_json()["data"]
        assert len(data) == 1

    def test_malformed_filter_is_invalid_argument(self, app):
        alice, _ = new_user(app, "alice")
        resp = alice.get("/listings?group_size=lots")

        assert resp.status_code == 400
        assert resp.get_json()["error"]["code"] == "INVALID_ARGUMENT"

    def test_get_single_listing(self, app):
        alice, _ = new_user(app, "alice")
        bob, _ = new_user(app, "bob")
        listing = make_listing(alice)

        resp = bob.get(f"/listings/{listing['id']}")
        assert resp.status_code == 200
        assert resp.get_json()["data"]["id"] == listing["id"]

    def test_get_missing_listing_is_not_found(self, app):
        alice, _ = new_user(app, "alice")
        resp = alice.get("/listings/9999")

        assert resp.status_code == 404
        assert resp.get_json()["error"]["code"] == "NOT_FOUND"


# ═══════════════════════════════════════════════════════════════════════════
# PUT /listings/:id
# ═══════════════════════════════════════════════════════════════════════════

class TestUpdateListing:

    def test_owner_partial_update_changes_only_given_fields(self, app):
        alice, _ = new_user(app, "alice")
        listing = make_listing(alice, description="Bring notes")

        resp = alice.put(f"/listings/{listing['id']}", json={"location": "Cafe"})

        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["location"] == "Cafe"
        assert data["group_size"] == listing["group_size"]
        assert data["time"] == listing["time"]
        assert data["description"] == "Bring notes"

    def test_null_description_clears_it(self, app):
        alice, _ = new_user(app, "alice")
        listing = make_listing(alice, description="Bring notes")

        data = alice.put(f"/listings/{listing['id']}", json={"description": None}).get_json()["data"]
        assert data["description"] is None

    def test_empty_description_is_stored_as_empty(self, app):
        alice, _ = new_user(app, "alice")
        listing = make_listing(alice, description="Bring notes")

        data = alice.put(f"/listings/{listing['id']}", json={"description": ""}).get_json()["data"]
        assert data["description"] == ""

    def test_owner_fields_cannot_be_changed(self, app):
        alice, alice_user = new_user(app, "alice")
        _, bob_user = new_user(app, "bob")
        listing = make_listing(alice)

        data = alice.put(
            f"/listings/{listing['id']}",
            json={"owner_id": bob_user["id"], "owner_email": "bob@test.com"},
        ).get_json()["data"]

        assert data["owner_id"] == alice_user["id"]
        assert data["owner_email"] == "alice@test.com"

    def test_invalid_group_size_on_update(self, app):
        alice, _ = new_user(app, "alice")
        listing = make_listing(alice)

        resp = alice.put(f"/listings/{listing['id']}", json={"group_size": 0})
        assert resp.status_code == 400
        assert resp.get_json()["error"]["field"] == "group_size"

    def test_null_location_on_update_is_rejected(self, app):
        alice, _ = new_user(app, "alice")
        listing = make_listing(alice)

        resp = alice.put(f"/listings/{listing['id']}", json={"location": None})
        assert resp.status_code == 400

    def test_non_owner_gets_not_authorized(self, app):
        alice, _ = new_user(app, "alice")
        bob, _ = new_user(app, "bob")
        listing = make_listing(alice)

        resp = bob.put(f"/listings/{listing['id']}", json={"location": "Cafe"})

        assert resp.status_code == 403
        assert resp.get_json()["error"]["code"] == "NOT_AUTHORIZED"
        stored = alice.get(f"/listings/{listing['id']}").get_json()["data"]
        assert stored["location"] == "Library"

    def test_missing_and_foreign_listing_look_identical(self, app):
        alice, _ = new_user(app, "alice")
        bob, _ = new_user(app, "bob")
        foreign = make_listing(alice)
        missing_id = foreign["id"] + 1000

        foreign_resp = bob.put(f"/listings/{foreign['id']}", json={"location": "Cafe"})
        missing_resp = bob.put(f"/listings/{missing_id}", json={"location": "Cafe"})

        assert foreign_resp.status_code == missing_resp.status_code == 403
        foreign_error = foreign_resp.get_json()["error"]
        missing_error = missing_resp.get_json()["error"]
        assert foreign_error["code"] == missing_error["code"] == "NOT_AUTHORIZED"
        assert foreign_error["message"].replace(str(foreign["id"]), "<id>") == \
            missing_error["message"].replace(str(missing_id), "<id>")


# ═══════════════════════════════════════════════════════════════════════════
# DELETE /listings/:id
# ═══════════════════════════════════════════════════════════════════════════

class TestDeleteListing:

    def test_owner_can_delete(self, app):
        alice, _ = new_user(app, "alice")
        listing = make_listing(alice)

        resp = alice.delete(f"/listings/{listing['id']}")

        assert resp.status_code == 200
        assert resp.get_json()["data"]["deleted"] is True
        assert alice.get(f"/listings/{listing['id']}").status_code == 404

    def test_non_owner_cannot_delete(self, app):
        alice, _ = new_user(app, "alice")
        bob, _ = new_user(app, "bob")
        listing = make_listing(alice)

        resp = bob.delete(f"/listings/{listing['id']}")

        assert resp.status_code == 403
        assert resp.get_json()["error"]["code"] == "NOT_AUTHORIZED"
        assert alice.get(f"/listings/{listing['id']}").status_code == 200

    def test_deleting_missing_listing_is_not_authorized(self, app):
        alice, _ = new_user(app, "alice")
        resp = alice.delete("/listings/9999")

        assert resp.status_code == 403
        assert resp.get_json()["error"]["code"] == "NOT_AUTHORIZED"

    def test_second_delete_by_owner_is_denied(self, app):
        alice, _ = new_user(app, "alice")
        listing = make_listing(alice)
        alice.delete(f"/listings/{listing['id']}")

        resp = alice.delete(f"/listings/{listing['id']}")
        assert resp.status_code == 403


# ═══════════════════════════════════════════════════════════════════════════
# Integers wider than the id / group_size columns
# ═══════════════════════════════════════════════════════════════════════════

HUGE = 10**30


class TestOversizedIntegers:

    def test_huge_group_size_on_create_is_invalid_argument(self, app):
        alice, _ = new_user(app, "alice")
        resp = alice.post("/listings", json={"group_size": HUGE, "location": "Library", "time": "14:00"})

        assert resp.status_code == 400
        error = resp.get_json()["error"]
        assert error["code"] == "INVALID_ARGUMENT"
        assert error["field"] == "group_size"

    def test_largest_storable_group_size_is_accepted(self, app):
        alice, _ = new_user(app, "alice")
        assert make_listing(alice, group_size=2**31 - 1)["group_size"] == 2**31 - 1

    def test_huge_group_size_on_update_is_invalid_argument(self, app):
        alice, _ = new_user(app, "alice")
        listing = make_listing(alice)

        resp = alice.put(f"/listings/{listing['id']}", json={"group_size": HUGE})
        assert resp.status_code == 400
        assert resp.get_json()["error"]["field"] == "group_size"

    def test_huge_group_size_filter_is_invalid_argument(self, app):
        alice, _ = new_user(app, "alice")

        for path in ("/listings", "/listings/search"):
            resp = alice.get(f"{path}?group_size={HUGE}")
            assert resp.status_code == 400
            assert resp.get_json()["error"]["code"] == "INVALID_ARGUMENT"

    def test_huge_id_on_get_is_not_found(self, app):
        alice, _ = new_user(app, "alice")
        resp = alice.get(f"/listings/{HUGE}")

        assert resp.status_code == 404
        assert resp.get_json()["error"]["code"] == "NOT_FOUND"

    def test_huge_id_on_update_and_delete_is_not_authorized(self, app):
        alice, _ = new_user(app, "alice")

        put = alice.put(f"/listings/{HUGE}", json={"location": "Cafe"})
        delete = alice.delete(f"/listings/{HUGE}")

        assert put.status_code == delete.status_code == 403
        assert put.get_json()["error"]["code"] == "NOT_AUTHORIZED"
        assert delete.get_json()["error"]["code"] == "NOT_AUTHORIZED"

    def test_huge_id_on_membership_endpoints(self, app):
        bob, _ = new_user(app, "bob")

        assert bob.post(f"/listings/{HUGE}/join").status_code == 404
        assert bob.get(f"/listings/{HUGE}/members").status_code == 404

        leave = bob.delete(f"/listings/{HUGE}/join")
        assert leave.status_code == 200
        assert leave.get_json()["data"]["left"] is False
