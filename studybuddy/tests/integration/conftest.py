"""
tests/integration/conftest.py — Fixtures and helpers for all integration tests.

Design:
  - The app is created once per session using create_app("testing"), which
    points at in-memory SQLite unless TEST_DATABASE_URL says otherwise.
  - All tables are created once via db.create_all() at session start.
  - Between tests, all rows are deleted in FK-safe order so tests are isolated.
  - The session credential is a cookie, so every simulated user gets their
    own test client (own cookie jar).

Helper functions (not fixtures) are provided for common operations:
  - signup(client, ...)          → user dict; leaves the client logged in
  - new_user(app, name)          → (client, user dict)
  - session_token(resp)          → raw credential from a Set-Cookie header
  - bearer(token)                → {"Authorization": "Bearer <token>"}
  - make_listing(client, ...)    → listing dict
"""

from __future__ import annotations

import pytest
from sqlalchemy import text

from studybuddy.app import create_app
from studybuddy.app.extensions import db as _db


# ═══════════════════════════════════════════════════════════════════════════
# Session-scoped app fixture
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture(scope="session")
def app():
    """
    Creates the Flask application in 'testing' mode once for the entire
    test session and creates all tables.
    """
    flask_app = create_app("testing")

    with flask_app.app_context():
        _db.create_all()

    yield flask_app

    with flask_app.app_context():
        _db.drop_all()


# ═══════════════════════════════════════════════════════════════════════════
# Function-scoped test isolation
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture(autouse=True)
def clean_tables(app):
    """Deletes all rows after every test, children before parents."""
    yield  # run the test

    with app.app_context():
        _db.session.rollback()  # discard any uncommitted state from a failed test
        _db.session.remove()

        with _db.engine.connect() as conn:
            conn.execute(text("DELETE FROM memberships"))
            conn.execute(text("DELETE FROM listings"))
            conn.execute(text("DELETE FROM auth_sessions"))
            conn.execute(text("DELETE FROM users"))
            conn.commit()


# ═══════════════════════════════════════════════════════════════════════════
# Client fixture
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def client(app):
    """Anonymous Flask test client. Each test gets a fresh cookie jar."""
    return app.test_client()


# ═══════════════════════════════════════════════════════════════════════════
# Shared helper functions (not fixtures)
# ═══════════════════════════════════════════════════════════════════════════

def signup(client, email: str = "alice@test.com", password: str = "Password1") -> dict:
    """Signs up through the API; the client keeps the session cookie."""
    resp = client.post("/signup", json={"email": email, "password": password})
    assert resp.status_code == 201, f"signup failed: {resp.get_json()}"
    return resp.get_json()["data"]["user"]


def new_user(app, name: str) -> tuple:
    """A fresh, logged-in client for `name`@test.com."""
    user_client = app.test_client()
    user = signup(user_client, email=f"{name}@test.com")
    return user_client, user


def session_token(resp) -> str | None:
    """Extracts the raw session credential from a response's Set-Cookie headers."""
    cookie_name = "access_token"
    for header in resp.headers.getlist("Set-Cookie"):
        pair = header.split(";", 1)[0]
        name, _, value = pair.partition("=")
        if name.strip() == cookie_name:
            return value
    return None


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def make_listing(
    client,
    group_size: int = 4,
    location: str = "Library",
    time: str = "14:00",
    description: str | None = "Calculus review",
    **extra,
) -> dict:
    """Creates a listing as the client's user and returns the listing dict."""
    payload = {
        "group_size": group_size,
        "location": location,
        "time": time,
        **extra,
    }
    if description is not None:
        payload["description"] = description

    resp = client.post("/listings", json=payload)
    assert resp.status_code == 201, f"make_listing failed: {resp.get_json()}"
    return resp.get_json()["data"]
