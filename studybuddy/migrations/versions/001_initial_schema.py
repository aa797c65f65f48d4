"""Initial schema — users, auth sessions, listings, memberships.

Revision: 001_initial_schema
Created:  2026-10-18

Append-only: never edit this file after it has been applied to a database.
Schema changes go in a new revision.

Creation order (FK dependency order):
  users → auth_sessions → listings → memberships

ON DELETE policies:
  auth_sessions.user_id  → CASCADE   (session owned by user)
  listings.owner_id      → RESTRICT  (cannot delete a user who owns listings)
  memberships.member_id  → RESTRICT
  memberships.listing_id → no FK     (deleting a listing leaves memberships behind)
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# ── Alembic revision identifiers ──────────────────────────────────────────
revision: str = "001_initial_schema"
down_revision: str | None = None      # first migration, no parent
branch_labels: tuple | None = None
depends_on: tuple | None = None


def upgrade() -> None:
    """Apply the full initial schema."""

    # ── users ──────────────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("display_name", sa.String(100), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("email", name="uq_users_email"),
        sa.CheckConstraint(
            "email LIKE '%@%'",
            name="ck_users_email_format",
        ),
    )

    # ── auth_sessions ──────────────────────────────────────────────────────
    op.create_table(
        "auth_sessions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE", name="fk_auth_sessions_user"),
            nullable=False,
        ),
        sa.Column("token_hash", sa.String(64), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "revoked",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("FALSE"),
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_auth_sessions"),
        sa.UniqueConstraint("token_hash", name="uq_auth_sessions_hash"),
    )

    # ── listings ───────────────────────────────────────────────────────────
    op.create_table(
        "listings",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "owner_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="RESTRICT", name="fk_listings_owner"),
            nullable=False,
        ),
        sa.Column("group_size", sa.Integer(), nullable=False),
        sa.Column("location", sa.String(120), nullable=False),
        sa.Column("time", sa.String(50), nullable=False),
        sa.Column("meeting_date", sa.Date(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("owner_email", sa.String(255), nullable=False),
        sa.Column("owner_display_name", sa.String(255), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_listings"),
        sa.CheckConstraint("group_size >= 1", name="ck_listings_group_size_positive"),
        sa.CheckConstraint("LENGTH(TRIM(location)) > 0", name="ck_listings_location_nonempty"),
        sa.CheckConstraint("LENGTH(TRIM(time)) > 0", name="ck_listings_time_nonempty"),
        sqlite_autoincrement=True,
    )

    # ── memberships ────────────────────────────────────────────────────────
    # UNIQUE(listing_id, member_id) is what actually prevents double joins.
    op.create_table(
        "memberships",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("listing_id", sa.Integer(), nullable=False),
        sa.Column(
            "member_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="RESTRICT", name="fk_memberships_member"),
            nullable=False,
        ),
        sa.Column("member_email", sa.String(255), nullable=False),
        sa.Column("member_display_name", sa.String(255), nullable=False),
        sa.Column(
            "joined_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_memberships"),
        sa.UniqueConstraint("listing_id", "member_id", name="uq_memberships_listing_member"),
    )

    # ── Indexes ────────────────────────────────────────────────────────────
    op.create_index("idx_auth_sessions_user", "auth_sessions", ["user_id"])
    op.create_index("idx_listings_owner", "listings", ["owner_id"])
    op.create_index("idx_listings_created", "listings", ["created_at"])
    op.create_index("idx_memberships_listing", "memberships", ["listing_id"])
    op.create_index("idx_memberships_member", "memberships", ["member_id"])


def downgrade() -> None:
    """Drop everything created in upgrade(), in reverse dependency order."""
    op.drop_index("idx_memberships_member",  table_name="memberships")
    op.drop_index("idx_memberships_listing", table_name="memberships")
    op.drop_index("idx_listings_created",    table_name="listings")
    op.drop_index("idx_listings_owner",      table_name="listings")
    op.drop_index("idx_auth_sessions_user",  table_name="auth_sessions")

    op.drop_table("memberships")
    op.drop_table("listings")
    op.drop_table("auth_sessions")
    op.drop_table("users")
