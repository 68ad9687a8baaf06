"""Initial schema: users, batches, challenges, submissions, builds, likes, notes.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-19
"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

revision: str = "001_initial"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create all tables."""
    # --- batches ---
    op.create_table(
        "batches",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False, unique=True),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(32), nullable=False),
        sa.Column("contract_address", sa.String(42), nullable=True),
        sa.Column("telegram_link", sa.String(255), nullable=False),
        sa.Column("bg_subdomain", sa.String(255), nullable=False, unique=True),
        sa.Column("network", sa.String(32), nullable=True),
    )

    # --- users ---
    op.create_table(
        "users",
        sa.Column("user_address", sa.String(42), primary_key=True),
        sa.Column("role", sa.String(32), nullable=False, server_default="registered"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("ens", sa.String(255), nullable=True),
        sa.Column("ens_avatar", sa.Text(), nullable=True),
        sa.Column("social_telegram", sa.String(255), nullable=True),
        sa.Column("social_x", sa.String(255), nullable=True),
        sa.Column("social_github", sa.String(255), nullable=True),
        sa.Column("social_instagram", sa.String(255), nullable=True),
        sa.Column("social_discord", sa.String(255), nullable=True),
        sa.Column("social_email", sa.String(255), nullable=True),
        sa.Column("social_farcaster", sa.String(255), nullable=True),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("batch_id", sa.Integer(), sa.ForeignKey("batches.id"), nullable=True),
        sa.Column("batch_status", sa.String(32), nullable=True),
        sa.Column("onchain_data", postgresql.JSONB(), nullable=True),
        sa.Column("referrer", sa.String(255), nullable=True),
    )
    op.execute("ALTER TABLE users ADD CONSTRAINT ck_users_address_lowercase CHECK (user_address = lower(user_address))")

    # --- challenges ---
    op.create_table(
        "challenges",
        sa.Column("id", sa.String(255), primary_key=True),
        sa.Column("challenge_name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False),
        sa.Column("github", sa.String(255), nullable=True),
        sa.Column("autograding", sa.Boolean(), server_default="false"),
        sa.Column("disabled", sa.Boolean(), server_default="false"),
    )

    # --- user_challenges (submissions) ---
    op.create_table(
        "user_challenges",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_address", sa.String(42), sa.ForeignKey("users.user_address"), nullable=False),
        sa.Column("challenge_id", sa.String(255), sa.ForeignKey("challenges.id"), nullable=False),
        sa.Column("frontend_url", sa.String(255), nullable=True),
        sa.Column("contract_url", sa.String(255), nullable=True),
        sa.Column("review_action", sa.String(32), nullable=True),
        sa.Column("review_comment", sa.Text(), nullable=True),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("signature", sa.String(255), nullable=True),
    )
    op.create_index("ix_user_challenges_user_address", "user_challenges", ["user_address"])
    op.create_index("ix_user_challenges_review", "user_challenges", ["user_address", "review_action"])

    # --- builds ---
    op.create_table(
        "builds",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("desc", sa.Text(), nullable=True),
        sa.Column("build_type", sa.String(32), nullable=True),
        sa.Column("build_category", sa.String(32), nullable=True),
        sa.Column("demo_url", sa.String(255), nullable=True),
        sa.Column("video_url", sa.String(255), nullable=True),
        sa.Column("image_url", sa.String(255), nullable=True),
        sa.Column("github_url", sa.String(255), nullable=True),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_builds_build_type", "builds", ["build_type"])
    op.create_index("ix_builds_build_category", "builds", ["build_category"])

    op.create_table(
        "build_builders",
        sa.Column("build_id", sa.String(36), sa.ForeignKey("builds.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("user_address", sa.String(42), sa.ForeignKey("users.user_address"), primary_key=True),
        sa.Column("is_owner", sa.Boolean(), nullable=False, server_default="false"),
    )
    op.create_index("ix_build_builders_user_address", "build_builders", ["user_address"])
    # One owner per build
    op.create_index(
        "uq_build_builders_owner",
        "build_builders",
        ["build_id"],
        unique=True,
        postgresql_where=sa.text("is_owner"),
    )

    op.create_table(
        "build_likes",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("build_id", sa.String(36), sa.ForeignKey("builds.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_address", sa.String(42), sa.ForeignKey("users.user_address"), nullable=False),
        sa.Column("liked_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("build_id", "user_address", name="uq_build_likes_build_user"),
    )

    # --- user_notes ---
    op.create_table(
        "user_notes",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_address", sa.String(42), sa.ForeignKey("users.user_address"), nullable=False),
        sa.Column("author_address", sa.String(42), sa.ForeignKey("users.user_address"), nullable=False),
        sa.Column("comment", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_user_notes_user_address", "user_notes", ["user_address"])

    # Case-insensitive uniqueness backs the pre-write conflict checks
    op.create_index("uq_batches_name_lower", "batches", [sa.text("lower(name)")], unique=True)
    op.create_index("uq_batches_bg_subdomain_lower", "batches", [sa.text("lower(bg_subdomain)")], unique=True)


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table("user_notes")
    op.drop_table("build_likes")
    op.drop_table("build_builders")
    op.drop_table("builds")
    op.drop_table("user_challenges")
    op.drop_table("challenges")
    op.drop_table("users")
    op.drop_table("batches")
