"""ORM models for users, challenges, builds, batches and admin notes.

Column types stay portable (JSON with a JSONB variant, non-native enums) so the
same metadata runs on Postgres in production and SQLite in tests.
"""

from __future__ import annotations

import enum
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sre.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _enum_column(enum_cls: type[enum.Enum], name: str) -> Enum:
    return Enum(
        enum_cls,
        name=name,
        native_enum=False,
        length=32,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )


_JSON = JSON().with_variant(JSONB(), "postgresql")


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class UserRole(str, enum.Enum):
    """Closed set of roles. ANONYMOUS is never stored; it stands for 'no User row'."""

    ANONYMOUS = "anonymous"
    REGISTERED = "registered"
    BUILDER = "builder"
    ADMIN = "admin"


class ReviewAction(str, enum.Enum):
    SUBMITTED = "SUBMITTED"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"


class BatchStatus(str, enum.Enum):
    OPEN = "open"
    CLOSED = "closed"


class BatchUserStatus(str, enum.Enum):
    CANDIDATE = "candidate"
    GRADUATE = "graduate"


class BatchNetwork(str, enum.Enum):
    ARBITRUM = "arbitrum"
    OPTIMISM = "optimism"


class BuildType(str, enum.Enum):
    DAPP = "dapp"
    INFRASTRUCTURE = "infrastructure"
    CHALLENGE_SUBMISSION = "challenge_submission"
    CONTENT = "content"
    DESIGN = "design"
    OTHER = "other"


class BuildCategory(str, enum.Enum):
    DEFI = "defi"
    GAMING = "gaming"
    NFTS = "nfts"
    SOCIAL = "social"
    DAO = "dao"
    ZK = "zk"
    AI = "ai"
    OTHER = "other"


# ---------------------------------------------------------------------------
# Batches
# ---------------------------------------------------------------------------


class Batch(Base):
    """A time-boxed cohort of builders."""

    __tablename__ = "batches"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[BatchStatus] = mapped_column(_enum_column(BatchStatus, "batch_status"), nullable=False)
    contract_address: Mapped[str | None] = mapped_column(String(42), nullable=True)
    telegram_link: Mapped[str] = mapped_column(String(255), nullable=False)
    bg_subdomain: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    network: Mapped[BatchNetwork | None] = mapped_column(_enum_column(BatchNetwork, "batch_network"), nullable=True)

    users: Mapped[list[User]] = relationship("User", back_populates="batch")


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class User(Base):
    """A builder, identified by lowercase wallet address."""

    __tablename__ = "users"

    user_address: Mapped[str] = mapped_column(String(42), primary_key=True)
    role: Mapped[UserRole] = mapped_column(
        _enum_column(UserRole, "user_role"), nullable=False, default=UserRole.REGISTERED
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )
    ens: Mapped[str | None] = mapped_column(String(255), nullable=True)
    ens_avatar: Mapped[str | None] = mapped_column(Text, nullable=True)
    social_telegram: Mapped[str | None] = mapped_column(String(255), nullable=True)
    social_x: Mapped[str | None] = mapped_column(String(255), nullable=True)
    social_github: Mapped[str | None] = mapped_column(String(255), nullable=True)
    social_instagram: Mapped[str | None] = mapped_column(String(255), nullable=True)
    social_discord: Mapped[str | None] = mapped_column(String(255), nullable=True)
    social_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    social_farcaster: Mapped[str | None] = mapped_column(String(255), nullable=True)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    batch_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("batches.id"), nullable=True)
    batch_status: Mapped[BatchUserStatus | None] = mapped_column(
        _enum_column(BatchUserStatus, "batch_user_status"), nullable=True
    )
    onchain_data: Mapped[dict[str, Any] | None] = mapped_column(_JSON, nullable=True)
    referrer: Mapped[str | None] = mapped_column(String(255), nullable=True)

    batch: Mapped[Batch | None] = relationship("Batch", back_populates="users")


# ---------------------------------------------------------------------------
# Challenges
# ---------------------------------------------------------------------------


class Challenge(Base):
    __tablename__ = "challenges"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    challenge_name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False)
    github: Mapped[str | None] = mapped_column(String(255), nullable=True)
    autograding: Mapped[bool] = mapped_column(Boolean, default=False)
    disabled: Mapped[bool] = mapped_column(Boolean, default=False)


class UserChallenge(Base):
    """One challenge submission. The latest row per challenge is the current state."""

    __tablename__ = "user_challenges"
    __table_args__ = (
        Index("ix_user_challenges_user_address", "user_address"),
        Index("ix_user_challenges_review", "user_address", "review_action"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_address: Mapped[str] = mapped_column(String(42), ForeignKey("users.user_address"), nullable=False)
    challenge_id: Mapped[str] = mapped_column(String(255), ForeignKey("challenges.id"), nullable=False)
    frontend_url: Mapped[str | None] = mapped_column(String(255), nullable=True)
    contract_url: Mapped[str | None] = mapped_column(String(255), nullable=True)
    review_action: Mapped[ReviewAction | None] = mapped_column(
        _enum_column(ReviewAction, "review_action"), nullable=True
    )
    review_comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    submitted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    signature: Mapped[str | None] = mapped_column(String(255), nullable=True)

    challenge: Mapped[Challenge] = relationship("Challenge")


# ---------------------------------------------------------------------------
# Builds
# ---------------------------------------------------------------------------


class Build(Base):
    __tablename__ = "builds"
    __table_args__ = (
        Index("ix_builds_build_type", "build_type"),
        Index("ix_builds_build_category", "build_category"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    desc: Mapped[str | None] = mapped_column(Text, nullable=True)
    build_type: Mapped[BuildType | None] = mapped_column(_enum_column(BuildType, "build_type"), nullable=True)
    build_category: Mapped[BuildCategory | None] = mapped_column(
        _enum_column(BuildCategory, "build_category"), nullable=True
    )
    demo_url: Mapped[str | None] = mapped_column(String(255), nullable=True)
    video_url: Mapped[str | None] = mapped_column(String(255), nullable=True)
    image_url: Mapped[str | None] = mapped_column(String(255), nullable=True)
    github_url: Mapped[str | None] = mapped_column(String(255), nullable=True)
    submitted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)

    builders: Mapped[list[BuildBuilder]] = relationship(
        "BuildBuilder", back_populates="build", cascade="all, delete-orphan"
    )
    likes: Mapped[list[BuildLike]] = relationship("BuildLike", back_populates="build", cascade="all, delete-orphan")


class BuildBuilder(Base):
    """Owner or co-builder of a build. Exactly one row per build has is_owner set."""

    __tablename__ = "build_builders"
    __table_args__ = (Index("ix_build_builders_user_address", "user_address"),)

    build_id: Mapped[str] = mapped_column(String(36), ForeignKey("builds.id", ondelete="CASCADE"), primary_key=True)
    user_address: Mapped[str] = mapped_column(String(42), ForeignKey("users.user_address"), primary_key=True)
    is_owner: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    build: Mapped[Build] = relationship("Build", back_populates="builders")


class BuildLike(Base):
    __tablename__ = "build_likes"
    __table_args__ = (UniqueConstraint("build_id", "user_address", name="uq_build_likes_build_user"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    build_id: Mapped[str] = mapped_column(String(36), ForeignKey("builds.id", ondelete="CASCADE"), nullable=False)
    user_address: Mapped[str] = mapped_column(String(42), ForeignKey("users.user_address"), nullable=False)
    liked_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)

    build: Mapped[Build] = relationship("Build", back_populates="likes")


# ---------------------------------------------------------------------------
# Admin notes
# ---------------------------------------------------------------------------


class UserNote(Base):
    """Admin-authored annotation on a user."""

    __tablename__ = "user_notes"
    __table_args__ = (Index("ix_user_notes_user_address", "user_address"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_address: Mapped[str] = mapped_column(String(42), ForeignKey("users.user_address"), nullable=False)
    author_address: Mapped[str] = mapped_column(String(42), ForeignKey("users.user_address"), nullable=False)
    comment: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
