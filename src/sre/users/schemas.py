"""Request/response schemas for user endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import Field, TypeAdapter, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from sre.auth.schemas import CamelModel, SignedRequest
from sre.db.models import BatchStatus, BatchUserStatus, UserRole
from sre.errors import ValidationError


class UserResponse(CamelModel):
    user_address: str
    role: UserRole
    created_at: datetime | None = None
    updated_at: datetime | None = None
    ens: str | None = None
    ens_avatar: str | None = None
    social_telegram: str | None = None
    social_x: str | None = None
    social_github: str | None = None
    social_instagram: str | None = None
    social_discord: str | None = None
    social_email: str | None = None
    social_farcaster: str | None = None
    location: str | None = None
    batch_id: int | None = None
    batch_status: BatchUserStatus | None = None
    onchain_data: dict[str, Any] | None = None
    referrer: str | None = None


class UserEnvelope(CamelModel):
    user: UserResponse


class RegisterRequest(SignedRequest):
    referrer: str | None = Field(None, max_length=255)


class UpdateUserRequest(SignedRequest):
    """Admin edit of another user's role and batch membership."""

    role: UserRole
    batch_id: int | None = None
    batch_status: BatchUserStatus | None = None

    @field_validator("role")
    @classmethod
    def role_is_storable(cls, v: UserRole) -> UserRole:
        if v is UserRole.ANONYMOUS:
            msg = "anonymous is not an assignable role"
            raise ValueError(msg)
        return v

    @model_validator(mode="after")
    def batch_needs_status(self) -> UpdateUserRequest:
        if self.batch_id is not None and self.batch_status is None:
            msg = "batchStatus is required when batchId is set"
            raise ValueError(msg)
        return self


class UpdateLocationRequest(SignedRequest):
    location: str | None = Field(None, max_length=255)


class Socials(CamelModel):
    social_telegram: str | None = Field(None, max_length=255)
    social_x: str | None = Field(None, max_length=255)
    social_github: str | None = Field(None, max_length=255)
    social_instagram: str | None = Field(None, max_length=255)
    social_discord: str | None = Field(None, max_length=255)
    social_email: str | None = Field(None, max_length=255)
    social_farcaster: str | None = Field(None, max_length=255)


class UpdateSocialsRequest(SignedRequest):
    socials: Socials


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------


class ColumnSort(CamelModel):
    """One entry of a table sorting state, e.g. ``{"id": "createdAt", "desc": true}``."""

    id: str
    desc: bool = False


_SORTING = TypeAdapter(list[ColumnSort])


def parse_sorting(raw: str | None) -> ColumnSort | None:
    """Decode the ``sorting`` query parameter. Only the first column is used."""
    if not raw:
        return None
    try:
        sorting = _SORTING.validate_json(raw)
    except PydanticValidationError as exc:
        raise ValidationError("Invalid sorting parameter") from exc
    return sorting[0] if sorting else None


class ListMeta(CamelModel):
    total_row_count: int


class UserWithChallengesResponse(UserResponse):
    """Leaderboard row."""

    challenges_completed: int = 0
    last_activity: datetime | None = None


class SortedUsersEnvelope(CamelModel):
    data: list[UserWithChallengesResponse]
    meta: ListMeta


class MemberBatch(CamelModel):
    id: int
    name: str
    start_date: datetime
    status: BatchStatus


class BatchBuilderResponse(UserResponse):
    batch: MemberBatch | None = None


class BatchBuildersEnvelope(CamelModel):
    data: list[BatchBuilderResponse]
    meta: ListMeta
