"""Request/response schemas for build endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import Field

from sre.auth.schemas import CamelModel, EthAddress, SignedRequest
from sre.db.models import Build, BuildCategory, BuildType


class BuildFields(CamelModel):
    """Editable build fields, signed field-for-field by the client."""

    name: str = Field(..., min_length=1, max_length=255)
    desc: str = Field(..., min_length=1)
    build_type: BuildType
    build_category: BuildCategory | None = None
    demo_url: str | None = Field(None, max_length=255)
    video_url: str | None = Field(None, max_length=255)
    image_url: str | None = Field(None, max_length=255)
    github_url: str | None = Field(None, max_length=255)
    co_builders: list[EthAddress] = Field(default_factory=list)

    def message_fields(self) -> dict[str, Any]:
        """Keyword arguments for the build typed-data builders."""
        return {
            "name": self.name,
            "desc": self.desc,
            "build_type": self.build_type.value,
            "build_category": self.build_category.value if self.build_category else None,
            "demo_url": self.demo_url,
            "video_url": self.video_url,
            "image_url": self.image_url,
            "github_url": self.github_url,
            "co_builders": self.co_builders,
        }


class SubmitBuildRequest(SignedRequest, BuildFields):
    pass


class UpdateBuildRequest(SignedRequest):
    build: BuildFields


class BuilderResponse(CamelModel):
    user_address: str
    is_owner: bool


class BuildResponse(CamelModel):
    id: str
    name: str
    desc: str | None = None
    build_type: BuildType | None = None
    build_category: BuildCategory | None = None
    demo_url: str | None = None
    video_url: str | None = None
    image_url: str | None = None
    github_url: str | None = None
    submitted_at: datetime | None = None
    builders: list[BuilderResponse] = []
    likes: list[str] = []
    like_count: int = 0

    @classmethod
    def from_build(cls, build: Build) -> BuildResponse:
        """Build the response from a Build with ``builders`` and ``likes`` loaded."""
        likes = [like.user_address for like in build.likes]
        return cls(
            id=build.id,
            name=build.name,
            desc=build.desc,
            build_type=build.build_type,
            build_category=build.build_category,
            demo_url=build.demo_url,
            video_url=build.video_url,
            image_url=build.image_url,
            github_url=build.github_url,
            submitted_at=build.submitted_at,
            builders=[BuilderResponse.model_validate(b) for b in sorted(build.builders, key=lambda b: not b.is_owner)],
            likes=likes,
            like_count=len(likes),
        )


class BuildEnvelope(CamelModel):
    build: BuildResponse


class BuildListEnvelope(CamelModel):
    builds: list[BuildResponse]


class LikeResponse(CamelModel):
    success: bool = True
    liked: bool
    like_count: int
