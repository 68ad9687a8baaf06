"""Build router: signed build mutations under /api/users/builds, public reads under /api/builds."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from sre.auth.permissions import require_owner_or_admin, require_valid_signature
from sre.auth.schemas import SignedRequest, SuccessResponse
from sre.builds.schemas import (
    BuildEnvelope,
    BuildListEnvelope,
    BuildResponse,
    LikeResponse,
    SubmitBuildRequest,
    UpdateBuildRequest,
)
from sre.builds.service import (
    DEFAULT_PAGE_SIZE,
    count_likes,
    create_build,
    delete_build,
    find_like,
    get_build_or_404,
    list_builds,
    list_user_builds,
    toggle_like,
    update_build,
)
from sre.database import get_session
from sre.db.models import BuildCategory, BuildType
from sre.eip712.messages import (
    delete_build_typed_data,
    like_build_typed_data,
    submit_build_typed_data,
    update_build_typed_data,
)

router = APIRouter(prefix="/api", tags=["Builds"])


# ---------------------------------------------------------------------------
# Signed mutations
# ---------------------------------------------------------------------------


@router.post("/users/builds/submit", response_model=BuildEnvelope)
async def submit_build(
    body: SubmitBuildRequest,
    db: AsyncSession = Depends(get_session),
) -> BuildEnvelope:
    """Submit a new build. The signer becomes its owner."""
    require_valid_signature(submit_build_typed_data(**body.message_fields()), body.address, body.signature)
    build = await create_build(db, body.address, body)
    await db.commit()
    return BuildEnvelope(build=BuildResponse.from_build(build))


@router.put("/users/builds/{build_id}/update", response_model=BuildEnvelope)
async def update_build_endpoint(
    build_id: str,
    body: UpdateBuildRequest,
    db: AsyncSession = Depends(get_session),
) -> BuildEnvelope:
    """Owner-or-admin update. The build id in the signed message comes from the path."""
    require_valid_signature(
        update_build_typed_data(build_id, **body.build.message_fields()),
        body.address,
        body.signature,
    )
    await require_owner_or_admin(db, build_id, body.address)

    build = await update_build(db, build_id, body.build)
    await db.commit()
    return BuildEnvelope(build=BuildResponse.from_build(build))


@router.delete("/users/builds/{build_id}/delete", response_model=SuccessResponse)
async def delete_build_endpoint(
    build_id: str,
    body: SignedRequest,
    db: AsyncSession = Depends(get_session),
) -> SuccessResponse:
    require_valid_signature(delete_build_typed_data(build_id), body.address, body.signature)
    await require_owner_or_admin(db, build_id, body.address)

    await delete_build(db, build_id)
    await db.commit()
    return SuccessResponse()


@router.post("/users/builds/{build_id}/like", response_model=LikeResponse)
async def like_build(
    build_id: str,
    body: SignedRequest,
    db: AsyncSession = Depends(get_session),
) -> LikeResponse:
    """
    Toggle the signer's like.

    The current state decides whether the signed action must be "like" or
    "unlike", so a captured signature stops verifying once the state flips.
    """
    existing = await find_like(db, build_id, body.address)
    action = "unlike" if existing is not None else "like"
    require_valid_signature(like_build_typed_data(build_id, action), body.address, body.signature)

    liked = await toggle_like(db, build_id, body.address, existing)
    await db.commit()
    return LikeResponse(liked=liked, like_count=await count_likes(db, build_id))


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


@router.get("/builds", response_model=BuildListEnvelope)
async def get_builds(
    category: BuildCategory | None = None,
    type: BuildType | None = None,  # noqa: A002
    name: str | None = None,
    start: int = Query(0, ge=0),
    size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=100),
    db: AsyncSession = Depends(get_session),
) -> BuildListEnvelope:
    """Public showcase, most liked first."""
    builds = await list_builds(db, category=category, build_type=type, name=name, start=start, size=size)
    return BuildListEnvelope(builds=[BuildResponse.from_build(b) for b in builds])


@router.get("/builds/{build_id}", response_model=BuildEnvelope)
async def get_build(
    build_id: str,
    db: AsyncSession = Depends(get_session),
) -> BuildEnvelope:
    return BuildEnvelope(build=BuildResponse.from_build(await get_build_or_404(db, build_id)))


@router.get("/users/{address}/builds", response_model=BuildListEnvelope)
async def get_user_builds(
    address: str,
    db: AsyncSession = Depends(get_session),
) -> BuildListEnvelope:
    builds = await list_user_builds(db, address)
    return BuildListEnvelope(builds=[BuildResponse.from_build(b) for b in builds])
