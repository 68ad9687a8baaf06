"""User router: all /api/users/* endpoints except builds and notes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from sre.auth.permissions import require_admin, require_self_or_admin, require_valid_signature
from sre.auth.schemas import SignedRequest
from sre.database import get_session
from sre.db.models import User
from sre.eip712.messages import (
    join_batch_typed_data,
    register_typed_data,
    update_ens_typed_data,
    update_location_typed_data,
    update_onchain_data_typed_data,
    update_socials_typed_data,
    update_user_typed_data,
)
from sre.users.schemas import (
    BatchBuilderResponse,
    BatchBuildersEnvelope,
    ListMeta,
    RegisterRequest,
    SortedUsersEnvelope,
    UpdateLocationRequest,
    UpdateSocialsRequest,
    UpdateUserRequest,
    UserEnvelope,
    UserResponse,
    UserWithChallengesResponse,
    parse_sorting,
)
from sre.users.service import (
    get_user_by_ens,
    get_user_or_404,
    join_batch,
    list_batch_builders,
    list_users_with_challenges,
    register_user,
    update_ens,
    update_location,
    update_onchain_data,
    update_socials,
    update_user,
)

router = APIRouter(prefix="/api/users", tags=["Users"])


def _envelope(user: User) -> UserEnvelope:
    return UserEnvelope(user=UserResponse.model_validate(user))


# ---------------------------------------------------------------------------
# Self-service
# ---------------------------------------------------------------------------


@router.post("/register", response_model=UserEnvelope)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_session),
) -> UserEnvelope:
    """Register the signing wallet as a new user."""
    require_valid_signature(register_typed_data(), body.address, body.signature)
    user = await register_user(db, body.address, body.referrer)
    await db.commit()
    return _envelope(user)


@router.post("/update-location", response_model=UserEnvelope)
async def update_location_endpoint(
    body: UpdateLocationRequest,
    db: AsyncSession = Depends(get_session),
) -> UserEnvelope:
    require_valid_signature(update_location_typed_data(body.location), body.address, body.signature)
    user = await update_location(db, body.address, body.location)
    await db.commit()
    return _envelope(user)


@router.post("/update-socials", response_model=UserEnvelope)
async def update_socials_endpoint(
    body: UpdateSocialsRequest,
    db: AsyncSession = Depends(get_session),
) -> UserEnvelope:
    """Replace all social handles of the signer."""
    require_valid_signature(
        update_socials_typed_data(body.socials.model_dump(by_alias=True)),
        body.address,
        body.signature,
    )
    user = await update_socials(db, body.address, body.socials.model_dump())
    await db.commit()
    return _envelope(user)


@router.post("/join-batch", response_model=UserEnvelope)
async def join_batch_endpoint(
    body: SignedRequest,
    db: AsyncSession = Depends(get_session),
) -> UserEnvelope:
    """Join the latest open batch as a candidate."""
    require_valid_signature(join_batch_typed_data(), body.address, body.signature)
    user = await join_batch(db, body.address)
    await db.commit()
    return _envelope(user)


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------


@router.get("/sorted", response_model=SortedUsersEnvelope)
async def get_sorted_users(
    start: int = Query(0, ge=0),
    size: int = Query(10, ge=1, le=100),
    sorting: str | None = None,
    db: AsyncSession = Depends(get_session),
) -> SortedUsersEnvelope:
    """Builders leaderboard. ``sorting`` is a JSON list of ``{id, desc}``."""
    rows, total = await list_users_with_challenges(db, start=start, size=size, sort=parse_sorting(sorting))
    data = [
        UserWithChallengesResponse.model_validate(user).model_copy(
            update={"challenges_completed": completed, "last_activity": last_activity}
        )
        for user, completed, last_activity in rows
    ]
    return SortedUsersEnvelope(data=data, meta=ListMeta(total_row_count=total))


@router.get("/in-batches", response_model=BatchBuildersEnvelope)
async def get_batch_builders(
    start: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=100),
    sorting: str | None = None,
    filter: str | None = None,  # noqa: A002
    batch_id: int | None = Query(None, alias="batchId"),
    db: AsyncSession = Depends(get_session),
) -> BatchBuildersEnvelope:
    """Members of any batch, optionally narrowed to one batch or an address fragment."""
    users, total = await list_batch_builders(
        db,
        start=start,
        size=size,
        sort=parse_sorting(sorting),
        address_filter=filter,
        batch_id=batch_id,
    )
    data = [BatchBuilderResponse.model_validate(user) for user in users]
    return BatchBuildersEnvelope(data=data, meta=ListMeta(total_row_count=total))


@router.get("/by-ens/{ens}", response_model=UserEnvelope)
async def get_user_by_ens_endpoint(
    ens: str,
    db: AsyncSession = Depends(get_session),
) -> UserEnvelope:
    return _envelope(await get_user_by_ens(db, ens))


@router.get("/{address}", response_model=UserEnvelope)
async def get_user(
    address: str,
    db: AsyncSession = Depends(get_session),
) -> UserEnvelope:
    return _envelope(await get_user_or_404(db, address))


@router.put("/{address}/update", response_model=UserEnvelope)
async def update_user_endpoint(
    address: str,
    body: UpdateUserRequest,
    db: AsyncSession = Depends(get_session),
) -> UserEnvelope:
    """Admin-only role and batch edit. The target address comes from the path."""
    target = address.lower()
    typed_data = update_user_typed_data(
        user_address=target,
        role=body.role.value,
        batch_id=body.batch_id,
        batch_status=body.batch_status.value if body.batch_status else None,
    )
    require_valid_signature(typed_data, body.address, body.signature)
    await require_admin(db, body.address)

    user = await update_user(db, target, role=body.role, batch_id=body.batch_id, batch_status=body.batch_status)
    await db.commit()
    return _envelope(user)


@router.put("/{address}/update-ens", response_model=UserEnvelope)
async def update_ens_endpoint(
    address: str,
    body: SignedRequest,
    request: Request,
    db: AsyncSession = Depends(get_session),
) -> UserEnvelope:
    """Re-resolve ENS name and avatar for the path address."""
    require_valid_signature(update_ens_typed_data(address.lower()), body.address, body.signature)
    await require_self_or_admin(db, address, body.address)

    user = await update_ens(db, getattr(request.app.state, "ens", None), address.lower())
    await db.commit()
    return _envelope(user)


@router.put("/{address}/update-onchain-data", response_model=UserEnvelope)
async def update_onchain_data_endpoint(
    address: str,
    body: SignedRequest,
    request: Request,
    db: AsyncSession = Depends(get_session),
) -> UserEnvelope:
    require_valid_signature(update_onchain_data_typed_data(address.lower()), body.address, body.signature)
    await require_self_or_admin(db, address, body.address)

    user = await update_onchain_data(db, getattr(request.app.state, "ens", None), address.lower())
    await db.commit()
    return _envelope(user)
