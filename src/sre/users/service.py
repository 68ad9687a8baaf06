"""User business logic.

Functions here run after the signature and authorization gates; they only
check preconditions and stage a single change. Callers commit.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import DateTime, distinct, func, select
from sqlalchemy.orm import selectinload

from sre.batches.service import get_latest_open_batch
from sre.challenges.catalog import JOIN_BATCH_DEPENDENCIES
from sre.challenges.latest import find_latest_submissions
from sre.db.models import Batch, BatchUserStatus, ReviewAction, User, UserChallenge, UserRole
from sre.errors import ConflictError, InternalError, NotFoundError, ValidationError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession
    from sqlalchemy.sql.elements import ColumnElement

    from sre.onchain.ens import EnsClient, EnsProfile
    from sre.users.schemas import ColumnSort

logger = structlog.get_logger()


async def get_user_or_404(db: AsyncSession, address: str) -> User:
    user = await db.get(User, address.lower())
    if user is None:
        raise NotFoundError("User not found")
    return user


async def register_user(db: AsyncSession, address: str, referrer: str | None = None) -> User:
    """
    Create a REGISTERED user.

    Raises:
        ConflictError: If the address is already registered.
    """
    if await db.get(User, address) is not None:
        raise ConflictError("User already registered")

    user = User(user_address=address, role=UserRole.REGISTERED, referrer=referrer)
    db.add(user)
    await db.flush()
    logger.info("user_registered", address=address)
    return user


async def update_user(
    db: AsyncSession,
    target_address: str,
    *,
    role: UserRole,
    batch_id: int | None = None,
    batch_status: BatchUserStatus | None = None,
) -> User:
    """Apply an admin edit. Batch fields are left untouched when ``batch_id`` is absent."""
    user = await get_user_or_404(db, target_address)
    if batch_id is not None:
        if await db.get(Batch, batch_id) is None:
            raise NotFoundError("Batch not found")
        user.batch_id = batch_id
        user.batch_status = batch_status

    previous_role = user.role
    user.role = role
    await db.flush()
    logger.info(
        "user_updated",
        address=target_address,
        role=role.value,
        previous_role=UserRole(previous_role).value,
        batch_id=batch_id,
    )
    return user


async def _lookup_ens(ens_client: EnsClient | None, address: str) -> EnsProfile:
    if ens_client is None:
        raise InternalError("ENS lookups are not configured")
    try:
        return await ens_client.lookup(address)
    except Exception as e:
        logger.exception("ens_lookup_failed", address=address)
        raise InternalError("Failed to resolve ENS name") from e


async def update_ens(db: AsyncSession, ens_client: EnsClient | None, target_address: str) -> User:
    """
    Refresh the user's ENS name and avatar.

    Raises:
        NotFoundError: If the user does not exist.
        ValidationError: If the address has no primary ENS name.
    """
    user = await get_user_or_404(db, target_address)
    profile = await _lookup_ens(ens_client, target_address)
    if not profile.name:
        raise ValidationError("No ENS name found for this address")

    user.ens = profile.name
    user.ens_avatar = profile.avatar
    await db.flush()
    logger.info("user_ens_updated", address=target_address, ens=profile.name)
    return user


async def update_onchain_data(db: AsyncSession, ens_client: EnsClient | None, target_address: str) -> User:
    """Take a fresh on-chain snapshot and merge it into ``onchain_data``."""
    user = await get_user_or_404(db, target_address)
    profile = await _lookup_ens(ens_client, target_address)

    snapshot: dict[str, Any] = dict(user.onchain_data or {})
    snapshot["ens"] = {"name": profile.name, "avatar": profile.avatar}
    snapshot["updatedAt"] = datetime.now(timezone.utc).isoformat()
    # Reassign so the JSON column is marked dirty
    user.onchain_data = snapshot
    if profile.name:
        user.ens = profile.name
        user.ens_avatar = profile.avatar
    await db.flush()
    logger.info("user_onchain_data_updated", address=target_address)
    return user


async def update_location(db: AsyncSession, address: str, location: str | None) -> User:
    user = await get_user_or_404(db, address)
    user.location = location or None
    await db.flush()
    return user


async def update_socials(db: AsyncSession, address: str, socials: dict[str, str | None]) -> User:
    """Overwrite every social handle. Blank values are stored as NULL."""
    user = await get_user_or_404(db, address)
    for field, value in socials.items():
        setattr(user, field, (value or "").strip() or None)
    await db.flush()
    return user


async def join_batch(db: AsyncSession, address: str) -> User:
    """
    Enroll the user in the latest open batch as a candidate.

    Raises:
        ValidationError: No open batch, or prerequisite challenges missing.
        NotFoundError: The user is not registered.
        ConflictError: The user already belongs to a batch.
    """
    batch = await get_latest_open_batch(db)
    if batch is None:
        raise ValidationError("No active batch")

    user = await get_user_or_404(db, address)
    if user.batch_id is not None:
        raise ConflictError("User already joined Batch")

    accepted = {
        submission.challenge_id
        for submission in await find_latest_submissions(db, address)
        if submission.review_action == ReviewAction.ACCEPTED
    }
    if not all(dependency in accepted for dependency in JOIN_BATCH_DEPENDENCIES):
        raise ValidationError("Required challenges have not been completed")

    user.batch_id = batch.id
    user.batch_status = BatchUserStatus.CANDIDATE
    await db.flush()
    logger.info("user_joined_batch", address=address, batch_id=batch.id)
    return user


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------

# Sortable user columns by their wire name
USER_SORT_COLUMNS: dict[str, Any] = {
    "userAddress": User.user_address,
    "role": User.role,
    "createdAt": User.created_at,
    "ens": User.ens,
    "location": User.location,
    "batchStatus": User.batch_status,
}


def _challenges_completed() -> ColumnElement[int]:
    return (
        select(func.count(distinct(UserChallenge.challenge_id)))
        .where(
            UserChallenge.user_address == User.user_address,
            UserChallenge.review_action == ReviewAction.ACCEPTED,
        )
        .scalar_subquery()
    )


def _last_activity() -> ColumnElement[datetime]:
    """Most recent submission, or the registration time for users without one."""
    latest_submission = (
        select(func.max(UserChallenge.submitted_at))
        .where(UserChallenge.user_address == User.user_address)
        .scalar_subquery()
    )
    return func.coalesce(latest_submission, User.created_at, type_=DateTime(timezone=True))


def _order_by(column: Any, sort: ColumnSort) -> list[Any]:
    return [column.desc() if sort.desc else column.asc(), User.user_address.asc()]


async def list_users_with_challenges(
    db: AsyncSession,
    *,
    start: int = 0,
    size: int = 10,
    sort: ColumnSort | None = None,
) -> tuple[list[tuple[User, int, datetime]], int]:
    """
    Leaderboard page: users with their accepted challenge count and last activity.

    ``sort.id`` may be a column of ``USER_SORT_COLUMNS``, ``challengesCompleted``
    or ``lastActivity``. Unknown ids fall back to newest users first.

    Returns:
        ``([(user, challenges_completed, last_activity), ...], total_row_count)``
    """
    completed = _challenges_completed()
    last_activity = _last_activity()
    extras = {"challengesCompleted": completed, "lastActivity": last_activity}

    order = [User.created_at.desc()]
    if sort is not None:
        column = extras.get(sort.id, USER_SORT_COLUMNS.get(sort.id))
        if column is not None:
            order = _order_by(column, sort)

    stmt = (
        select(User, completed.label("challenges_completed"), last_activity.label("last_activity"))
        .order_by(*order)
        .offset(start)
        .limit(size)
    )
    rows = [(user, int(count or 0), activity) for user, count, activity in (await db.execute(stmt)).all()]
    total = int((await db.execute(select(func.count()).select_from(User))).scalar_one())
    return rows, total


async def list_batch_builders(
    db: AsyncSession,
    *,
    start: int = 0,
    size: int = 20,
    sort: ColumnSort | None = None,
    address_filter: str | None = None,
    batch_id: int | None = None,
) -> tuple[list[User], int]:
    """Users enrolled in any batch (or in ``batch_id``), with their batch loaded.

    ``batchStart`` sorts by the batch start date; other ids follow
    ``USER_SORT_COLUMNS``.
    """
    conditions = [User.batch_id.is_not(None)]
    if address_filter:
        conditions.append(User.user_address.contains(address_filter.lower()))
    if batch_id is not None:
        conditions.append(User.batch_id == batch_id)

    stmt = select(User).where(*conditions).options(selectinload(User.batch))
    if sort is not None and sort.id == "batchStart":
        stmt = stmt.join(Batch, User.batch_id == Batch.id).order_by(*_order_by(Batch.start_date, sort))
    elif sort is not None and sort.id in USER_SORT_COLUMNS:
        stmt = stmt.order_by(*_order_by(USER_SORT_COLUMNS[sort.id], sort))
    else:
        stmt = stmt.order_by(User.created_at.desc())

    users = list((await db.execute(stmt.offset(start).limit(size))).scalars().all())
    total = int((await db.execute(select(func.count()).select_from(User).where(*conditions))).scalar_one())
    return users, total


async def get_user_by_ens(db: AsyncSession, ens: str) -> User:
    """Case-insensitive lookup by stored primary ENS name."""
    result = await db.execute(select(User).where(func.lower(User.ens) == ens.lower()).limit(1))
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFoundError("User not found")
    return user
