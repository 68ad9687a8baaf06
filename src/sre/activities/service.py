"""Activity feed.

Activities are not stored: the feed is read from challenge submissions and
user registrations, merged newest first.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import String, cast, func, literal_column, null, select, union_all

from sre.activities.schemas import ActivityDetails, ActivityItem, ActivityType
from sre.db.models import Challenge, User, UserChallenge

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession
    from sqlalchemy.sql import Select


def _kind(activity_type: ActivityType) -> Any:
    return literal_column(f"'{activity_type.value}'", String).label("kind")


def _submissions() -> Select:
    return (
        select(
            _kind(ActivityType.CHALLENGE_SUBMISSIONS),
            cast(UserChallenge.id, String).label("ref"),
            UserChallenge.user_address.label("user_address"),
            User.ens.label("user_ens"),
            UserChallenge.submitted_at.label("timestamp"),
            UserChallenge.challenge_id.label("challenge_id"),
            Challenge.challenge_name.label("challenge_name"),
            UserChallenge.review_action.label("review_action"),
            UserChallenge.frontend_url.label("frontend_url"),
            UserChallenge.contract_url.label("contract_url"),
        )
        .select_from(UserChallenge)
        .join(User, User.user_address == UserChallenge.user_address)
        .outerjoin(Challenge, Challenge.id == UserChallenge.challenge_id)
    )


def _registrations() -> Select:
    return select(
        _kind(ActivityType.USER_CREATE),
        User.user_address.label("ref"),
        User.user_address.label("user_address"),
        User.ens.label("user_ens"),
        User.created_at.label("timestamp"),
        null().label("challenge_id"),
        null().label("challenge_name"),
        null().label("review_action"),
        null().label("frontend_url"),
        null().label("contract_url"),
    )


async def _count(db: AsyncSession, activity_type: ActivityType) -> int:
    total = 0
    if activity_type in (ActivityType.ALL, ActivityType.CHALLENGE_SUBMISSIONS):
        total += int((await db.execute(select(func.count()).select_from(UserChallenge))).scalar_one())
    if activity_type in (ActivityType.ALL, ActivityType.USER_CREATE):
        total += int((await db.execute(select(func.count()).select_from(User))).scalar_one())
    return total


async def list_activities(
    db: AsyncSession,
    *,
    start: int = 0,
    size: int = 20,
    activity_type: ActivityType = ActivityType.ALL,
) -> tuple[list[ActivityItem], int]:
    """Page of activities, most recent first, and the total for ``activity_type``."""
    if activity_type is ActivityType.CHALLENGE_SUBMISSIONS:
        source = _submissions().subquery()
    elif activity_type is ActivityType.USER_CREATE:
        source = _registrations().subquery()
    else:
        source = union_all(_submissions(), _registrations()).subquery()

    stmt = (
        select(source)
        .order_by(source.c.timestamp.desc(), source.c.kind, source.c.ref)
        .offset(start)
        .limit(size)
    )
    rows = (await db.execute(stmt)).mappings().all()

    items = []
    for row in rows:
        kind = ActivityType(row["kind"])
        prefix = "uc" if kind is ActivityType.CHALLENGE_SUBMISSIONS else "u"
        items.append(
            ActivityItem(
                id=f"{prefix}_{row['ref']}",
                type=kind,
                user_address=row["user_address"],
                user_ens=row["user_ens"],
                timestamp=row["timestamp"],
                details=ActivityDetails(
                    challenge_id=row["challenge_id"],
                    challenge_name=row["challenge_name"],
                    review_action=row["review_action"],
                    frontend_url=row["frontend_url"],
                    contract_url=row["contract_url"],
                ),
            )
        )
    return items, await _count(db, activity_type)
