"""Latest submission per challenge."""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable
from typing import TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from sre.db.models import UserChallenge

T = TypeVar("T")


def latest_per_key(records: Iterable[T], key: Callable[[T], Hashable]) -> list[T]:
    """
    Keep the first record seen for each key.

    ``records`` must already be ordered most recent first. The output keeps
    first-sight order; it is not re-sorted.
    """
    seen: set[Hashable] = set()
    latest: list[T] = []
    for record in records:
        k = key(record)
        if k in seen:
            continue
        seen.add(k)
        latest.append(record)
    return latest


async def find_latest_submissions(db: AsyncSession, address: str) -> list[UserChallenge]:
    """Most recent submission for each challenge the user attempted."""
    result = await db.execute(
        select(UserChallenge)
        .where(UserChallenge.user_address == address.lower())
        .options(selectinload(UserChallenge.challenge))
        .order_by(UserChallenge.id.desc())
    )
    return latest_per_key(result.scalars().all(), key=lambda submission: submission.challenge_id)
