"""Build business logic."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlalchemy import delete, func, select
from sqlalchemy.orm import selectinload

from sre.challenges.latest import find_latest_submissions
from sre.db.models import Build, BuildBuilder, BuildCategory, BuildLike, BuildType, ReviewAction, User
from sre.errors import NotFoundError, ValidationError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from sre.builds.schemas import BuildFields

logger = structlog.get_logger()

DEFAULT_PAGE_SIZE = 48


_WITH_RELATIONS = (selectinload(Build.builders), selectinload(Build.likes))


async def get_build_or_404(db: AsyncSession, build_id: str) -> Build:
    result = await db.execute(select(Build).where(Build.id == build_id).options(*_WITH_RELATIONS))
    build = result.scalar_one_or_none()
    if build is None:
        raise NotFoundError("Build not found")
    return build


async def _existing_co_builders(db: AsyncSession, owner: str, co_builders: list[str]) -> list[str]:
    """Registered co-builder addresses in request order, owner and duplicates removed."""
    wanted = [a for a in dict.fromkeys(co_builders) if a != owner]
    if not wanted:
        return []
    result = await db.execute(select(User.user_address).where(User.user_address.in_(wanted)))
    registered = set(result.scalars().all())
    return [a for a in wanted if a in registered]


def _apply_fields(build: Build, fields: BuildFields) -> None:
    build.name = fields.name
    build.desc = fields.desc
    build.build_type = fields.build_type
    build.build_category = fields.build_category
    build.demo_url = fields.demo_url
    build.video_url = fields.video_url
    build.image_url = fields.image_url
    build.github_url = fields.github_url


async def create_build(db: AsyncSession, owner: str, fields: BuildFields) -> Build:
    """
    Create a build owned by ``owner``.

    Raises:
        ValidationError: If the owner has no accepted challenge.
    """
    submissions = await find_latest_submissions(db, owner)
    if not any(s.review_action == ReviewAction.ACCEPTED for s in submissions):
        raise ValidationError("User has no completed challenges")

    co_builders = await _existing_co_builders(db, owner, fields.co_builders)
    build = Build(
        builders=[
            BuildBuilder(user_address=owner, is_owner=True),
            *(BuildBuilder(user_address=a, is_owner=False) for a in co_builders),
        ],
        likes=[],
    )
    _apply_fields(build, fields)
    db.add(build)
    await db.flush()
    logger.info("build_created", build_id=build.id, owner=owner, co_builders=len(co_builders))
    return build


async def update_build(db: AsyncSession, build_id: str, fields: BuildFields) -> Build:
    """Replace a build's fields and co-builders. The owner row is kept as is."""
    build = await get_build_or_404(db, build_id)
    owner = next(b.user_address for b in build.builders if b.is_owner)

    wanted = set(await _existing_co_builders(db, owner, fields.co_builders))
    current = {b.user_address for b in build.builders if not b.is_owner}
    for builder in list(build.builders):
        if not builder.is_owner and builder.user_address not in wanted:
            build.builders.remove(builder)
    for address in fields.co_builders:
        if address in wanted and address not in current:
            build.builders.append(BuildBuilder(user_address=address, is_owner=False))
            current.add(address)

    _apply_fields(build, fields)
    await db.flush()
    logger.info("build_updated", build_id=build_id, co_builders=len(wanted))
    return build


async def delete_build(db: AsyncSession, build_id: str) -> None:
    """Remove a build with its likes and builder rows."""
    if await db.get(Build, build_id) is None:
        raise NotFoundError("Build not found")
    await db.execute(delete(BuildLike).where(BuildLike.build_id == build_id))
    await db.execute(delete(BuildBuilder).where(BuildBuilder.build_id == build_id))
    await db.execute(delete(Build).where(Build.id == build_id))
    logger.info("build_deleted", build_id=build_id)


async def find_like(db: AsyncSession, build_id: str, address: str) -> BuildLike | None:
    result = await db.execute(
        select(BuildLike).where(BuildLike.build_id == build_id, BuildLike.user_address == address)
    )
    return result.scalar_one_or_none()


async def count_likes(db: AsyncSession, build_id: str) -> int:
    result = await db.execute(select(func.count(BuildLike.id)).where(BuildLike.build_id == build_id))
    return int(result.scalar_one())


async def toggle_like(db: AsyncSession, build_id: str, address: str, existing: BuildLike | None) -> bool:
    """
    Flip the like state read before signature verification.

    Returns:
        True if the build is now liked by ``address``.
    """
    if await db.get(Build, build_id) is None:
        raise NotFoundError("Build not found")
    if await db.get(User, address) is None:
        raise NotFoundError("User not found")

    if existing is not None:
        await db.delete(existing)
        liked = False
    else:
        db.add(BuildLike(build_id=build_id, user_address=address))
        liked = True
    await db.flush()
    logger.info("build_like_toggled", build_id=build_id, address=address, liked=liked)
    return liked


async def list_builds(
    db: AsyncSession,
    *,
    category: BuildCategory | None = None,
    build_type: BuildType | None = None,
    name: str | None = None,
    start: int = 0,
    size: int = DEFAULT_PAGE_SIZE,
) -> list[Build]:
    """Builds ordered by like count, most liked first."""
    like_counts = (
        select(BuildLike.build_id, func.count(BuildLike.id).label("like_count"))
        .group_by(BuildLike.build_id)
        .subquery()
    )
    stmt = (
        select(Build)
        .outerjoin(like_counts, like_counts.c.build_id == Build.id)
        .options(*_WITH_RELATIONS)
        .order_by(func.coalesce(like_counts.c.like_count, 0).desc(), Build.submitted_at.desc())
        .offset(start)
        .limit(size)
    )
    if category:
        stmt = stmt.where(Build.build_category == category)
    if build_type:
        stmt = stmt.where(Build.build_type == build_type)
    if name:
        stmt = stmt.where(func.lower(Build.name).contains(name.lower()))
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def list_user_builds(db: AsyncSession, address: str) -> list[Build]:
    """Builds the user owns or co-built, newest first."""
    result = await db.execute(
        select(Build)
        .join(BuildBuilder, BuildBuilder.build_id == Build.id)
        .where(BuildBuilder.user_address == address.lower())
        .options(*_WITH_RELATIONS)
        .order_by(Build.submitted_at.desc())
    )
    return list(result.scalars().all())
