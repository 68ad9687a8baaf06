"""Batch business logic."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlalchemy import func, or_, select

from sre.db.models import Batch, BatchStatus, BatchUserStatus, User
from sre.errors import ConflictError, NotFoundError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from sre.batches.schemas import BatchRequest

logger = structlog.get_logger()


async def _ensure_unique(db: AsyncSession, name: str, bg_subdomain: str, exclude_id: int | None = None) -> None:
    """Raise ConflictError if another batch already uses the name or subdomain (case-insensitive)."""
    stmt = select(Batch.id).where(
        or_(
            func.lower(Batch.name) == name.lower(),
            func.lower(Batch.bg_subdomain) == bg_subdomain.lower(),
        )
    )
    if exclude_id is not None:
        stmt = stmt.where(Batch.id != exclude_id)
    if (await db.execute(stmt.limit(1))).scalar_one_or_none() is not None:
        raise ConflictError("Batch with this name or website url already exists")


def _apply_fields(batch: Batch, body: BatchRequest) -> None:
    batch.name = body.name
    batch.start_date = body.parsed_start_date()
    batch.status = body.status
    batch.contract_address = body.contract_address or None
    batch.telegram_link = body.telegram_link
    batch.bg_subdomain = body.bg_subdomain
    batch.network = body.network


async def create_batch(db: AsyncSession, body: BatchRequest) -> Batch:
    await _ensure_unique(db, body.name, body.bg_subdomain)
    batch = Batch()
    _apply_fields(batch, body)
    db.add(batch)
    await db.flush()
    logger.info("batch_created", batch_id=batch.id, name=batch.name)
    return batch


async def update_batch(db: AsyncSession, batch_id: int, body: BatchRequest) -> Batch:
    batch = await db.get(Batch, batch_id)
    if batch is None:
        raise NotFoundError("Batch not found")
    await _ensure_unique(db, body.name, body.bg_subdomain, exclude_id=batch_id)
    _apply_fields(batch, body)
    await db.flush()
    logger.info("batch_updated", batch_id=batch_id)
    return batch


async def list_batches(
    db: AsyncSession,
    *,
    start: int = 0,
    size: int = 20,
    name_filter: str | None = None,
) -> tuple[list[tuple[Batch, int, int]], int]:
    """
    Page of batches, newest first, with candidate and graduate counts.

    Returns:
        ``([(batch, candidate_count, graduate_count), ...], total_row_count)``
    """
    where = func.lower(Batch.name).contains(name_filter.lower()) if name_filter else None

    count_stmt = select(func.count(Batch.id))
    page_stmt = select(Batch).order_by(Batch.start_date.desc()).offset(start).limit(size)
    if where is not None:
        count_stmt = count_stmt.where(where)
        page_stmt = page_stmt.where(where)

    total = int((await db.execute(count_stmt)).scalar_one())
    batches = list((await db.execute(page_stmt)).scalars().all())

    counts: dict[tuple[int, BatchUserStatus], int] = {}
    if batches:
        rows = await db.execute(
            select(User.batch_id, User.batch_status, func.count())
            .where(User.batch_id.in_([b.id for b in batches]))
            .group_by(User.batch_id, User.batch_status)
        )
        for batch_id, status, count in rows.all():
            if status is not None:
                counts[(batch_id, BatchUserStatus(status))] = count

    page = [
        (
            batch,
            counts.get((batch.id, BatchUserStatus.CANDIDATE), 0),
            counts.get((batch.id, BatchUserStatus.GRADUATE), 0),
        )
        for batch in batches
    ]
    return page, total


async def list_batch_names(db: AsyncSession) -> list[Batch]:
    result = await db.execute(select(Batch).order_by(Batch.start_date.desc()))
    return list(result.scalars().all())


async def get_latest_open_batch(db: AsyncSession) -> Batch | None:
    result = await db.execute(
        select(Batch).where(Batch.status == BatchStatus.OPEN).order_by(Batch.start_date.desc()).limit(1)
    )
    return result.scalar_one_or_none()
