"""Batch router: all /api/batches/* endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from sre.auth.permissions import require_admin, require_valid_signature
from sre.batches.schemas import (
    BatchEnvelope,
    BatchListEnvelope,
    BatchListMeta,
    BatchName,
    BatchNameListEnvelope,
    BatchRequest,
    BatchResponse,
    PublicBatchResponse,
)
from sre.batches.service import (
    create_batch,
    get_latest_open_batch,
    list_batch_names,
    list_batches,
    update_batch,
)
from sre.database import get_session
from sre.eip712.messages import create_batch_typed_data, update_batch_typed_data

router = APIRouter(prefix="/api/batches", tags=["Batches"])


@router.post("/create", response_model=BatchEnvelope)
async def create_batch_endpoint(
    body: BatchRequest,
    db: AsyncSession = Depends(get_session),
) -> BatchEnvelope:
    """Admin-only. A name or subdomain clash is a 409 and nothing is written."""
    require_valid_signature(create_batch_typed_data(**body.message_fields()), body.address, body.signature)
    await require_admin(db, body.address)

    batch = await create_batch(db, body)
    await db.commit()
    return BatchEnvelope(batch=BatchResponse.model_validate(batch))


@router.put("/{batch_id}/update", response_model=BatchEnvelope)
async def update_batch_endpoint(
    batch_id: int,
    body: BatchRequest,
    db: AsyncSession = Depends(get_session),
) -> BatchEnvelope:
    require_valid_signature(update_batch_typed_data(batch_id, **body.message_fields()), body.address, body.signature)
    await require_admin(db, body.address)

    batch = await update_batch(db, batch_id, body)
    await db.commit()
    return BatchEnvelope(batch=BatchResponse.model_validate(batch))


@router.get("", response_model=BatchListEnvelope)
async def get_batches(
    start: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=100),
    filter: str | None = None,  # noqa: A002
    db: AsyncSession = Depends(get_session),
) -> BatchListEnvelope:
    """Paginated public batch list with member counts."""
    page, total = await list_batches(db, start=start, size=size, name_filter=filter)
    batches = [
        PublicBatchResponse.model_validate(batch).model_copy(
            update={"candidate_count": candidates, "graduate_count": graduates}
        )
        for batch, candidates, graduates in page
    ]
    return BatchListEnvelope(batches=batches, meta=BatchListMeta(total_row_count=total))


@router.get("/latest-open", response_model=BatchEnvelope)
async def get_latest_open(
    db: AsyncSession = Depends(get_session),
) -> BatchEnvelope:
    batch = await get_latest_open_batch(db)
    return BatchEnvelope(batch=BatchResponse.model_validate(batch) if batch else None)


@router.get("/name-list", response_model=BatchNameListEnvelope)
async def get_name_list(
    db: AsyncSession = Depends(get_session),
) -> BatchNameListEnvelope:
    batches = await list_batch_names(db)
    return BatchNameListEnvelope(batches=[BatchName(id=b.id, name=b.name) for b in batches])
