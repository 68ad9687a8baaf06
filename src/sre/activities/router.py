"""Activity feed router: GET /api/activities."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from sre.activities.schemas import ActivityEnvelope, ActivityMeta, ActivityType
from sre.activities.service import list_activities
from sre.database import get_session

router = APIRouter(prefix="/api/activities", tags=["Activities"])


@router.get("", response_model=ActivityEnvelope)
async def get_activities(
    start: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=100),
    type: ActivityType = ActivityType.ALL,  # noqa: A002
    db: AsyncSession = Depends(get_session),
) -> ActivityEnvelope:
    """Recent submissions and registrations, newest first."""
    items, total = await list_activities(db, start=start, size=size, activity_type=type)
    return ActivityEnvelope(data=items, meta=ActivityMeta(total_row_count=total))
