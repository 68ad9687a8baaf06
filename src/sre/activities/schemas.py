"""Response schemas for the activity feed."""

from __future__ import annotations

import enum
from datetime import datetime

from sre.auth.schemas import CamelModel
from sre.db.models import ReviewAction


class ActivityType(str, enum.Enum):
    ALL = "ALL"
    CHALLENGE_SUBMISSIONS = "CHALLENGE_SUBMISSIONS"
    USER_CREATE = "USER_CREATE"


class ActivityDetails(CamelModel):
    """Submission fields; empty for registrations."""

    challenge_id: str | None = None
    challenge_name: str | None = None
    review_action: ReviewAction | None = None
    frontend_url: str | None = None
    contract_url: str | None = None


class ActivityItem(CamelModel):
    id: str
    type: ActivityType
    user_address: str
    user_ens: str | None = None
    timestamp: datetime
    details: ActivityDetails


class ActivityMeta(CamelModel):
    total_row_count: int


class ActivityEnvelope(CamelModel):
    data: list[ActivityItem]
    meta: ActivityMeta
