"""Request/response schemas for challenge endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from sre.auth.schemas import CamelModel, SignedRequest
from sre.db.models import ReviewAction


class ChallengeResponse(CamelModel):
    id: str
    challenge_name: str
    description: str
    sort_order: int
    github: str | None = None
    autograding: bool = False


class ChallengeListEnvelope(CamelModel):
    challenges: list[ChallengeResponse]


class SubmitChallengeRequest(SignedRequest):
    frontend_url: str = Field(..., min_length=1, max_length=255)
    contract_url: str = Field(..., min_length=1, max_length=255)


class SubmissionResponse(CamelModel):
    id: int
    user_address: str
    challenge_id: str
    frontend_url: str | None = None
    contract_url: str | None = None
    review_action: ReviewAction | None = None
    review_comment: str | None = None
    submitted_at: datetime | None = None
    challenge: ChallengeResponse | None = None


class AutogradingResultResponse(CamelModel):
    success: bool
    feedback: str


class SubmitChallengeResponse(CamelModel):
    submission: SubmissionResponse
    auto_grading_result: AutogradingResultResponse | None = None


class SubmissionListEnvelope(CamelModel):
    challenges: list[SubmissionResponse]
