"""Challenge router: catalog, submissions and per-user progress."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from sre.auth.permissions import require_valid_signature
from sre.challenges.latest import find_latest_submissions
from sre.challenges.schemas import (
    AutogradingResultResponse,
    ChallengeListEnvelope,
    ChallengeResponse,
    SubmissionListEnvelope,
    SubmissionResponse,
    SubmitChallengeRequest,
    SubmitChallengeResponse,
)
from sre.challenges.service import create_submission, grade_submission, list_challenges
from sre.database import get_session
from sre.eip712.messages import challenge_submit_typed_data

router = APIRouter(prefix="/api", tags=["Challenges"])


@router.get("/challenges", response_model=ChallengeListEnvelope)
async def get_challenges(
    db: AsyncSession = Depends(get_session),
) -> ChallengeListEnvelope:
    challenges = await list_challenges(db)
    return ChallengeListEnvelope(challenges=[ChallengeResponse.model_validate(c) for c in challenges])


@router.post("/challenges/{challenge_id}/submit", response_model=SubmitChallengeResponse)
async def submit_challenge(
    challenge_id: str,
    body: SubmitChallengeRequest,
    request: Request,
    db: AsyncSession = Depends(get_session),
) -> SubmitChallengeResponse:
    """
    Record a signed submission, then grade it if an autograder is configured.

    The SUBMITTED row is committed before grading so a grader outage never
    loses the submission.
    """
    typed_data = challenge_submit_typed_data(challenge_id, body.frontend_url, body.contract_url)
    require_valid_signature(typed_data, body.address, body.signature)

    submission, challenge = await create_submission(
        db,
        address=body.address,
        challenge_id=challenge_id,
        frontend_url=body.frontend_url,
        contract_url=body.contract_url,
        signature=body.signature,
    )
    await db.commit()

    result = await grade_submission(db, getattr(request.app.state, "autograder", None), submission, challenge)
    if result is not None:
        await db.commit()

    return SubmitChallengeResponse(
        submission=SubmissionResponse.model_validate(submission),
        auto_grading_result=AutogradingResultResponse(success=result.success, feedback=result.feedback)
        if result
        else None,
    )


@router.get("/user-challenges/{address}", response_model=SubmissionListEnvelope)
async def get_user_challenges(
    address: str,
    db: AsyncSession = Depends(get_session),
) -> SubmissionListEnvelope:
    """Latest submission per challenge for a user."""
    submissions = await find_latest_submissions(db, address)
    return SubmissionListEnvelope(challenges=[SubmissionResponse.model_validate(s) for s in submissions])
