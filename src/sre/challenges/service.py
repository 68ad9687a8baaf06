"""Challenge catalog reads and submissions."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlalchemy import select

from sre.db.models import Challenge, ReviewAction, User, UserChallenge
from sre.errors import NotFoundError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from sre.challenges.autograder import AutograderClient, AutogradingResult

logger = structlog.get_logger()


async def list_challenges(db: AsyncSession) -> list[Challenge]:
    result = await db.execute(
        select(Challenge).where(Challenge.disabled.is_(False)).order_by(Challenge.sort_order)
    )
    return list(result.scalars().all())


async def create_submission(
    db: AsyncSession,
    *,
    address: str,
    challenge_id: str,
    frontend_url: str,
    contract_url: str,
    signature: str,
) -> tuple[UserChallenge, Challenge]:
    """
    Record a SUBMITTED attempt.

    Raises:
        NotFoundError: Unknown user, or unknown or disabled challenge.
    """
    if await db.get(User, address) is None:
        raise NotFoundError("User not found")
    challenge = await db.get(Challenge, challenge_id)
    if challenge is None or challenge.disabled:
        raise NotFoundError("Challenge not found")

    submission = UserChallenge(
        user_address=address,
        challenge=challenge,
        frontend_url=frontend_url,
        contract_url=contract_url,
        signature=signature,
        review_action=ReviewAction.SUBMITTED,
    )
    db.add(submission)
    await db.flush()
    logger.info("challenge_submitted", address=address, challenge_id=challenge_id, submission_id=submission.id)
    return submission, challenge


async def grade_submission(
    db: AsyncSession,
    autograder: AutograderClient | None,
    submission: UserChallenge,
    challenge: Challenge,
) -> AutogradingResult | None:
    """Run the autograder when configured for this challenge and store its verdict."""
    if autograder is None or not challenge.autograding or not submission.contract_url:
        return None

    result = await autograder.grade(challenge.id, submission.contract_url)
    if result is None:
        return None

    submission.review_action = ReviewAction.ACCEPTED if result.success else ReviewAction.REJECTED
    submission.review_comment = result.feedback
    await db.flush()
    logger.info(
        "challenge_graded",
        submission_id=submission.id,
        challenge_id=challenge.id,
        review_action=submission.review_action.value,
    )
    return result
