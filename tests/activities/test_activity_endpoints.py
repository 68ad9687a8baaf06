"""Activity feed tests."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest_asyncio
from conftest import insert_user
from httpx import AsyncClient

from sre.db.models import ReviewAction, UserChallenge

ALICE = "0x" + "a" * 40
BOB = "0x" + "b" * 40


def _day(day: int) -> datetime:
    return datetime(2026, 1, day, tzinfo=timezone.utc)


async def _submit(db, challenge_id: str, action: ReviewAction, when: datetime) -> int:
    submission = UserChallenge(
        user_address=ALICE,
        challenge_id=challenge_id,
        frontend_url="https://alice-nft.vercel.app",
        contract_url="https://sepolia.etherscan.io/address/0x0000000000000000000000000000000000000001",
        review_action=action,
        submitted_at=when,
    )
    db.add(submission)
    await db.commit()
    return submission.id


@pytest_asyncio.fixture
async def feed(db_session) -> dict[str, int]:
    await insert_user(db_session, ALICE, created_at=_day(1), ens="alice.eth")
    await insert_user(db_session, BOB, created_at=_day(3))
    accepted = await _submit(db_session, "simple-nft-example", ReviewAction.ACCEPTED, _day(2))
    pending = await _submit(db_session, "token-vendor", ReviewAction.SUBMITTED, _day(4))
    return {"accepted": accepted, "pending": pending}


class TestActivities:
    async def test_all_merged_newest_first(self, client: AsyncClient, feed):
        response = await client.get("/api/activities")
        assert response.status_code == 200
        body = response.json()
        assert [item["id"] for item in body["data"]] == [
            f"uc_{feed['pending']}",
            f"u_{BOB}",
            f"uc_{feed['accepted']}",
            f"u_{ALICE}",
        ]
        assert body["meta"] == {"totalRowCount": 4}

    async def test_submission_details(self, client: AsyncClient, feed):
        response = await client.get("/api/activities", params={"type": "CHALLENGE_SUBMISSIONS"})
        data = response.json()["data"]
        assert [item["type"] for item in data] == ["CHALLENGE_SUBMISSIONS"] * 2
        latest = data[0]
        assert latest["userAddress"] == ALICE
        assert latest["userEns"] == "alice.eth"
        assert latest["details"] == {
            "challengeId": "token-vendor",
            "challengeName": "Token Vendor",
            "reviewAction": "SUBMITTED",
            "frontendUrl": "https://alice-nft.vercel.app",
            "contractUrl": "https://sepolia.etherscan.io/address/0x0000000000000000000000000000000000000001",
        }
        assert response.json()["meta"]["totalRowCount"] == 2

    async def test_registrations_only(self, client: AsyncClient, feed):
        response = await client.get("/api/activities", params={"type": "USER_CREATE"})
        data = response.json()["data"]
        assert [item["userAddress"] for item in data] == [BOB, ALICE]
        assert data[0]["details"]["challengeId"] is None
        assert data[0]["timestamp"].startswith("2026-01-03T00:00:00")

    async def test_paging(self, client: AsyncClient, feed):
        response = await client.get("/api/activities", params={"start": 1, "size": 2})
        assert [item["id"] for item in response.json()["data"]] == [f"u_{BOB}", f"uc_{feed['accepted']}"]

    async def test_empty_feed(self, client: AsyncClient):
        response = await client.get("/api/activities")
        assert response.json() == {"data": [], "meta": {"totalRowCount": 0}}

    async def test_unknown_type(self, client: AsyncClient):
        response = await client.get("/api/activities", params={"type": "BUILD_LIKE"})
        assert response.status_code == 400
