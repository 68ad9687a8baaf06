"""Batch endpoint tests."""

from __future__ import annotations

from datetime import datetime, timezone

from conftest import insert_batch, insert_user
from httpx import AsyncClient
from sqlalchemy import func, select

from sre.db.models import Batch, BatchStatus, BatchUserStatus
from sre.eip712.messages import create_batch_typed_data, update_batch_typed_data

BATCH = {
    "name": "Batch 5",
    "start_date": "2026-03-01T00:00:00+00:00",
    "status": "open",
    "telegram_link": "https://t.me/+batch5",
    "bg_subdomain": "batch5",
    "network": "optimism",
}


async def _batch_count(db_session) -> int:
    return await db_session.scalar(select(func.count()).select_from(Batch))


class TestCreateBatch:
    async def test_admin_creates(self, admin_user):
        response = await admin_user.create_batch(**BATCH)
        assert response.status_code == 200
        batch = response.json()["batch"]
        assert batch["name"] == "Batch 5"
        assert batch["status"] == "open"
        assert batch["bgSubdomain"] == "batch5"
        assert batch["network"] == "optimism"
        assert batch["contractAddress"] is None

    async def test_duplicate_name_conflicts(self, admin_user, db_session):
        await admin_user.create_batch(**BATCH)
        response = await admin_user.create_batch(**{**BATCH, "name": "batch 5", "bg_subdomain": "other"})
        assert response.status_code == 409
        assert response.json() == {"error": "Batch with this name or website url already exists"}
        assert await _batch_count(db_session) == 1

    async def test_duplicate_subdomain_conflicts(self, admin_user, db_session):
        await admin_user.create_batch(**BATCH)
        response = await admin_user.create_batch(**{**BATCH, "name": "Batch 6", "bg_subdomain": "BATCH5"})
        assert response.status_code == 409
        assert await _batch_count(db_session) == 1

    async def test_non_admin_forbidden(self, registered_alice, db_session):
        response = await registered_alice.create_batch(**BATCH)
        assert response.status_code == 403
        assert await _batch_count(db_session) == 0

    async def test_anonymous_forbidden(self, alice):
        response = await alice.create_batch(**BATCH)
        assert response.status_code == 403

    async def test_invalid_status(self, admin_user):
        response = await admin_user.create_batch(**{**BATCH, "status": "paused"})
        assert response.status_code == 400


class TestUpdateBatch:
    async def test_admin_updates(self, admin_user):
        batch_id = (await admin_user.create_batch(**BATCH)).json()["batch"]["id"]
        response = await admin_user.update_batch(batch_id, **{**BATCH, "status": "closed"})
        assert response.status_code == 200
        assert response.json()["batch"]["status"] == "closed"

    async def test_name_taken_by_other_batch(self, admin_user, db_session):
        await insert_batch(db_session, "Batch 4")
        batch_id = (await admin_user.create_batch(**BATCH)).json()["batch"]["id"]
        response = await admin_user.update_batch(batch_id, **{**BATCH, "name": "Batch 4"})
        assert response.status_code == 409

    async def test_unknown_batch(self, admin_user):
        response = await admin_user.update_batch(999, **BATCH)
        assert response.status_code == 404
        assert response.json() == {"error": "Batch not found"}

    async def test_non_admin_forbidden(self, admin_user, registered_alice):
        batch_id = (await admin_user.create_batch(**BATCH)).json()["batch"]["id"]
        response = await registered_alice.update_batch(batch_id, **BATCH)
        assert response.status_code == 403

    async def test_create_signature_not_valid_for_update(self, client: AsyncClient, admin_user):
        batch_id = (await admin_user.create_batch(**BATCH)).json()["batch"]["id"]
        body = admin_user.signed_body(
            create_batch_typed_data(**{**BATCH, "contract_address": None}),
            name=BATCH["name"],
            startDate=BATCH["start_date"],
            status=BATCH["status"],
            telegramLink=BATCH["telegram_link"],
            bgSubdomain=BATCH["bg_subdomain"],
            network=BATCH["network"],
        )
        response = await client.put(f"/api/batches/{batch_id}/update", json=body)
        assert response.status_code == 401

    async def test_signature_bound_to_batch_id(self, client: AsyncClient, admin_user, db_session):
        """An update signed for one batch does not verify against another batch id."""
        first = (await admin_user.create_batch(**BATCH)).json()["batch"]["id"]
        second = (await admin_user.create_batch(**{**BATCH, "name": "Batch 6", "bg_subdomain": "batch6"})).json()[
            "batch"
        ]["id"]
        renamed = {**BATCH, "name": "Renamed", "contract_address": None}
        body = admin_user.signed_body(
            update_batch_typed_data(first, **renamed),
            name="Renamed",
            startDate=BATCH["start_date"],
            status=BATCH["status"],
            telegramLink=BATCH["telegram_link"],
            bgSubdomain=BATCH["bg_subdomain"],
            network=BATCH["network"],
        )

        response = await client.put(f"/api/batches/{second}/update", json=body)
        assert response.status_code == 401
        assert await db_session.scalar(select(Batch.name).where(Batch.id == second)) == "Batch 6"

        response = await client.put(f"/api/batches/{first}/update", json=body)
        assert response.status_code == 200
        assert response.json()["batch"]["name"] == "Renamed"


class TestBatchReads:
    async def test_list_with_counts(self, client: AsyncClient, db_session):
        older = await insert_batch(db_session, "Batch 1", start_date=datetime(2025, 1, 1, tzinfo=timezone.utc))
        newer = await insert_batch(db_session, "Batch 2", start_date=datetime(2025, 6, 1, tzinfo=timezone.utc))
        await insert_user(db_session, "0x" + "1" * 40, batch_id=older.id, batch_status=BatchUserStatus.GRADUATE)
        await insert_user(db_session, "0x" + "2" * 40, batch_id=older.id, batch_status=BatchUserStatus.CANDIDATE)
        await insert_user(db_session, "0x" + "3" * 40, batch_id=older.id, batch_status=BatchUserStatus.GRADUATE)

        response = await client.get("/api/batches")
        assert response.status_code == 200
        data = response.json()
        assert data["meta"] == {"totalRowCount": 2}
        assert [b["id"] for b in data["batches"]] == [newer.id, older.id]
        assert data["batches"][1]["graduateCount"] == 2
        assert data["batches"][1]["candidateCount"] == 1
        assert "telegramLink" not in data["batches"][0]

    async def test_list_paginated_and_filtered(self, client: AsyncClient, db_session):
        for i in range(3):
            await insert_batch(db_session, f"Batch {i}", start_date=datetime(2025, i + 1, 1, tzinfo=timezone.utc))
        await insert_batch(db_session, "Summer Cohort", start_date=datetime(2024, 1, 1, tzinfo=timezone.utc))

        page = (await client.get("/api/batches", params={"start": 1, "size": 2})).json()
        assert page["meta"]["totalRowCount"] == 4
        assert [b["name"] for b in page["batches"]] == ["Batch 1", "Batch 0"]

        filtered = (await client.get("/api/batches", params={"filter": "summer"})).json()
        assert filtered["meta"]["totalRowCount"] == 1
        assert filtered["batches"][0]["name"] == "Summer Cohort"

    async def test_latest_open(self, client: AsyncClient, db_session):
        await insert_batch(db_session, "Batch 1", start_date=datetime(2025, 1, 1, tzinfo=timezone.utc))
        await insert_batch(
            db_session, "Batch 2", status=BatchStatus.CLOSED, start_date=datetime(2025, 6, 1, tzinfo=timezone.utc)
        )
        response = await client.get("/api/batches/latest-open")
        assert response.status_code == 200
        assert response.json()["batch"]["name"] == "Batch 1"

    async def test_latest_open_none(self, client: AsyncClient):
        response = await client.get("/api/batches/latest-open")
        assert response.json() == {"batch": None}

    async def test_name_list(self, client: AsyncClient, db_session):
        first = await insert_batch(db_session, "Batch 1", start_date=datetime(2025, 1, 1, tzinfo=timezone.utc))
        second = await insert_batch(db_session, "Batch 2", start_date=datetime(2025, 6, 1, tzinfo=timezone.utc))
        response = await client.get("/api/batches/name-list")
        assert response.json() == {
            "batches": [{"id": second.id, "name": "Batch 2"}, {"id": first.id, "name": "Batch 1"}]
        }
