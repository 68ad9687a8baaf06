"""Admin note endpoint tests."""

from __future__ import annotations

from httpx import AsyncClient

from sre.auth.jwt import create_access_token


async def _admin_token(client: AsyncClient, admin) -> str:
    challenge = (await client.post("/api/auth/challenge", json={"address": admin.address})).json()
    response = await client.post(
        "/api/auth/session",
        json={"address": admin.address, "nonce": challenge["nonce"], "signature": admin.sign(challenge["typedData"])},
    )
    assert response.status_code == 200
    return response.json()["accessToken"]


class TestCreateNote:
    async def test_admin_creates(self, admin_user, registered_alice):
        response = await admin_user.create_note(registered_alice.address, "Strong Solidity, weak on testing")
        assert response.status_code == 201
        note = response.json()["note"]
        assert note["userAddress"] == registered_alice.address
        assert note["authorAddress"] == admin_user.address
        assert note["comment"] == "Strong Solidity, weak on testing"

    async def test_non_admin_forbidden(self, registered_bob, registered_alice):
        response = await registered_bob.create_note(registered_alice.address, "hi")
        assert response.status_code == 403

    async def test_unknown_target(self, admin_user):
        response = await admin_user.create_note("0x" + "4" * 40, "hi")
        assert response.status_code == 404

    async def test_empty_comment(self, admin_user, registered_alice):
        response = await admin_user.create_note(registered_alice.address, "")
        assert response.status_code == 400


class TestListNotes:
    async def test_requires_session(self, client: AsyncClient, registered_alice):
        response = await client.get(f"/api/users/{registered_alice.address}/notes")
        assert response.status_code == 401
        assert response.json() == {"error": "Not authenticated"}

    async def test_rejects_garbage_token(self, client: AsyncClient, registered_alice):
        response = await client.get(
            f"/api/users/{registered_alice.address}/notes",
            headers={"Authorization": "Bearer not-a-jwt"},
        )
        assert response.status_code == 401

    async def test_token_of_demoted_admin(self, client: AsyncClient, registered_bob, registered_alice):
        token = create_access_token(registered_bob.address)
        response = await client.get(
            f"/api/users/{registered_alice.address}/notes",
            headers={"Authorization": f"Bearer {token}"},
        )
        assert response.status_code == 403

    async def test_lists_notes_with_author(self, client: AsyncClient, admin_user, registered_alice):
        await admin_user.create_note(registered_alice.address, "first")
        await admin_user.create_note(registered_alice.address, "second")
        token = await _admin_token(client, admin_user)

        response = await client.get(
            f"/api/users/{registered_alice.address}/notes",
            headers={"Authorization": f"Bearer {token}"},
        )
        assert response.status_code == 200
        notes = response.json()["notes"]
        assert [n["comment"] for n in notes] == ["second", "first"]
        assert notes[0]["author"]["userAddress"] == admin_user.address


class TestDeleteNote:
    async def test_admin_deletes(self, client: AsyncClient, admin_user, registered_alice):
        note_id = (await admin_user.create_note(registered_alice.address, "temp")).json()["note"]["id"]
        response = await admin_user.delete_note(registered_alice.address, note_id)
        assert response.status_code == 200
        assert response.json() == {"success": True}

        token = await _admin_token(client, admin_user)
        listed = await client.get(
            f"/api/users/{registered_alice.address}/notes",
            headers={"Authorization": f"Bearer {token}"},
        )
        assert listed.json() == {"notes": []}

    async def test_note_of_other_user(self, admin_user, registered_alice, registered_bob):
        note_id = (await admin_user.create_note(registered_alice.address, "temp")).json()["note"]["id"]
        response = await admin_user.delete_note(registered_bob.address, note_id)
        assert response.status_code == 404
        assert response.json() == {"error": "Note not found"}

    async def test_non_admin_forbidden(self, admin_user, registered_alice, registered_bob):
        note_id = (await admin_user.create_note(registered_alice.address, "temp")).json()["note"]["id"]
        response = await registered_bob.delete_note(registered_alice.address, note_id)
        assert response.status_code == 403
