"""
Signing API client.

Wraps an ``httpx.AsyncClient`` and an eth-account ``LocalAccount``. Every
mutation builds the same typed-data document the server rebuilds, signs it
with the local key and sends ``{address, signature, ...}``. Responses are
returned unparsed so callers can inspect status codes.

Usage::

    account = Account.from_key(private_key)
    async with httpx.AsyncClient(base_url="https://api.example.com") as http:
        client = SpeedrunClient(http, account)
        await client.register()
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from eth_account.messages import encode_typed_data

from sre.eip712.messages import (
    SOCIAL_KEYS,
    challenge_submit_typed_data,
    create_batch_typed_data,
    create_note_typed_data,
    delete_build_typed_data,
    delete_note_typed_data,
    join_batch_typed_data,
    like_build_typed_data,
    register_typed_data,
    submit_build_typed_data,
    update_batch_typed_data,
    update_build_typed_data,
    update_ens_typed_data,
    update_location_typed_data,
    update_onchain_data_typed_data,
    update_socials_typed_data,
    update_user_typed_data,
)

if TYPE_CHECKING:
    import httpx
    from eth_account.signers.local import LocalAccount

    from sre.eip712.common import TypedData


def _build_body(build: dict[str, Any]) -> dict[str, Any]:
    """camelCase request body for the keyword build fields."""
    return {
        "name": build["name"],
        "desc": build.get("desc"),
        "buildType": build.get("build_type"),
        "buildCategory": build.get("build_category"),
        "demoUrl": build.get("demo_url"),
        "videoUrl": build.get("video_url"),
        "imageUrl": build.get("image_url"),
        "githubUrl": build.get("github_url"),
        "coBuilders": list(build.get("co_builders", [])),
    }


def _build_message_kwargs(build: dict[str, Any]) -> dict[str, Any]:
    return {
        "name": build["name"],
        "desc": build.get("desc"),
        "build_type": build.get("build_type"),
        "build_category": build.get("build_category"),
        "demo_url": build.get("demo_url"),
        "video_url": build.get("video_url"),
        "image_url": build.get("image_url"),
        "github_url": build.get("github_url"),
        # The server signs normalized (lowercase) addresses
        "co_builders": [a.lower() for a in build.get("co_builders", [])],
    }


class SpeedrunClient:
    """Signs and sends requests on behalf of one wallet."""

    def __init__(self, http: httpx.AsyncClient, account: LocalAccount) -> None:
        self.http = http
        self.account = account

    @property
    def address(self) -> str:
        return self.account.address.lower()

    def sign(self, typed_data: TypedData) -> str:
        """Hex signature of ``typed_data`` by the local key."""
        signed = self.account.sign_message(encode_typed_data(full_message=typed_data))
        return "0x" + signed.signature.hex().removeprefix("0x")

    def signed_body(self, typed_data: TypedData, **fields: Any) -> dict[str, Any]:
        return {"address": self.address, "signature": self.sign(typed_data), **fields}

    # --- Users ---

    async def register(self, referrer: str | None = None) -> httpx.Response:
        body = self.signed_body(register_typed_data())
        if referrer is not None:
            body["referrer"] = referrer
        return await self.http.post("/api/users/register", json=body)

    async def update_user(
        self,
        user_address: str,
        role: str,
        batch_id: int | None = None,
        batch_status: str | None = None,
    ) -> httpx.Response:
        """Admin edit of ``user_address``."""
        typed_data = update_user_typed_data(
            user_address=user_address.lower(),
            role=role,
            batch_id=batch_id,
            batch_status=batch_status,
        )
        body = self.signed_body(typed_data, role=role, batchId=batch_id, batchStatus=batch_status)
        return await self.http.put(f"/api/users/{user_address}/update", json=body)

    async def update_ens(self, user_address: str | None = None) -> httpx.Response:
        target = (user_address or self.address).lower()
        return await self.http.put(
            f"/api/users/{target}/update-ens",
            json=self.signed_body(update_ens_typed_data(target)),
        )

    async def update_onchain_data(self, user_address: str | None = None) -> httpx.Response:
        target = (user_address or self.address).lower()
        return await self.http.put(
            f"/api/users/{target}/update-onchain-data",
            json=self.signed_body(update_onchain_data_typed_data(target)),
        )

    async def update_location(self, location: str | None) -> httpx.Response:
        body = self.signed_body(update_location_typed_data(location), location=location)
        return await self.http.post("/api/users/update-location", json=body)

    async def update_socials(self, **socials: str | None) -> httpx.Response:
        """``socials`` uses the camelCase keys, e.g. ``socialGithub="alice"``."""
        unknown = set(socials) - set(SOCIAL_KEYS)
        if unknown:
            msg = f"Unknown social keys: {sorted(unknown)}"
            raise ValueError(msg)
        body = self.signed_body(update_socials_typed_data(socials), socials=socials)
        return await self.http.post("/api/users/update-socials", json=body)

    async def join_batch(self) -> httpx.Response:
        return await self.http.post("/api/users/join-batch", json=self.signed_body(join_batch_typed_data()))

    # --- Builds ---

    async def submit_build(self, **build: Any) -> httpx.Response:
        """
        Submit a build.

        Keyword fields: ``name``, ``desc``, ``build_type``, ``build_category``,
        ``demo_url``, ``video_url``, ``image_url``, ``github_url``, ``co_builders``.
        """
        typed_data = submit_build_typed_data(**_build_message_kwargs(build))
        return await self.http.post("/api/users/builds/submit", json=self.signed_body(typed_data, **_build_body(build)))

    async def update_build(self, build_id: str, **build: Any) -> httpx.Response:
        typed_data = update_build_typed_data(build_id, **_build_message_kwargs(build))
        body = self.signed_body(typed_data, build=_build_body(build))
        return await self.http.put(f"/api/users/builds/{build_id}/update", json=body)

    async def delete_build(self, build_id: str) -> httpx.Response:
        return await self.http.request(
            "DELETE",
            f"/api/users/builds/{build_id}/delete",
            json=self.signed_body(delete_build_typed_data(build_id)),
        )

    async def like_build(self, build_id: str, *, unlike: bool = False) -> httpx.Response:
        """Sign ``like`` or ``unlike``; the caller states which one the current like state calls for."""
        typed_data = like_build_typed_data(build_id, "unlike" if unlike else "like")
        return await self.http.post(f"/api/users/builds/{build_id}/like", json=self.signed_body(typed_data))

    # --- Batches ---

    async def create_batch(self, **batch: str | None) -> httpx.Response:
        """Keyword fields: ``name``, ``start_date``, ``status``, ``contract_address``,
        ``telegram_link``, ``bg_subdomain``, ``network``."""
        typed_data = create_batch_typed_data(**_batch_message_kwargs(batch))
        return await self.http.post("/api/batches/create", json=self.signed_body(typed_data, **_batch_body(batch)))

    async def update_batch(self, batch_id: int, **batch: str | None) -> httpx.Response:
        typed_data = update_batch_typed_data(batch_id, **_batch_message_kwargs(batch))
        return await self.http.put(
            f"/api/batches/{batch_id}/update",
            json=self.signed_body(typed_data, **_batch_body(batch)),
        )

    # --- Notes ---

    async def create_note(self, user_address: str, comment: str) -> httpx.Response:
        typed_data = create_note_typed_data(user_address.lower(), comment)
        return await self.http.post(
            f"/api/users/{user_address}/notes",
            json=self.signed_body(typed_data, comment=comment),
        )

    async def delete_note(self, user_address: str, note_id: int) -> httpx.Response:
        return await self.http.request(
            "DELETE",
            f"/api/users/{user_address}/notes/{note_id}",
            json=self.signed_body(delete_note_typed_data(note_id)),
        )

    # --- Challenges ---

    async def submit_challenge(self, challenge_id: str, frontend_url: str, contract_url: str) -> httpx.Response:
        typed_data = challenge_submit_typed_data(challenge_id, frontend_url, contract_url)
        body = self.signed_body(typed_data, frontendUrl=frontend_url, contractUrl=contract_url)
        return await self.http.post(f"/api/challenges/{challenge_id}/submit", json=body)


_BATCH_KEYS = {
    "name": "name",
    "start_date": "startDate",
    "status": "status",
    "contract_address": "contractAddress",
    "telegram_link": "telegramLink",
    "bg_subdomain": "bgSubdomain",
    "network": "network",
}


def _batch_message_kwargs(batch: dict[str, str | None]) -> dict[str, str | None]:
    return {key: batch.get(key) for key in _BATCH_KEYS}


def _batch_body(batch: dict[str, str | None]) -> dict[str, str | None]:
    return {wire: batch.get(key) for key, wire in _BATCH_KEYS.items()}
