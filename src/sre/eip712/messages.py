"""Typed-data documents for every signed operation.

Field names and order are the wire contract with wallets: reordering or
renaming a field invalidates every signature produced by existing clients.
Ids that come from the URL path are passed in by the handler, never read
from the request body.
"""

from __future__ import annotations

from collections.abc import Sequence

from sre.eip712.common import TypedData, build_typed_data

REGISTER_FIELDS = [("action", "string"), ("description", "string")]
REGISTER_MESSAGE = {
    "action": "Register",
    "description": "I would like to register as a builder in speedrunethereum.com signing this offchain message",
}

UPDATE_ENS_FIELDS = [("action", "string"), ("description", "string"), ("userAddress", "string")]
UPDATE_ENS_MESSAGE = {
    "action": "Update ENS and ENS Avatar",
    "description": (
        "I would like to update the ENS name and ENS avatar of this user in speedrunethereum.com"
        " signing this offchain message"
    ),
}

UPDATE_ONCHAIN_DATA_FIELDS = [("action", "string"), ("description", "string"), ("userAddress", "string")]
UPDATE_ONCHAIN_DATA_MESSAGE = {
    "action": "Update Onchain Data",
    "description": (
        "I would like to update the onchain data of this user in speedrunethereum.com signing this offchain message"
    ),
}

JOIN_BATCH_FIELDS = [("action", "string"), ("description", "string")]
JOIN_BATCH_MESSAGE = {
    "action": "Join Batch",
    "description": "I would like to request Telegram access for the batch program",
}

UPDATE_USER_FIELDS = [
    ("action", "string"),
    ("role", "string"),
    ("batchId", "string"),
    ("batchStatus", "string"),
    ("userAddress", "string"),
]

BUILD_FIELDS = [
    ("name", "string"),
    ("desc", "string"),
    ("buildType", "string"),
    ("buildCategory", "string"),
    ("demoUrl", "string"),
    ("videoUrl", "string"),
    ("imageUrl", "string"),
    ("githubUrl", "string"),
    ("coBuilders", "address[]"),
]
UPDATE_BUILD_FIELDS = [("buildId", "string"), *BUILD_FIELDS]
DELETE_BUILD_FIELDS = [("id", "string")]
LIKE_BUILD_FIELDS = [("action", "string"), ("buildId", "string")]

BATCH_FIELDS = [
    ("action", "string"),
    ("name", "string"),
    ("startDate", "string"),
    ("status", "string"),
    ("contractAddress", "string"),
    ("telegramLink", "string"),
    ("bgSubdomain", "string"),
    ("network", "string"),
]
UPDATE_BATCH_FIELDS = [*BATCH_FIELDS, ("batchId", "string")]

CREATE_NOTE_FIELDS = [("action", "string"), ("userAddress", "string"), ("comment", "string")]
DELETE_NOTE_FIELDS = [("action", "string"), ("noteId", "string")]

UPDATE_LOCATION_FIELDS = [("action", "string"), ("location", "string")]

SOCIAL_KEYS = (
    "socialTelegram",
    "socialX",
    "socialGithub",
    "socialInstagram",
    "socialDiscord",
    "socialEmail",
    "socialFarcaster",
)
UPDATE_SOCIALS_FIELDS = [("action", "string"), *((key, "string") for key in SOCIAL_KEYS)]

CHALLENGE_SUBMIT_FIELDS = [
    ("action", "string"),
    ("challengeId", "string"),
    ("frontendUrl", "string"),
    ("contractUrl", "string"),
]

ADMIN_SESSION_FIELDS = [("action", "string"), ("address", "string"), ("nonce", "string")]


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


def register_typed_data() -> TypedData:
    return build_typed_data(REGISTER_FIELDS, REGISTER_MESSAGE)


def update_ens_typed_data(user_address: str) -> TypedData:
    """``user_address`` is the lowercased path address being refreshed."""
    return build_typed_data(UPDATE_ENS_FIELDS, {**UPDATE_ENS_MESSAGE, "userAddress": user_address})


def update_onchain_data_typed_data(user_address: str) -> TypedData:
    return build_typed_data(UPDATE_ONCHAIN_DATA_FIELDS, {**UPDATE_ONCHAIN_DATA_MESSAGE, "userAddress": user_address})


def join_batch_typed_data() -> TypedData:
    return build_typed_data(JOIN_BATCH_FIELDS, JOIN_BATCH_MESSAGE)


def update_user_typed_data(
    *,
    user_address: str,
    role: str | None,
    batch_id: int | None,
    batch_status: str | None,
) -> TypedData:
    """Admin edit of another user. Absent optionals are signed as empty strings."""
    return build_typed_data(
        UPDATE_USER_FIELDS,
        {
            "action": "Update User",
            "role": role or "",
            "batchId": str(batch_id) if batch_id is not None else "",
            "batchStatus": batch_status or "",
            "userAddress": user_address,
        },
    )


def update_location_typed_data(location: str | None) -> TypedData:
    return build_typed_data(UPDATE_LOCATION_FIELDS, {"action": "Update Location", "location": location or ""})


def update_socials_typed_data(socials: dict[str, str | None]) -> TypedData:
    message: dict[str, str] = {"action": "Update Socials"}
    for key in SOCIAL_KEYS:
        message[key] = socials.get(key) or ""
    return build_typed_data(UPDATE_SOCIALS_FIELDS, message)


# ---------------------------------------------------------------------------
# Builds
# ---------------------------------------------------------------------------


def _build_message(
    *,
    name: str,
    desc: str | None,
    build_type: str | None,
    build_category: str | None,
    demo_url: str | None,
    video_url: str | None,
    image_url: str | None,
    github_url: str | None,
    co_builders: Sequence[str],
) -> dict[str, object]:
    return {
        "name": name,
        "desc": desc or "",
        "buildType": build_type or "",
        "buildCategory": build_category or "",
        "demoUrl": demo_url or "",
        "videoUrl": video_url or "",
        "imageUrl": image_url or "",
        "githubUrl": github_url or "",
        "coBuilders": list(co_builders),
    }


def submit_build_typed_data(**build: object) -> TypedData:
    """Typed data for a new build. Accepts the keyword fields of ``_build_message``."""
    return build_typed_data(BUILD_FIELDS, _build_message(**build))  # type: ignore[arg-type]


def update_build_typed_data(build_id: str, **build: object) -> TypedData:
    message = _build_message(**build)  # type: ignore[arg-type]
    message["buildId"] = build_id
    return build_typed_data(UPDATE_BUILD_FIELDS, message)


def delete_build_typed_data(build_id: str) -> TypedData:
    return build_typed_data(DELETE_BUILD_FIELDS, {"id": build_id})


def like_build_typed_data(build_id: str, action: str) -> TypedData:
    """``action`` is "like" or "unlike", decided by the server from current state."""
    return build_typed_data(LIKE_BUILD_FIELDS, {"action": action, "buildId": build_id})


# ---------------------------------------------------------------------------
# Batches
# ---------------------------------------------------------------------------


def batch_typed_data(
    action: str,
    fields: list[tuple[str, str]],
    extra: dict[str, str],
    *,
    name: str,
    start_date: str,
    status: str,
    contract_address: str | None,
    telegram_link: str,
    bg_subdomain: str,
    network: str | None,
) -> TypedData:
    return build_typed_data(
        fields,
        {
            "action": action,
            "name": name,
            "startDate": start_date,
            "status": status,
            "contractAddress": contract_address or "",
            "telegramLink": telegram_link,
            "bgSubdomain": bg_subdomain,
            "network": network or "",
            **extra,
        },
    )


def create_batch_typed_data(**batch: str | None) -> TypedData:
    return batch_typed_data("Create batch", BATCH_FIELDS, {}, **batch)  # type: ignore[arg-type]


def update_batch_typed_data(batch_id: int, **batch: str | None) -> TypedData:
    """Same fields as create plus the path ``batchId``."""
    extra = {"batchId": str(batch_id)}
    return batch_typed_data("Update batch", UPDATE_BATCH_FIELDS, extra, **batch)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Notes
# ---------------------------------------------------------------------------


def create_note_typed_data(user_address: str, comment: str) -> TypedData:
    return build_typed_data(
        CREATE_NOTE_FIELDS,
        {"action": "Create User Note", "userAddress": user_address, "comment": comment},
    )


def delete_note_typed_data(note_id: int) -> TypedData:
    return build_typed_data(DELETE_NOTE_FIELDS, {"action": "Delete User Note", "noteId": str(note_id)})


# ---------------------------------------------------------------------------
# Challenges and sessions
# ---------------------------------------------------------------------------


def challenge_submit_typed_data(challenge_id: str, frontend_url: str, contract_url: str) -> TypedData:
    return build_typed_data(
        CHALLENGE_SUBMIT_FIELDS,
        {
            "action": "Submit Challenge",
            "challengeId": challenge_id,
            "frontendUrl": frontend_url,
            "contractUrl": contract_url,
        },
    )


def admin_session_typed_data(address: str, nonce: str) -> TypedData:
    return build_typed_data(ADMIN_SESSION_FIELDS, {"action": "Sign In", "address": address.lower(), "nonce": nonce})
