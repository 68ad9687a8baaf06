"""Admin session router: all /api/auth/* endpoints."""

from __future__ import annotations

import secrets

import structlog
from fastapi import APIRouter, Depends
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from sre.auth.jwt import create_access_token
from sre.auth.permissions import require_admin, require_valid_signature
from sre.auth.schemas import ChallengeRequest, ChallengeResponse, SessionRequest, TokenResponse
from sre.config import get_settings
from sre.database import get_session
from sre.eip712.messages import admin_session_typed_data
from sre.errors import ValidationError
from sre.redis_client import get_redis

logger = structlog.get_logger()

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


def _nonce_key(address: str) -> str:
    return f"auth:nonce:{address}"


@router.post("/challenge", response_model=ChallengeResponse)
async def challenge(
    body: ChallengeRequest,
    redis: Redis = Depends(get_redis),  # type: ignore[assignment]
) -> ChallengeResponse:
    """Issue a one-time nonce for an admin sign-in."""
    settings = get_settings()
    nonce = secrets.token_hex(16)

    await redis.set(_nonce_key(body.address), nonce, ex=settings.session_challenge_expire_seconds)

    return ChallengeResponse(
        nonce=nonce,
        typed_data=admin_session_typed_data(body.address, nonce),
        expires_in=settings.session_challenge_expire_seconds,
    )


@router.post("/session", response_model=TokenResponse)
async def session(
    body: SessionRequest,
    redis: Redis = Depends(get_redis),  # type: ignore[assignment]
    db: AsyncSession = Depends(get_session),
) -> TokenResponse:
    """Exchange a signed nonce for an admin bearer token."""
    stored = await redis.get(_nonce_key(body.address))
    if stored is None:
        raise ValidationError("Challenge expired or not found")
    if stored != body.nonce:
        raise ValidationError("Invalid nonce")

    # One-time use, consumed before the signature is checked
    await redis.delete(_nonce_key(body.address))

    require_valid_signature(admin_session_typed_data(body.address, body.nonce), body.address, body.signature)
    await require_admin(db, body.address)

    settings = get_settings()
    logger.info("admin_session_started", address=body.address)
    return TokenResponse(
        access_token=create_access_token(body.address),
        expires_in=settings.jwt_access_token_expire_minutes * 60,
    )
