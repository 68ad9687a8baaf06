"""FastAPI authentication dependencies."""

from __future__ import annotations

import jwt
from fastapi import Depends, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from sre.auth.jwt import verify_token
from sre.auth.permissions import require_admin
from sre.database import get_session
from sre.errors import AuthenticationError

_bearer = HTTPBearer(auto_error=False)


async def get_admin_address(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
    db: AsyncSession = Depends(get_session),
) -> str:
    """
    Extract and verify the admin session token, return the admin address.

    The role is re-checked against the database so a demoted admin loses
    access before the token expires.
    """
    if credentials is None:
        raise AuthenticationError("Not authenticated")
    try:
        payload = verify_token(credentials.credentials, expected_type="access")
    except jwt.InvalidTokenError as e:
        raise AuthenticationError(str(e)) from e

    address = str(payload["sub"])
    await require_admin(db, address)
    return address
