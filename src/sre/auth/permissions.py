"""Authorization predicates.

Each predicate is a single query plus a comparison. An address with no User
row has role ANONYMOUS, so every predicate answers False for it instead of
raising. The ``require_*`` helpers turn a failed predicate into a 403.
"""

from __future__ import annotations

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sre.db.models import BuildBuilder, User, UserRole
from sre.eip712.common import TypedData, verify_typed_data_signature
from sre.errors import AuthenticationError, AuthorizationError

logger = structlog.get_logger()


def role_of(user: User | None) -> UserRole:
    """Role of a possibly missing user."""
    if user is None:
        return UserRole.ANONYMOUS
    return UserRole(user.role)


async def get_user(db: AsyncSession, address: str) -> User | None:
    return await db.get(User, address.lower())


async def is_admin(db: AsyncSession, address: str) -> bool:
    return role_of(await get_user(db, address)) is UserRole.ADMIN


async def is_build_owner(db: AsyncSession, build_id: str, address: str) -> bool:
    result = await db.execute(
        select(BuildBuilder.user_address).where(
            BuildBuilder.build_id == build_id,
            BuildBuilder.is_owner.is_(True),
        )
    )
    owner = result.scalar_one_or_none()
    return owner is not None and owner.lower() == address.lower()


async def is_batch_member(db: AsyncSession, address: str, batch_id: int) -> bool:
    user = await get_user(db, address)
    return user is not None and user.batch_id == batch_id


# ---------------------------------------------------------------------------
# Gates
# ---------------------------------------------------------------------------


def require_valid_signature(typed_data: TypedData, address: str, signature: str) -> None:
    """Raise 401 unless ``address`` signed ``typed_data``."""
    if not verify_typed_data_signature(typed_data, address, signature):
        logger.info("signature_invalid", address=address, action=typed_data["message"].get("action"))
        raise AuthenticationError


async def require_admin(db: AsyncSession, address: str) -> None:
    if not await is_admin(db, address):
        logger.info("admin_required", address=address)
        raise AuthorizationError


async def require_owner_or_admin(db: AsyncSession, build_id: str, address: str) -> None:
    if await is_build_owner(db, build_id, address) or await is_admin(db, address):
        return
    logger.info("owner_or_admin_required", address=address, build_id=build_id)
    raise AuthorizationError


async def require_self_or_admin(db: AsyncSession, target_address: str, address: str) -> None:
    if target_address.lower() == address.lower() or await is_admin(db, address):
        return
    logger.info("self_or_admin_required", address=address, target=target_address)
    raise AuthorizationError
