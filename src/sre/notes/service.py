"""Admin note business logic."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlalchemy import select
from sqlalchemy.orm import aliased

from sre.db.models import User, UserNote
from sre.errors import NotFoundError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


async def list_notes(db: AsyncSession, address: str) -> list[tuple[UserNote, User | None]]:
    """Notes on a user, newest first, each paired with its author."""
    author = aliased(User)
    result = await db.execute(
        select(UserNote, author)
        .outerjoin(author, author.user_address == UserNote.author_address)
        .where(UserNote.user_address == address.lower())
        .order_by(UserNote.created_at.desc(), UserNote.id.desc())
    )
    return [(note, note_author) for note, note_author in result.all()]


async def create_note(db: AsyncSession, target_address: str, author_address: str, comment: str) -> UserNote:
    if await db.get(User, target_address) is None:
        raise NotFoundError("User not found")
    note = UserNote(user_address=target_address, author_address=author_address, comment=comment)
    db.add(note)
    await db.flush()
    logger.info("user_note_created", note_id=note.id, address=target_address, author=author_address)
    return note


async def delete_note(db: AsyncSession, target_address: str, note_id: int) -> None:
    """
    Delete a note attached to ``target_address``.

    Raises:
        NotFoundError: If the note does not exist or belongs to another user.
    """
    note = await db.get(UserNote, note_id)
    if note is None or note.user_address != target_address:
        raise NotFoundError("Note not found")
    await db.delete(note)
    await db.flush()
    logger.info("user_note_deleted", note_id=note_id, address=target_address)
