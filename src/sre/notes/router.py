"""Admin notes router: /api/users/{address}/notes endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from sre.auth.dependencies import get_admin_address
from sre.auth.permissions import require_admin, require_valid_signature
from sre.auth.schemas import SignedRequest, SuccessResponse
from sre.database import get_session
from sre.eip712.messages import create_note_typed_data, delete_note_typed_data
from sre.notes.schemas import (
    CreateNoteRequest,
    NoteAuthor,
    NoteEnvelope,
    NoteListEnvelope,
    NoteResponse,
)
from sre.notes.service import create_note, delete_note, list_notes

router = APIRouter(prefix="/api/users", tags=["Notes"])


@router.get("/{address}/notes", response_model=NoteListEnvelope)
async def get_notes(
    address: str,
    _admin: str = Depends(get_admin_address),
    db: AsyncSession = Depends(get_session),
) -> NoteListEnvelope:
    """Admin session required."""
    notes = []
    for note, author in await list_notes(db, address):
        response = NoteResponse.model_validate(note)
        if author is not None:
            response.author = NoteAuthor.model_validate(author)
        notes.append(response)
    return NoteListEnvelope(notes=notes)


@router.post("/{address}/notes", response_model=NoteEnvelope, status_code=201)
async def create_note_endpoint(
    address: str,
    body: CreateNoteRequest,
    db: AsyncSession = Depends(get_session),
) -> NoteEnvelope:
    target = address.lower()
    require_valid_signature(create_note_typed_data(target, body.comment), body.address, body.signature)
    await require_admin(db, body.address)

    note = await create_note(db, target, body.address, body.comment)
    await db.commit()
    return NoteEnvelope(note=NoteResponse.model_validate(note))


@router.delete("/{address}/notes/{note_id}", response_model=SuccessResponse)
async def delete_note_endpoint(
    address: str,
    note_id: int,
    body: SignedRequest,
    db: AsyncSession = Depends(get_session),
) -> SuccessResponse:
    require_valid_signature(delete_note_typed_data(note_id), body.address, body.signature)
    await require_admin(db, body.address)

    await delete_note(db, address.lower(), note_id)
    await db.commit()
    return SuccessResponse()
