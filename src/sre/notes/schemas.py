"""Request/response schemas for admin user notes."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from sre.auth.schemas import CamelModel, SignedRequest


class CreateNoteRequest(SignedRequest):
    comment: str = Field(..., min_length=1, max_length=5000)


class NoteAuthor(CamelModel):
    user_address: str
    ens: str | None = None
    ens_avatar: str | None = None


class NoteResponse(CamelModel):
    id: int
    user_address: str
    author_address: str
    comment: str
    created_at: datetime | None = None
    author: NoteAuthor | None = None


class NoteEnvelope(CamelModel):
    note: NoteResponse


class NoteListEnvelope(CamelModel):
    notes: list[NoteResponse]
