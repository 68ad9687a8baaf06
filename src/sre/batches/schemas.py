"""Request/response schemas for batch endpoints."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import Field, field_validator

from sre.auth.schemas import CamelModel, SignedRequest
from sre.db.models import BatchNetwork, BatchStatus


class BatchRequest(SignedRequest):
    """Create/update body. ``start_date`` is kept verbatim because it is signed as sent."""

    name: str = Field(..., min_length=1, max_length=255)
    start_date: str = Field(..., min_length=1)
    status: BatchStatus
    contract_address: str | None = Field(None, max_length=42)
    telegram_link: str = Field(..., min_length=1, max_length=255)
    bg_subdomain: str = Field(..., min_length=1, max_length=255)
    network: BatchNetwork | None = None

    @field_validator("start_date")
    @classmethod
    def start_date_is_iso(cls, v: str) -> str:
        try:
            datetime.fromisoformat(v)
        except ValueError as e:
            msg = "startDate must be an ISO 8601 date"
            raise ValueError(msg) from e
        return v

    def parsed_start_date(self) -> datetime:
        parsed = datetime.fromisoformat(self.start_date)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    def message_fields(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "start_date": self.start_date,
            "status": self.status.value,
            "contract_address": self.contract_address,
            "telegram_link": self.telegram_link,
            "bg_subdomain": self.bg_subdomain,
            "network": self.network.value if self.network else None,
        }


class BatchResponse(CamelModel):
    id: int
    name: str
    start_date: datetime
    status: BatchStatus
    contract_address: str | None = None
    telegram_link: str
    bg_subdomain: str
    network: BatchNetwork | None = None


class BatchEnvelope(CamelModel):
    batch: BatchResponse | None


class PublicBatchResponse(CamelModel):
    """Batch as listed publicly: no Telegram invite link, with member counts."""

    id: int
    name: str
    start_date: datetime
    status: BatchStatus
    contract_address: str | None = None
    bg_subdomain: str
    network: BatchNetwork | None = None
    candidate_count: int = 0
    graduate_count: int = 0


class BatchListMeta(CamelModel):
    total_row_count: int


class BatchListEnvelope(CamelModel):
    batches: list[PublicBatchResponse]
    meta: BatchListMeta


class BatchName(CamelModel):
    id: int
    name: str


class BatchNameListEnvelope(CamelModel):
    batches: list[BatchName]
