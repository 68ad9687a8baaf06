"""Shared request types and admin session schemas."""

from __future__ import annotations

import re
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


def normalize_address(value: str) -> str:
    """Validate a hex wallet address and return it lowercased."""
    if not _ADDRESS_RE.match(value):
        msg = "not a valid Ethereum address"
        raise ValueError(msg)
    return value.lower()


EthAddress = Annotated[str, AfterValidator(normalize_address)]


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class SignedRequest(CamelModel):
    """Body shared by every wallet-signed mutation."""

    address: EthAddress
    signature: str = Field(..., min_length=1)


class SuccessResponse(CamelModel):
    success: bool = True


# ---------------------------------------------------------------------------
# Admin session
# ---------------------------------------------------------------------------


class ChallengeRequest(CamelModel):
    address: EthAddress


class ChallengeResponse(CamelModel):
    """Nonce plus the typed-data document the wallet must sign."""

    nonce: str
    typed_data: dict[str, Any]
    expires_in: int


class SessionRequest(SignedRequest):
    nonce: str = Field(..., min_length=1)


class TokenResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
