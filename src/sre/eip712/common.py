"""
EIP-712 typed-data signature verification.

Every signed payload uses the same domain separator and a single ``Message``
primary type. Uses eth-account for hashing and secp256k1 recovery; no node or
RPC access is needed.
"""

from __future__ import annotations

from typing import Any

import structlog
from eth_account import Account
from eth_account.messages import encode_typed_data

logger = structlog.get_logger()

EIP712_DOMAIN: dict[str, str] = {
    "name": "SpeedRunEthereum",
    "version": "1",
}

EIP712_DOMAIN_TYPES: list[dict[str, str]] = [
    {"name": "name", "type": "string"},
    {"name": "version", "type": "string"},
]

PRIMARY_TYPE = "Message"

TypedData = dict[str, Any]


def build_typed_data(fields: list[tuple[str, str]], message: dict[str, Any]) -> TypedData:
    """
    Assemble a full typed-data document for the ``Message`` primary type.

    Args:
        fields: Ordered ``(name, solidity_type)`` pairs. Order is part of the
            signed schema and must match the client.
        message: Field values. Keys not declared in ``fields`` are dropped.

    Returns:
        Dict accepted by ``encode_typed_data(full_message=...)``.
    """
    return {
        "types": {
            "EIP712Domain": EIP712_DOMAIN_TYPES,
            PRIMARY_TYPE: [{"name": name, "type": type_} for name, type_ in fields],
        },
        "primaryType": PRIMARY_TYPE,
        "domain": dict(EIP712_DOMAIN),
        "message": {name: message[name] for name, _ in fields},
    }


def recover_typed_data_signer(typed_data: TypedData, signature: str) -> str:
    """
    Recover the address that signed ``typed_data``.

    Raises:
        ValueError: If the document cannot be encoded or the signature
            cannot be decoded or recovered.
    """
    try:
        signable = encode_typed_data(full_message=typed_data)
        return Account.recover_message(signable, signature=signature)
    except Exception as e:
        msg = f"Signature recovery failed: {e}"
        raise ValueError(msg) from e


def verify_typed_data_signature(typed_data: TypedData, address: str, signature: str) -> bool:
    """
    Check that ``signature`` over ``typed_data`` was produced by ``address``.

    Comparison is case-insensitive. A signature that cannot be recovered counts
    as a mismatch rather than an error.
    """
    try:
        recovered = recover_typed_data_signer(typed_data, signature)
    except ValueError as e:
        logger.warning("signature_recovery_failed", address=address, error=str(e))
        return False
    return recovered.lower() == address.lower()
