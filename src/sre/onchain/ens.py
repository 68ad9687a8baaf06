"""ENS reverse resolution over a mainnet RPC."""

from __future__ import annotations

from dataclasses import dataclass

import structlog
from web3 import AsyncHTTPProvider, AsyncWeb3

logger = structlog.get_logger()


@dataclass(frozen=True)
class EnsProfile:
    name: str | None
    avatar: str | None


class EnsClient:
    """Resolves primary ENS names and avatars. Lives on ``app.state.ens``."""

    def __init__(self, rpc_url: str) -> None:
        self._w3 = AsyncWeb3(AsyncHTTPProvider(rpc_url))

    async def lookup(self, address: str) -> EnsProfile:
        """
        Reverse-resolve ``address`` and fetch the avatar text record.

        Raises:
            Exception: Whatever the provider raises on RPC failure; callers
                map it to a 500.
        """
        checksum = AsyncWeb3.to_checksum_address(address)
        name = await self._w3.ens.name(checksum)  # type: ignore[union-attr]
        if not name:
            return EnsProfile(name=None, avatar=None)
        avatar = await self._w3.ens.get_text(name, "avatar")  # type: ignore[union-attr]
        logger.debug("ens_resolved", address=address, ens=name)
        return EnsProfile(name=name, avatar=avatar or None)
