"""
Autograder HTTP client.

The grading server receives the deployed contract location and answers with
``{"success": bool, "feedback": str}``.
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlparse

import httpx
import structlog

logger = structlog.get_logger()


@dataclass(frozen=True)
class AutogradingResult:
    success: bool
    feedback: str


def contract_location(contract_url: str) -> tuple[str, str]:
    """
    Split a block explorer URL into ``(block_explorer_host, contract_address)``.

    ``https://sepolia.etherscan.io/address/0xabc`` -> ``("sepolia.etherscan.io", "0xabc")``
    """
    parsed = urlparse(contract_url)
    address = parsed.path.replace("/address/", "", 1).strip("/")
    return parsed.netloc, address


class AutograderClient:
    """Posts submissions to the grading server. Lives on ``app.state.autograder``."""

    def __init__(self, server_url: str, timeout: float = 30.0) -> None:
        self.server_url = server_url
        self._client = httpx.AsyncClient(timeout=timeout)

    async def grade(self, challenge_id: str, contract_url: str) -> AutogradingResult | None:
        """
        Grade a submission.

        Returns ``None`` when the server cannot be reached, so the submission
        stays SUBMITTED for manual review. A non-2xx answer is a failed grade.
        """
        block_explorer, address = contract_location(contract_url)
        try:
            response = await self._client.post(
                self.server_url,
                json={"challenge": challenge_id, "address": address, "blockExplorer": block_explorer},
            )
        except httpx.HTTPError:
            logger.exception("autograder_unreachable", challenge_id=challenge_id, server=self.server_url)
            return None

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if response.is_error:
            feedback = data.get("error") or f"Autograder error: {response.status_code} {response.reason_phrase}"
            logger.warning("autograder_error", challenge_id=challenge_id, status=response.status_code)
            return AutogradingResult(success=False, feedback=feedback)

        return AutogradingResult(success=bool(data.get("success")), feedback=str(data.get("feedback", "")))

    async def close(self) -> None:
        await self._client.aclose()
