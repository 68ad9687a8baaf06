"""Autograder client tests against a mocked grading server."""

from __future__ import annotations

import json

import httpx

from sre.challenges.autograder import AutograderClient, contract_location

CONTRACT_URL = "https://sepolia.etherscan.io/address/0x1234567890abcdef1234567890abcdef12345678"


def _client(handler) -> AutograderClient:
    client = AutograderClient("https://grader.test/grade")
    client._client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return client


class TestContractLocation:
    def test_splits_explorer_and_address(self):
        assert contract_location(CONTRACT_URL) == (
            "sepolia.etherscan.io",
            "0x1234567890abcdef1234567890abcdef12345678",
        )

    def test_trailing_slash(self):
        assert contract_location("https://optimistic.etherscan.io/address/0xabc/") == (
            "optimistic.etherscan.io",
            "0xabc",
        )


class TestGrade:
    async def test_success(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update(json.loads(request.content))
            return httpx.Response(200, json={"success": True, "feedback": "All tests passed"})

        result = await _client(handler).grade("token-vendor", CONTRACT_URL)
        assert result is not None
        assert result.success is True
        assert result.feedback == "All tests passed"
        assert seen == {
            "challenge": "token-vendor",
            "address": "0x1234567890abcdef1234567890abcdef12345678",
            "blockExplorer": "sepolia.etherscan.io",
        }

    async def test_failed_grade(self):
        client = _client(lambda _: httpx.Response(200, json={"success": False, "feedback": "buy() reverts"}))
        result = await client.grade(
            "token-vendor", CONTRACT_URL
        )
        assert result is not None
        assert result.success is False
        assert result.feedback == "buy() reverts"

    async def test_error_status_is_a_rejection(self):
        result = await _client(lambda _: httpx.Response(400, json={"error": "Contract not verified"})).grade(
            "token-vendor", CONTRACT_URL
        )
        assert result is not None
        assert result.success is False
        assert result.feedback == "Contract not verified"

    async def test_error_status_without_body(self):
        result = await _client(lambda _: httpx.Response(503, text="down")).grade("token-vendor", CONTRACT_URL)
        assert result is not None
        assert result.success is False
        assert "503" in result.feedback

    async def test_unreachable_returns_none(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        assert await _client(handler).grade("token-vendor", CONTRACT_URL) is None
