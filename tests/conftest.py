"""Shared test fixtures.

Each test gets a fresh app wired to an in-memory SQLite database, an
in-memory Redis stand-in, and fake ENS/autograder clients on ``app.state``.
Wallets are throwaway eth-account keys, so every signature is real.
"""

from __future__ import annotations

import time
from collections.abc import AsyncGenerator
from datetime import datetime, timezone
from typing import Any

import pytest
import pytest_asyncio
from eth_account import Account
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.pool import StaticPool

from sre.challenges.autograder import AutogradingResult
from sre.challenges.catalog import seed_challenges
from sre.client import SpeedrunClient
from sre.config import Settings
from sre.database import Database
from sre.db.base import Base
from sre.db.models import Batch, BatchStatus, ReviewAction, User, UserChallenge, UserRole
from sre.main import create_app
from sre.onchain.ens import EnsProfile


class FakePipeline:
    def __init__(self, redis: FakeRedis) -> None:
        self._redis = redis
        self._ops: list[tuple[str, tuple[Any, ...]]] = []

    def incr(self, key: str) -> FakePipeline:
        self._ops.append(("incr", (key,)))
        return self

    def expire(self, key: str, seconds: int) -> FakePipeline:
        self._ops.append(("expire", (key, seconds)))
        return self

    async def execute(self) -> list[Any]:
        results = []
        for name, args in self._ops:
            results.append(await getattr(self._redis, name)(*args))
        self._ops = []
        return results


class FakeRedis:
    """Dict-backed subset of ``redis.asyncio.Redis`` used by the app."""

    def __init__(self) -> None:
        self.store: dict[str, Any] = {}
        self.expiry: dict[str, float] = {}

    def _alive(self, key: str) -> bool:
        deadline = self.expiry.get(key)
        if deadline is not None and deadline <= time.monotonic():
            self.store.pop(key, None)
            self.expiry.pop(key, None)
        return key in self.store

    async def get(self, key: str) -> Any:
        return self.store.get(key) if self._alive(key) else None

    async def set(self, key: str, value: Any, ex: int | None = None) -> bool:
        self.store[key] = value
        if ex is not None:
            self.expiry[key] = time.monotonic() + ex
        return True

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
            self.expiry.pop(key, None)
        return removed

    async def incr(self, key: str) -> int:
        value = int(self.store.get(key, 0)) + 1 if self._alive(key) else 1
        self.store[key] = value
        return value

    async def expire(self, key: str, seconds: int) -> bool:
        self.expiry[key] = time.monotonic() + seconds
        return True

    async def ping(self) -> bool:
        return True

    def pipeline(self) -> FakePipeline:
        return FakePipeline(self)

    async def aclose(self) -> None:
        pass


class FakeEns:
    """Returns a canned profile; set ``profile`` or ``error`` per test."""

    def __init__(self) -> None:
        self.profile = EnsProfile(name=None, avatar=None)
        self.error: Exception | None = None
        self.calls: list[str] = []

    async def lookup(self, address: str) -> EnsProfile:
        self.calls.append(address)
        if self.error is not None:
            raise self.error
        return self.profile


class FakeAutograder:
    """Returns ``result`` for every grade; ``None`` simulates an unreachable server."""

    def __init__(self) -> None:
        self.result: AutogradingResult | None = AutogradingResult(success=True, feedback="All tests passed")
        self.calls: list[tuple[str, str]] = []

    async def grade(self, challenge_id: str, contract_url: str) -> AutogradingResult | None:
        self.calls.append((challenge_id, contract_url))
        return self.result

    async def close(self) -> None:
        pass


# ---------------------------------------------------------------------------
# App and infrastructure
# ---------------------------------------------------------------------------


@pytest.fixture
def settings() -> Settings:
    return Settings(
        environment="test",
        log_format="console",
        log_level="WARNING",
        rate_limit_requests=10_000,
        _env_file=None,  # type: ignore[call-arg]
    )


@pytest_asyncio.fixture
async def database() -> AsyncGenerator[Database, None]:
    """In-memory database shared by every session through a single connection."""
    db = Database("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    async with db.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async with db.session_factory() as session:
        await seed_challenges(session)
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def db_session(database: Database) -> AsyncGenerator[AsyncSession, None]:
    """Direct session for arranging data and asserting on it."""
    async with database.session_factory() as session:
        yield session


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def fake_ens() -> FakeEns:
    return FakeEns()


@pytest.fixture
def fake_autograder() -> FakeAutograder:
    return FakeAutograder()


@pytest.fixture
def app(settings, database, fake_redis, fake_ens, fake_autograder):
    """App with test handles on ``app.state``. The lifespan is not run."""
    application = create_app(settings)
    application.state.db = database
    application.state.redis = fake_redis
    application.state.ens = fake_ens
    application.state.autograder = fake_autograder
    return application


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ---------------------------------------------------------------------------
# Wallets
# ---------------------------------------------------------------------------


@pytest.fixture
def wallet(client):
    """Factory for signing clients backed by fresh throwaway keys."""

    def _make() -> SpeedrunClient:
        return SpeedrunClient(client, Account.create())

    return _make


@pytest.fixture
def alice(wallet) -> SpeedrunClient:
    return wallet()


@pytest.fixture
def bob(wallet) -> SpeedrunClient:
    return wallet()


@pytest.fixture
def admin(wallet) -> SpeedrunClient:
    return wallet()


# ---------------------------------------------------------------------------
# Data helpers
# ---------------------------------------------------------------------------


async def insert_user(db: AsyncSession, address: str, role: UserRole = UserRole.REGISTERED, **fields: Any) -> User:
    user = User(user_address=address.lower(), role=role, **fields)
    db.add(user)
    await db.commit()
    return user


async def insert_submission(
    db: AsyncSession,
    address: str,
    challenge_id: str = "simple-nft-example",
    review_action: ReviewAction = ReviewAction.ACCEPTED,
) -> UserChallenge:
    submission = UserChallenge(
        user_address=address.lower(),
        challenge_id=challenge_id,
        frontend_url="https://example.vercel.app",
        contract_url="https://sepolia.etherscan.io/address/0x0000000000000000000000000000000000000001",
        review_action=review_action,
    )
    db.add(submission)
    await db.commit()
    return submission


async def insert_batch(
    db: AsyncSession,
    name: str = "Batch 1",
    status: BatchStatus = BatchStatus.OPEN,
    **fields: Any,
) -> Batch:
    batch = Batch(
        name=name,
        start_date=fields.pop("start_date", datetime(2026, 1, 1, tzinfo=timezone.utc)),
        status=status,
        telegram_link=fields.pop("telegram_link", "https://t.me/+batch"),
        bg_subdomain=fields.pop("bg_subdomain", name.lower().replace(" ", "")),
        **fields,
    )
    db.add(batch)
    await db.commit()
    return batch


@pytest_asyncio.fixture
async def registered_alice(db_session, alice) -> SpeedrunClient:
    await insert_user(db_session, alice.address)
    return alice


@pytest_asyncio.fixture
async def builder_alice(db_session, alice) -> SpeedrunClient:
    """Alice registered with one accepted challenge, so she can submit builds."""
    await insert_user(db_session, alice.address)
    await insert_submission(db_session, alice.address)
    return alice


@pytest_asyncio.fixture
async def registered_bob(db_session, bob) -> SpeedrunClient:
    await insert_user(db_session, bob.address)
    return bob


@pytest_asyncio.fixture
async def admin_user(db_session, admin) -> SpeedrunClient:
    await insert_user(db_session, admin.address, role=UserRole.ADMIN)
    return admin
