"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from sqlalchemy.exc import SQLAlchemyError

from sre.activities.router import router as activities_router
from sre.auth.router import router as auth_router
from sre.batches.router import router as batches_router
from sre.builds.router import router as builds_router
from sre.challenges.autograder import AutograderClient
from sre.challenges.catalog import seed_challenges
from sre.challenges.router import router as challenges_router
from sre.config import Settings, get_settings
from sre.database import Database
from sre.health.router import router as health_router
from sre.middleware import setup_middleware
from sre.notes.router import router as notes_router
from sre.onchain.ens import EnsClient
from sre.redis_client import create_redis
from sre.users.router import router as users_router

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Build the process-wide handles on ``app.state`` and tear them down on exit."""
    settings: Settings = app.state.settings
    db = Database(settings.database_url)
    app.state.db = db
    app.state.redis = create_redis(settings.redis_url)
    app.state.ens = EnsClient(settings.mainnet_rpc_url) if settings.mainnet_rpc_url else None
    app.state.autograder = (
        AutograderClient(settings.autograding_server, timeout=settings.autograder_timeout_seconds)
        if settings.autograding_server
        else None
    )

    # Seed challenge catalog (idempotent)
    try:
        async with db.session_factory() as session:
            await seed_challenges(session)
    except SQLAlchemyError:
        logger.warning("challenge_seeding_failed", exc_info=True)

    yield

    if app.state.autograder is not None:
        await app.state.autograder.close()
    await app.state.redis.aclose()
    await db.dispose()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()

    app = FastAPI(
        title="Speedrun Ethereum API",
        description="Backend API for Speedrun Ethereum: challenges, builds, batches and builder profiles",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.db = None
    app.state.redis = None
    app.state.ens = None
    app.state.autograder = None

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(builds_router)
    app.include_router(notes_router)
    app.include_router(batches_router)
    app.include_router(challenges_router)
    app.include_router(activities_router)

    return app


app = create_app()
