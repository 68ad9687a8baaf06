"""CORS for the web frontend."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sre.config import Settings


def setup_cors(app: FastAPI, settings: Settings) -> None:
    """Mutations are authorized by signed bodies, not cookies.

    Credentials stay off when the origin list is a wildcard, which browsers
    would reject anyway.
    """
    wildcard = "*" in settings.cors_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if wildcard else settings.cors_origins,
        allow_credentials=not wildcard,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Request-Id"],
        expose_headers=["X-Request-Id", "X-RateLimit-Remaining", "X-RateLimit-Limit"],
        max_age=600,
    )
