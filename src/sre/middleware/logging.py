"""Structured logging configuration with structlog."""

import logging
from collections.abc import MutableMapping
from typing import Any

import structlog

from sre.config import Settings

# Keys whose values are full hex signatures or tokens
_SHORTENED_KEYS = ("signature", "token", "access_token")


def _shorten_secrets(_logger: Any, _method: str, event_dict: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
    """Keep only the first bytes of signatures and tokens in log lines."""
    for key in _SHORTENED_KEYS:
        value = event_dict.get(key)
        if isinstance(value, str) and len(value) > 12:
            event_dict[key] = value[:10] + "..."
    return event_dict


def setup_logging(settings: Settings) -> None:
    """Configure structlog for JSON or console output.

    Every line carries ``service`` and ``environment`` so logs from the API and
    its migration runs can be told apart once shipped.
    """
    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer() if settings.log_format == "json" else structlog.dev.ConsoleRenderer()
    )

    def add_service(_logger: Any, _method: str, event_dict: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
        event_dict.setdefault("service", "sre-api")
        event_dict.setdefault("environment", settings.environment)
        return event_dict

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            add_service,
            _shorten_secrets,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    level = logging.getLevelName(settings.log_level.upper())
    logging.basicConfig(level=level if isinstance(level, int) else logging.INFO)
    # web3 logs every RPC request at DEBUG
    logging.getLogger("web3").setLevel(max(logging.INFO, logging.getLogger().level))
