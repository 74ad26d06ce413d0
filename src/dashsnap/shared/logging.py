"""Structured logging configuration.

Snapshot keys are bearer capabilities. Any event field named after one is
masked before rendering, so a stray ``logger.info(..., delete_key=...)``
never writes a usable token.
"""

import logging
import sys
from collections.abc import MutableMapping
from typing import Any, cast

import structlog

from dashsnap.config import get_settings

CAPABILITY_FIELDS = frozenset({"key", "delete_key", "deleteKey", "uid", "external_delete_url"})
VISIBLE_PREFIX = 4

QUIET_LOGGERS = ("uvicorn", "uvicorn.access", "arq", "sqlalchemy.engine")


def mask_token(value: str) -> str:
    """Keep a short prefix for correlation, drop the rest."""
    if not value:
        return value
    return f"{value[:VISIBLE_PREFIX]}***"


def mask_capabilities(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """structlog processor masking capability token fields."""
    for field in CAPABILITY_FIELDS.intersection(event_dict):
        value = event_dict[field]
        if isinstance(value, str):
            event_dict[field] = mask_token(value)
    return event_dict


def setup_logging() -> None:
    """Configure structlog on top of stdlib logging."""
    settings = get_settings()

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        mask_capabilities,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    renderer: list[Any]
    if settings.is_development:
        renderer = [structlog.dev.ConsoleRenderer(colors=True)]
    else:
        renderer = [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]

    structlog.configure(
        processors=shared_processors + renderer,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=logging.DEBUG if settings.app_debug else logging.INFO,
    )

    for logger_name in QUIET_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger instance."""
    return cast(structlog.stdlib.BoundLogger, structlog.get_logger(name))
