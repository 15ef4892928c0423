"""
Structured logging for StockLedger.

Events are snake_case names with key/value context, rendered as JSON lines
outside development and as a colored console stream in development.
Request and actor ids bound with :func:`bind_context` ride along on every
event logged while handling the same request or CLI command.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from stockledger.config.settings import get_settings

# Chatty third-party loggers kept at WARNING
QUIET_LOGGERS = ("aiosqlite", "multipart", "uvicorn.access")


def add_service_context(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    settings = get_settings()
    event_dict.setdefault("service", settings.app_name)
    event_dict.setdefault("service_version", settings.app_version)
    event_dict.setdefault("env", settings.environment)
    return event_dict


def _processors(json_output: bool) -> list[Processor]:
    chain: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        add_service_context,
        structlog.processors.StackInfoRenderer(),
    ]
    if json_output:
        chain += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        chain.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))
    return chain


def configure_logging(level: str | None = None) -> None:
    """Route structlog through the stdlib root logger at the configured level."""
    settings = get_settings()
    log_level = getattr(logging, (level or settings.log_level).upper())

    structlog.configure(
        processors=_processors(json_output=settings.environment != "development"),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_context(**values: Any) -> None:
    structlog.contextvars.bind_contextvars(**values)


def new_context(**values: Any) -> None:
    """Drop anything bound by a previous request, then bind ``values``."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(**values)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
