"""
structlog setup for the ledger.

Events are snake_case names with keyword fields (``stock_withdrawn``,
``stock_id=3, amount=5``). Development renders them on a colored console,
other environments emit one JSON object per line.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from intendance.config.settings import get_settings

# Libraries that are chatty at DEBUG and never useful in ledger output
_QUIET_LOGGERS = ("aiosqlite", "asyncio")


def _stamp_application(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    settings = get_settings()
    event_dict.setdefault("app", settings.app_name)
    event_dict.setdefault("environment", settings.environment)
    return event_dict


def _renderers(json_logs: bool) -> list[Processor]:
    if json_logs:
        return [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ]
    return [structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())]


def configure_logging(level: str | None = None, json_logs: bool | None = None) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        level: Log level name; defaults to the configured ``log_level``.
        json_logs: Force JSON (True) or console (False) output; defaults to
            JSON outside of development.
    """
    settings = get_settings()
    level = level or settings.log_level
    if json_logs is None:
        json_logs = settings.json_logs

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=False),
        _stamp_application,
        *_renderers(json_logs),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level, force=True)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger bound to ``name``."""
    return structlog.get_logger(name)
