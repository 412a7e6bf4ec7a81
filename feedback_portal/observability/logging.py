"""
Structured logging for the board engine.

Every module logs through ``logging.getLogger(__name__)``; ``setup_logging``
routes those records through structlog so that context bound for the
session (user id, current board) is attached to each line. Production
renders JSON lines, development renders a coloured console.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import Processor

from feedback_portal.config.settings import Settings, get_settings

# Transport libraries log every request at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "asyncio", "redis")


def _renderer(settings: Settings) -> Processor:
    if settings.is_production:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def setup_logging(level: str | None = None) -> None:
    """
    Configure structlog and bridge stdlib logging into it.

    Args:
        level: Overrides ``Settings.log_level`` (the CLI passes DEBUG for
            ``--debug``).
    """
    settings = get_settings()

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    structlog.configure(
        processors=shared_processors + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            _renderer(settings),
        ],
    )
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, (level or settings.log_level).upper()))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_context(**kwargs: Any) -> None:
    """
    Attach fields to every later log line in this context.

    ``None`` values are skipped so an anonymous session adds no user_id.
    """
    values = {key: value for key, value in kwargs.items() if value is not None}
    if values:
        structlog.contextvars.bind_contextvars(**values)
