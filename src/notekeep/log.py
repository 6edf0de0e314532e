"""structlog setup.

Learn: Every module does `logger = structlog.get_logger()` and logs
dotted event names with key/value context (`auth.login_failed`,
username=...). configure_logging() decides how those events are
rendered: colored console lines in development, one JSON object per
line when NOTEKEEP_LOG_JSON is set (for log shippers).

The request id bound by AccessLogMiddleware is merged into every event
through structlog's contextvars processor.
"""

import logging
import sys

import structlog

from notekeep.config import Settings

_NOISY_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "httpcore", "httpx")


def configure_logging(settings: Settings) -> None:
    """Configure structlog and the stdlib root logger once at startup."""
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format="%(message)s",
        stream=sys.stdout,
        force=True,
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if settings.log_json:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        # ConsoleRenderer formats exceptions itself
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
