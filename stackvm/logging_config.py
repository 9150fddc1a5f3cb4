import logging
import sys

import structlog
from structlog.stdlib import LoggerFactory

from .config import DEFAULT_LOG_FORMAT, DEFAULT_LOG_LEVEL


def _processors(renderer):
    return [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        renderer,
    ]


def configure_logging(log_level: str = DEFAULT_LOG_LEVEL, log_format: str = DEFAULT_LOG_FORMAT):
    """Configure structured logging on top of the stdlib root logger.

    Logs go to stderr; stdout belongs to the running program.
    """
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, log_level.upper(), logging.WARNING),
        stream=sys.stderr,
        force=True,  # Override any root logger config
    )
    if log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=_processors(renderer),
        context_class=dict,
        logger_factory=LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    logger = structlog.get_logger(__name__)
    logger.debug("Logging configured", log_level=log_level, log_format=log_format)


def configure_default_logging():
    """Route structlog through stdlib logging unless the host already configured it.

    The root logger is left alone, so with no handlers installed only
    warnings and errors reach stderr (via logging's last-resort handler).
    Loggers are not cached, so a later configure_logging() still applies.
    """
    if structlog.is_configured():
        return

    structlog.configure(
        processors=_processors(structlog.dev.ConsoleRenderer(colors=False)),
        context_class=dict,
        logger_factory=LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )
