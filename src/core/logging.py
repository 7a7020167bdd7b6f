"""
Structured logging for the advisor service, built on structlog.

Development gets a colored console renderer, production gets one JSON
object per line. Request-scoped values (request_id, user_id) are carried
through contextvars so every log line emitted while serving a request
includes them.

Usage:
    from core.logging import configure_logging, get_logger

    configure_logging(json_logs=settings.is_production)
    logger = get_logger(__name__)
    logger.info("Analysis parsed", outcome="parsed", skin_tone="Medium")
"""

import logging
import sys
from typing import Any, List, Optional

import structlog
from structlog.types import Processor


# Third-party loggers that are too chatty at INFO
_QUIET_LOGGERS = (
    "httpx",
    "httpcore",
    "openai",
    "urllib3",
    "hpack",
    "uvicorn.access",
)


def _build_processors(json_logs: bool, include_timestamp: bool) -> List[Processor]:
    processors: List[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if include_timestamp:
        processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))

    if json_logs:
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(
            colors=True,
            exception_formatter=structlog.dev.plain_traceback,
        ))
    return processors


def configure_logging(
    json_logs: bool = False,
    log_level: str = "INFO",
    include_timestamp: bool = True,
) -> None:
    """
    Configure structlog and the stdlib root logger.

    Args:
        json_logs: Emit JSON lines (production) instead of colored console output.
        log_level: Minimum level for the root logger.
        include_timestamp: Prefix every event with an ISO timestamp.
    """
    structlog.configure(
        processors=_build_processors(json_logs, include_timestamp),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )
    # basicConfig is a no-op once the root logger has handlers
    logging.getLogger().setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger, usually called with ``__name__``."""
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Attach key/value pairs to every subsequent log line in this context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    """Drop all request-scoped context. Called when a request finishes."""
    structlog.contextvars.clear_contextvars()


class LoggerMixin:
    """Gives a class a ``logger`` property named after the class."""

    @property
    def logger(self) -> structlog.stdlib.BoundLogger:
        return get_logger(self.__class__.__name__)
