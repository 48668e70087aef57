"""Logging configuration.

Routes structlog through the standard library so log level filtering
applies to both.
"""

import logging
import sys

import structlog

from salonshop.infrastructure.config import Settings, settings


def configure_logging(config: Settings = settings) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        config: Settings providing ``log_level`` and ``log_json``.
    """
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper()),
        format="%(message)s",
        stream=sys.stderr,
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if config.log_json
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
