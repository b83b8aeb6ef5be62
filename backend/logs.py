"""
Structured logging setup.

Call `configure_logging()` once at process start (the FastAPI app and the
scripts do). Modules grab a logger with `structlog.get_logger()` and bind
a `component` so log lines can be filtered per layer.
"""

import logging
import sys

import structlog

from settings import settings


def configure_logging(json: bool = False) -> None:
    """Configure structlog on top of the stdlib root logger.

    `json=True` renders one JSON object per line (useful when the logs are
    shipped somewhere); otherwise a readable console renderer is used.
    """

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
    )

    renderer = (
        structlog.processors.JSONRenderer() if json else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
