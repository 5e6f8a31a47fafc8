"""Structured logging setup.

Configures the stdlib root logger and structlog once per process. Request
handlers bind ``request_id`` through structlog contextvars, so every log
line emitted while serving a request carries it.
"""

import logging
import sys

import structlog

from horeca.infrastructure.config import settings

_configured = False


def configure_logging(level: str | None = None, json_logs: bool | None = None) -> None:
    """Configure structlog and stdlib logging.

    Safe to call more than once; only the first call takes effect.

    Args:
        level: Log level name, defaults to settings.log_level.
        json_logs: Render JSON lines instead of console output,
            defaults to settings.log_json.
    """
    global _configured
    if _configured:
        return

    level_name = (level or settings.log_level).upper()
    log_level = getattr(logging, level_name, logging.INFO)
    use_json = settings.log_json if json_logs is None else json_logs

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if use_json
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _configured = True
