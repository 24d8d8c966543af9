"""Logging setup shared by every entry point.

Stdlib ``logging`` owns the handlers; ``structlog`` renders key/value events
on top of it so modules can simply call ``structlog.get_logger(name)``.
"""
import logging
import sys
from typing import Optional

import structlog

from core.settings import SETTINGS, AppSettings


def configure_logging(app_settings: Optional[AppSettings] = None) -> None:
    """Configure stdlib logging and structlog from application settings."""
    app_settings = app_settings or SETTINGS.APP
    level = logging.getLevelName(app_settings.LOG_LEVEL.upper())
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if app_settings.JSON_LOGS
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
