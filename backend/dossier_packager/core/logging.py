"""
Structured logging setup (structlog).

Usage:
    from dossier_packager.core.logging import get_logger, setup_logging

    setup_logging("INFO")          # once at startup
    logger = get_logger(__name__)
    logger.info("Dossier packaged", dossier_id="abc", graph="http://...")
"""

from __future__ import annotations

import logging
import sys

import structlog


def setup_logging(level: str = "INFO", *, json_format: bool | None = None) -> None:
    """
    Configure structlog and the stdlib root logger.

    JSON output is used when ``json_format`` is True, or when it is None
    and stdout is not a terminal.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    if json_format is None:
        json_format = not sys.stdout.isatty()

    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        stream=sys.stdout,
        force=True,
    )
    # Quiet noisy libraries
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    renderer = (
        structlog.processors.JSONRenderer()
        if json_format
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger bound to ``name``."""
    return structlog.get_logger(name)
