"""Logging configuration for the Dispatch domain."""

import logging
import os

import structlog

logger = structlog.get_logger(__name__)

# Suppress noisy library loggers
logging.getLogger("protean").setLevel(logging.WARNING)


def configure_logging() -> None:
    """Render JSON lines in production and readable console output elsewhere."""
    renderer = (
        structlog.processors.JSONRenderer()
        if os.environ.get("PROTEAN_ENV") == "production"
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
    )
