"""
Logging — structlog setup.

Modules log through `structlog.get_logger(__name__)` with event-style names:

    logger.info("cart.created", cart_id=cart.id, role=actor.role)

Call `configure_logging(settings)` once at process start.
"""

from __future__ import annotations

import logging

import structlog

from orderflow.config import Settings


def configure_logging(settings: Settings) -> None:
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {settings.log_level}")

    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer()
        if settings.log_json
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
    )


__all__ = ("configure_logging",)
