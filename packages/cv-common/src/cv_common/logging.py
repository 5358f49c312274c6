"""
Structured logging setup for CorporaViewer.

Configures structlog for JSON-formatted structured logging across all
services. Every log line includes timestamp, level, service name, and
event. Per-request context (meeting_id, lang) is bound at processing time.
"""

from __future__ import annotations

import logging
import sys

import structlog


def configure_logging(
    service: str,
    level: str = "INFO",
    json_logs: bool = True,
) -> None:
    """Configure structlog and the stdlib root logger for *service*.

    Args:
        service: Service name bound to every log line.
        level: Minimum log level name.
        json_logs: Render JSON lines; otherwise a coloured console renderer.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )

    renderer: structlog.types.Processor
    if json_logs:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
    structlog.contextvars.bind_contextvars(service=service)
