"""Structured logging for the search core.

Development runs get a colored console renderer; every other environment
emits one JSON object per line.
"""

from __future__ import annotations

import logging

import structlog


def _renderer(environment: str) -> structlog.types.Processor:
    if environment == "dev":
        return structlog.dev.ConsoleRenderer()
    return structlog.processors.JSONRenderer()


def configure_logging(level: int | str = logging.INFO, *, environment: str = "prod") -> None:
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    logging.basicConfig(level=level, format="%(message)s", handlers=[logging.StreamHandler()])
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if environment != "dev":
        # the console renderer prints tracebacks itself
        processors.append(structlog.processors.format_exc_info)
    processors.append(_renderer(environment))
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


logger = structlog.get_logger()

__all__ = ["configure_logging", "logger"]
