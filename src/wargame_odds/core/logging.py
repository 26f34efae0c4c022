"""Structured logging configuration for wargame-odds.

The engine logs through structlog. Hosts that configure structlog
themselves keep their setup; otherwise the first evaluation configures
it from the application settings, rendering to the console in debug mode
or as JSON when ``WARGAME_ODDS_LOG_JSON`` is set.

Example:
    >>> from wargame_odds.core.logging import configure_logging, get_logger
    >>> configure_logging(level="DEBUG", json_format=True)
    >>> get_logger(__name__).info("Sampling finished", trials=20000)
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

import structlog
from structlog.types import Processor


if TYPE_CHECKING:
    from structlog.types import EventDict, WrappedLogger

    from wargame_odds.core.config import Settings


APP_NAME = "wargame_odds"


def add_app_context(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Tag every entry with the package name."""
    event_dict["app"] = APP_NAME
    return event_dict


def configure_logging(*, level: str = "INFO", json_format: bool = False) -> None:
    """Configure structlog for the engine.

    Args:
        level: The logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_format: Render JSON lines instead of console output.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_app_context,
    ]

    if json_format:
        renderer: Processor = structlog.processors.JSONRenderer()
        processors = [*shared_processors, structlog.processors.format_exc_info, renderer]
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=sys.stdout.isatty(),
            exception_formatter=structlog.dev.plain_traceback,
        )
        processors = [*shared_processors, renderer]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        # Module-level loggers must pick up later reconfiguration.
        cache_logger_on_first_use=False,
    )

    # No-op when the host already installed root handlers.
    logging.basicConfig(
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        level=numeric_level,
        stream=sys.stdout,
    )


def configure_from_settings(settings: Settings | None = None) -> None:
    """Configure logging from ``settings``, or the cached application settings."""
    if settings is None:
        from wargame_odds.core.config import get_settings

        settings = get_settings()
    configure_logging(level=settings.log_level, json_format=settings.log_json)


def ensure_logging() -> bool:
    """Configure logging from settings unless structlog is already configured.

    Returns:
        True if this call configured logging.
    """
    if structlog.is_configured():
        return False
    configure_from_settings()
    return True


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Get a structlog logger, typically for ``__name__``."""
    return structlog.get_logger(name)


__all__ = [
    "APP_NAME",
    "add_app_context",
    "configure_logging",
    "configure_from_settings",
    "ensure_logging",
    "get_logger",
]
