"""Structured logging configuration using structlog."""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

LOG_FORMATS = ("json", "console")


def add_log_level(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Add log level to event dictionary."""
    event_dict["level"] = method_name.upper()
    return event_dict


def _render_processors(log_format: str) -> list[Processor]:
    if log_format == "console":
        # ConsoleRenderer formats exceptions itself
        return [structlog.dev.ConsoleRenderer(colors=False)]
    return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]


def configure_logging(log_level: str = "INFO", log_format: str = "json") -> None:
    """Configure structured logging.

    Log lines go to stderr; stdout is left to command output such as
    fetched entity documents.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: "json" for one JSON object per line, "console" for
            human readable lines
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=numeric_level,
        force=True,
    )
    logging.getLogger().setLevel(numeric_level)

    # urllib3 logs every connection at DEBUG
    logging.getLogger("urllib3").setLevel(max(numeric_level, logging.INFO))

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        *_render_processors(log_format.lower()),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str, **context: Any) -> Any:
    """Get a logger, optionally bound to context such as a component name.

    Args:
        name: Logger name (typically __name__)
        **context: Key-value pairs added to every event

    Returns:
        Configured structlog logger
    """
    logger = structlog.get_logger(name)
    return logger.bind(**context) if context else logger
