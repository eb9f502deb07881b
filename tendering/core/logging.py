"""
Structured logging setup.
"""

import logging
from typing import Optional

import structlog


def configure_logging(level: str = "INFO", json_output: bool = True) -> None:
    """
    Configure structlog for the engine.

    Args:
        level: Minimum log level name (e.g. "INFO", "DEBUG")
        json_output: Render JSON lines when True, console output otherwise
    """
    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        ),
        cache_logger_on_first_use=True,
    )


def get_logger(component: str, logger: Optional[structlog.BoundLogger] = None) -> structlog.BoundLogger:
    """Logger bound to an engine component name."""
    return logger or structlog.get_logger(component=component)
