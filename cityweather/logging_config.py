"""structlog setup shared by the API, the CLI, and the core services."""

import logging
import sys
from typing import TextIO

import structlog

_LEVELS = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}


def _stream(use_stderr: bool) -> TextIO:
    # resolved per logger so redirected streams are picked up
    return sys.stderr if use_stderr else sys.stdout


def configure_logging(
    level: str = "INFO", json_logs: bool = True, use_stderr: bool = False
) -> None:
    """Configure structlog processors and the minimum log level.

    Args:
        level: Level name, e.g. "INFO" or "DEBUG".
        json_logs: Render JSON lines when True, console output otherwise.
        use_stderr: Write to stderr instead of stdout.
    """
    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
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
        wrapper_class=structlog.make_filtering_bound_logger(
            _LEVELS.get(level.upper(), logging.INFO)
        ),
        logger_factory=lambda *args: structlog.PrintLogger(_stream(use_stderr)),
        cache_logger_on_first_use=False,
    )


logger = structlog.get_logger()
