"""Logging setup for the h5pforge command line."""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog


def configure_logging(verbose: bool = False) -> None:
    """Configure structlog and stdlib logging to write to stderr.

    Args:
        verbose: Log progress at INFO. Otherwise only warnings and errors
            (AI fallbacks, version conflicts) are shown.

    Example:
        >>> configure_logging(verbose=True)
    """
    level = logging.INFO if verbose else logging.WARNING

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="%H:%M:%S"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.dev.ConsoleRenderer(colors=False),
    ]

    # Reconfigured on every command so output follows the current sys.stderr
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )

    logging.basicConfig(
        format="%(levelname)s %(name)s: %(message)s",
        level=level,
        stream=sys.stderr,
        force=True,
    )
