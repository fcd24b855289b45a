"""Structlog configuration for the command line.

Configures structlog with colored console output for interactive use
and JSON output otherwise. Log events go to stderr so that command output
on stdout stays machine readable.
"""

import logging
import os
import sys

import structlog


def configure_logging(level: str = "info") -> None:
    """Configure structlog with appropriate processors.

    Uses colored console output when FORCE_COLOR is set or stderr is a TTY,
    otherwise uses JSON output.

    Args:
        level: Minimum level name (debug, info, warning, error)

    Raises:
        ValueError: If the level name is unknown
    """
    levels = logging.getLevelNamesMapping()
    try:
        min_level = levels[level.upper()]
    except KeyError:
        raise ValueError(f"Unknown log level: {level}") from None

    # FORCE_COLOR=1 enables colors even in non-TTY environments (like CI)
    force_color = os.environ.get("FORCE_COLOR", "").lower() in ("1", "true", "yes")
    use_colors = force_color or sys.stderr.isatty()

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if use_colors:
        processors: list[structlog.types.Processor] = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=True),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(min_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )
