"""Structured logging setup for sysview.

The dashboard owns the terminal, so log records never go to the console:
they are written as JSON Lines to the file given with --log, or dropped
when no file is configured.
"""

import logging
from pathlib import Path

import structlog


def configure(log_file: Path | None = None, debug: bool = False) -> None:
    """Configure structlog on top of stdlib logging.

    Args:
        log_file: File to append JSON log lines to, or None to discard logs.
        debug: Log at DEBUG level instead of INFO.

    Raises:
        OSError: If the log file cannot be opened.
    """
    level = logging.DEBUG if debug else logging.INFO

    stdlib_root = logging.getLogger()
    stdlib_root.setLevel(level)

    # Clear any existing handlers
    stdlib_root.handlers.clear()

    handler: logging.Handler
    if log_file is not None:
        # Opens the file immediately so a bad path fails before the UI starts
        handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processor=structlog.processors.JSONRenderer(),
                foreign_pre_chain=[
                    structlog.contextvars.merge_contextvars,
                    structlog.processors.TimeStamper(fmt="iso", utc=False, key="ts"),
                    structlog.processors.add_log_level,
                    structlog.processors.format_exc_info,
                ],
            )
        )
    else:
        handler = logging.NullHandler()
    handler.setLevel(level)
    stdlib_root.addHandler(handler)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.processors.TimeStamper(fmt="iso", utc=False, key="ts"),
            structlog.processors.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    if debug:
        structlog.get_logger().debug("debug_logging_enabled")

