"""Logging infrastructure with syslog integration and session ID tracking.

This module provides logging setup for the eta-calculator application,
including optional syslog integration, session ID tracking using ContextVar
so that every log line emitted while processing one progress stream can be
correlated, and consistent log formatting.
"""

import contextvars
import logging
import logging.handlers
import sys
from collections.abc import Mapping
from typing import Final

from typing_extensions import override

# Session ID context variable for tracking one progress stream across log lines
# Automatically inherited by asyncio tasks and copied contexts
session_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "session_id",
    default=None,
)

# Log format constants
DEFAULT_LOG_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - [%(session_id)s] - %(message)s"

SYSLOG_LOG_FORMAT: Final[str] = "eta-calculator[%(process)d]: %(levelname)s - [%(session_id)s] - %(name)s - %(message)s"

DEFAULT_SYSLOG_ADDRESS: Final[str] = "/dev/log"


class SessionIDFilter(logging.Filter):
    """Logging filter that adds the session ID to log records.

    Retrieves the session ID from the ContextVar and adds it to each log
    record so formatters can reference ``%(session_id)s``.
    """

    @override
    def filter(self, record: logging.LogRecord) -> bool:
        """Add session ID to log record from ContextVar.

        Args:
            record: Log record to enhance with session ID

        Returns:
            True to allow the record to be logged
        """
        session_id = session_id_var.get()
        record.session_id = session_id if session_id is not None else "N/A"
        return True


def configure_logging(
    *,
    log_level: str = "INFO",
    enable_syslog: bool = False,
    syslog_address: str = DEFAULT_SYSLOG_ADDRESS,
    enable_console: bool = True,
) -> None:
    """Configure application logging.

    Sets up logging infrastructure with:
    - Session ID tracking via ContextVar
    - Optional syslog integration
    - Console output on stderr, keeping stdout free for status lines

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        enable_syslog: Enable syslog handler
        syslog_address: Syslog socket address
        enable_console: Enable console output handler

    Example:
        >>> configure_logging(log_level="DEBUG", enable_syslog=False)
        >>> set_session_id("download-42")
        >>> logging.getLogger(__name__).info("Progress stream started")
    """
    root_logger = logging.getLogger()

    level = getattr(logging, log_level.upper(), logging.INFO)
    root_logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    root_logger.handlers.clear()

    session_filter = SessionIDFilter()

    if enable_syslog:
        try:
            syslog_handler = logging.handlers.SysLogHandler(
                address=syslog_address,
                facility=logging.handlers.SysLogHandler.LOG_USER,
            )
            syslog_handler.setFormatter(logging.Formatter(SYSLOG_LOG_FORMAT))
            syslog_handler.addFilter(session_filter)
            root_logger.addHandler(syslog_handler)

        except OSError as exc:
            # Syslog not available (e.g., development environment)
            print(
                f"Warning: Could not connect to syslog at {syslog_address}: {exc}",
                file=sys.stderr,
            )

    if enable_console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(logging.Formatter(DEFAULT_LOG_FORMAT))
        console_handler.addFilter(session_filter)
        root_logger.addHandler(console_handler)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for the specified module.

    Args:
        name: Logger name (typically __name__ from calling module)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def set_session_id(session_id: str) -> None:
    """Set the session ID for the current context.

    Args:
        session_id: Identifier of the progress stream being processed
    """
    _ = session_id_var.set(session_id)


def get_session_id() -> str | None:
    """Get the current session ID from context.

    Returns:
        Current session ID or None if not set
    """
    return session_id_var.get()


def clear_session_id() -> None:
    """Clear the session ID from the current context."""
    _ = session_id_var.set(None)


def log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    *,
    extra: Mapping[str, object] | None = None,
) -> None:
    """Log a message with additional context fields.

    Automatically includes the session ID from ContextVar.

    Args:
        logger: Logger instance to use
        level: Logging level (e.g., logging.INFO)
        message: Log message
        extra: Additional context fields to include in log

    Example:
        >>> log_with_context(
        ...     get_logger(__name__),
        ...     logging.INFO,
        ...     "Estimate refreshed",
        ...     extra={"progress": 0.42, "etr_seconds": 118.0},
        ... )
    """
    context = dict(extra) if extra else {}

    session_id = get_session_id()
    if session_id:
        context["session_id"] = session_id

    logger.log(level, message, extra=context)
