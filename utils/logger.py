"""
============================================================================
UPTIME MONITOR - LOGGING UTILITY
============================================================================
Loguru sink configuration and named logger access.

Sinks are configured once by the entry point; importing this module
has no side effects.
============================================================================
"""

from __future__ import annotations

import sys
from typing import Optional

from loguru import logger

from config.settings import LoggingSettings


CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[name]}:{function}:{line} - {message}"


# ============================================================================
# LOGGER CONFIGURATION
# ============================================================================

def setup_logging(settings: Optional[LoggingSettings] = None) -> None:
    """
    Configure loguru sinks.

    Removes the default handler, then adds a console sink and, when
    file logging is enabled, a rotating log file plus a separate
    error-only file.

    Args:
        settings: Logging section; loaded from the environment if omitted
    """
    settings = settings or LoggingSettings()
    log_level = settings.level.value

    logger.remove()
    logger.configure(extra={"name": "uptime"})

    # Console Handler
    if settings.to_console:
        logger.add(
            sys.stderr,
            format=CONSOLE_FORMAT,
            level=log_level,
            colorize=settings.colorize,
            backtrace=True,
            diagnose=False,
        )

    # File Handlers
    if settings.to_file:
        settings.file_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            settings.file_path,
            format=FILE_FORMAT,
            level=log_level,
            rotation=settings.rotation,
            retention=settings.retention,
            compression="zip",
            serialize=settings.serialize,
            backtrace=True,
            diagnose=False,
        )

        settings.error_file_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            settings.error_file_path,
            format=FILE_FORMAT,
            level="ERROR",
            rotation="1 day",
            retention="7 days",
            compression="zip",
            backtrace=True,
            diagnose=False,
        )

    get_logger(__name__).debug(
        f"Logging initialized (level={log_level}, console={settings.to_console}, file={settings.to_file})"
    )


def get_logger(name: Optional[str] = None):
    """
    Get logger instance with optional name.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Logger instance bound to the name
    """
    return logger.bind(name=name or "uptime")
