"""
OXM - Utilities Module

Logging configuration for the library and applications embedding it.
Library modules log through loguru with a bound ``name``; nothing is emitted
to custom sinks until configure_logging() is called.
"""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from . import constants
from .config import load_settings, parse_log_level

# =============================================================================
# Logging Configuration
# =============================================================================

_configured: bool = False


def configure_logging(
    level: Optional[str] = None,
    log_file: Optional[Path] = None,
    verbose: bool = False,
) -> str:
    """
    Configure loguru sinks for the entire application.

    Arguments left unset fall back to the OXM_* settings (see load_settings).
    Should be called once at application startup. Returns the effective level.
    """
    global _configured

    if level:
        level = parse_log_level("level", level)
    if not level or log_file is None:
        settings = load_settings()
        level = level or settings.log_level
        log_file = log_file if log_file is not None else settings.log_file

    # Determine log level
    log_level = "DEBUG" if verbose else level

    format_str = constants.VERBOSE_LOG_FORMAT if verbose else constants.LOG_FORMAT

    # Records logged without bind(name=...) still need the field for the format
    logger.configure(extra={"name": "oxm"})

    # Remove existing sinks
    logger.remove()

    logger.add(sys.stdout, level=log_level, format=format_str)

    # File sink (if requested)
    if log_file:
        try:
            log_file = Path(log_file)
            log_file.parent.mkdir(parents=True, exist_ok=True)

            logger.add(
                log_file,
                level=log_level,
                format=format_str,
                rotation=constants.LOG_ROTATION,
                retention=constants.LOG_RETENTION,
                encoding="utf-8",
                colorize=False,
            )
            logger.bind(name=__name__).info(f"Logging to file: {log_file}")
        except OSError as e:
            logger.bind(name=__name__).warning(f"Failed to configure file logging: {e}")

    _configured = True
    logger.bind(name=__name__).info(f"Logging configured at {log_level} level")
    return log_level


def get_logger(name: str):
    """Get a logger bound to a specific module or component."""
    return logger.bind(name=name)


def is_configured() -> bool:
    """Check if logging has been configured."""
    return _configured
