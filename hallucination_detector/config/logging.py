"""Logging configuration using loguru with automatic dev/prod detection."""

import sys
from typing import Optional

from loguru import logger

from hallucination_detector.config.settings import Settings, get_settings


def configure_logging(settings: Optional[Settings] = None) -> None:
    """
    Configure loguru based on environment settings.

    Behavior:
    - Development (TTY + console format): Colorized, human-readable output
    - Production (non-TTY or json format): JSON-structured logs to stderr,
      keeping stdout free for command output
    - Respects LOG_LEVEL from settings
    """
    settings = settings or get_settings()

    # Remove default handler
    logger.remove()

    is_tty = sys.stderr.isatty()
    use_console_format = settings.log_format.lower() == "console"

    if is_tty and use_console_format:
        logger.add(
            sys.stderr,
            format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{extra[component]}</cyan> | <level>{message}</level>",
            level=settings.log_level,
            colorize=True,
        )
    else:
        logger.add(
            sys.stderr,
            format="{message}",
            level=settings.log_level,
            serialize=True,
            diagnose=False,  # Never dump local variables (API keys) into logs
        )

    # Records logged without an explicit component still render
    logger.configure(extra={"component": "-"})


def get_logger(component: str):
    """
    Get a logger instance bound to a specific component name.

    Args:
        component: Component/module name for log context

    Returns:
        Logger instance with component context

    Example:
        >>> log = get_logger("upstream.exa")
        >>> log.info("Searching")
    """
    return logger.bind(component=component)


__all__ = ["logger", "get_logger", "configure_logging"]
