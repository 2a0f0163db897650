"""Structured logging utilities using structlog for run context and tracing."""

import sys
import uuid
from typing import Any, Optional

import structlog
from structlog.contextvars import merge_contextvars
from structlog.processors import JSONRenderer


def configure_structured_logging(
    log_level: str = "INFO",
    log_format: str = "console",
) -> None:
    """
    Configure structured logging with appropriate processors and renderers.

    Uses:
    - Console renderer for development (colorized, human-readable)
    - JSON renderer for production (structured, machine-readable)
    - Context variables so run_id is attached to every event of a run

    Args:
        log_level: Minimum level name (DEBUG, INFO, ...)
        log_format: "console" or "json"
    """
    processors = [
        merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if sys.stderr.isatty() and log_format.lower() == "console":
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.plain_traceback,
            )
        )
    else:
        processors.append(JSONRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level.upper()),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_structured_logger(
    name: str,
    run_id: Optional[str] = None,
    **additional_context: Any,
) -> structlog.BoundLogger:
    """
    Get a structured logger with bound context.

    Args:
        name: Logger name (typically module name)
        run_id: Optional detection run ID to bind
        **additional_context: Additional context to bind

    Returns:
        Configured BoundLogger instance with context

    Example:
        >>> logger = get_structured_logger("verification.orchestrator", run_id="abc-123")
        >>> logger.info("claim_verified", assessment="True", confidence=92)
    """
    logger = structlog.get_logger(name)

    if run_id:
        logger = logger.bind(run_id=run_id)
    if additional_context:
        logger = logger.bind(**additional_context)

    return logger


def new_run_id() -> str:
    """Generate an ID used to correlate all log events of one detection run."""
    return str(uuid.uuid4())


__all__ = [
    "configure_structured_logging",
    "get_structured_logger",
    "new_run_id",
]
