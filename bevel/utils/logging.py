"""
Structured logging for Bevel.

Built on structlog with:
- Human-readable console output for development
- Structured JSON output for production
- Context from structlog.contextvars (dispatch binds `operation`)
- Sensitive data filtering (operation arguments may carry secrets)

Usage:
    from bevel.utils.logging import get_logger

    logger = get_logger(__name__)
    logger.info("skill_registered", skill="git", operations=5)

    # attach fields to every entry of a chat turn
    with structlog.contextvars.bound_contextvars(session_id="s-1"):
        await agent.git.push()
"""

import logging
import os
import sys

import structlog
from structlog.types import FilteringBoundLogger

SENSITIVE_KEYS = {
    "password",
    "api_key",
    "secret",
    "authorization",
    "apikey",
    "access_token",
    "refresh_token",
}


def filter_sensitive_data(
    logger: FilteringBoundLogger, method_name: str, event_dict: dict
) -> dict:
    """Redact values whose key looks like a credential."""
    for key in list(event_dict.keys()):
        if any(sensitive in key.lower() for sensitive in SENSITIVE_KEYS):
            event_dict[key] = "***REDACTED***"
    return event_dict


def configure_logging(log_level: str = "INFO", json_logs: bool = False) -> None:
    """
    Configure structlog with appropriate processors and renderers.

    Args:
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: If True, output JSON logs suitable for production
    """
    log_level = os.getenv("LOG_LEVEL", log_level).upper()
    json_logs = os.getenv("LOG_JSON", str(json_logs)).lower() in ("true", "1", "yes")

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level),
    )

    processors = [
        structlog.contextvars.merge_contextvars,
        filter_sensitive_data,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if json_logs:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.plain_traceback,
            )
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = "bevel") -> FilteringBoundLogger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name (typically __name__ of the module)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


# Initialize logging with defaults
configure_logging()


__all__ = [
    "SENSITIVE_KEYS",
    "configure_logging",
    "filter_sensitive_data",
    "get_logger",
]
