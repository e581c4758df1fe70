"""
Structured logging configuration.

Readable text logs in development, structlog JSON with request IDs in production.
"""
import logging
import re
import sys
from typing import Any

import structlog

from maigewan.core.config import settings

# Fields whose values never reach the log output
SENSITIVE_FIELDS = (
    "password",
    "token",
    "api_key",
    "secret",
    "session_id",
    "authorization",
    "cookie",
    "pb_auth",
)

# Event metadata added by the processors themselves
PASSTHROUGH_FIELDS = ("logger", "level", "timestamp", "request_id")

_EMAIL_RE = re.compile(r"([A-Za-z0-9._%+-])[A-Za-z0-9._%+-]*@([A-Za-z0-9-]+(?:\.[A-Za-z0-9-]+)+)")


def setup_logging() -> None:
    """Configure logging for the application."""
    log_level = getattr(logging, settings.LOG_LEVEL)

    if settings.DEBUG:
        configure_development_logging(log_level)
    else:
        configure_production_logging(log_level)


def configure_development_logging(level: int) -> None:
    """Configure logging for development (readable format)."""
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        stream=sys.stdout,
    )

    # httpx logs every request line at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def configure_production_logging(level: int) -> None:
    """
    Configure logging for production (JSON format).

    Records from plain ``logging.getLogger`` loggers go through the same
    processors as structlog loggers, so every line is redacted JSON that
    carries the bound request_id.
    """
    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            redact_sensitive_data,
            structlog.processors.JSONRenderer(),
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def redact_sensitive_data(
    logger: logging.Logger,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """
    Redact sensitive data from a structlog event.

    Keys that look like credentials are replaced outright, other string
    values are passed through redact_string().
    """
    redacted = event_dict.copy()

    for key, value in redacted.items():
        if not isinstance(key, str) or key in PASSTHROUGH_FIELDS:
            continue
        key_lower = key.lower()
        if any(sensitive in key_lower for sensitive in SENSITIVE_FIELDS):
            redacted[key] = "***REDACTED***"
        elif isinstance(value, str):
            redacted[key] = redact_string(value)

    return redacted


def redact_string(value: str) -> str:
    """
    Redact sensitive patterns from strings.

    Patterns:
    - Email addresses anywhere in the text (keep first letter and domain)
    - Tokens (the whole value is one long alphanumeric string)
    """
    if len(value) > 20 and value.replace('_', '').replace('-', '').replace('.', '').isalnum():
        return f"{value[:8]}...{value[-4:]}"

    return _EMAIL_RE.sub(r"\1***@\2", value)
