"""
Centralized logging configuration for the Geodirect service.

This module sets up structured logging with:
- Environment-based configuration (dev vs production)
- JSON formatting for production, pretty console for development
- Redaction of shop credentials (access tokens, secrets)
- Sampling rate configuration for high-frequency events
"""

import logging
import os
import sys
from datetime import datetime, timezone

import structlog
from structlog.types import EventDict, Processor


ENV = os.getenv("ENV", "development")
IS_PRODUCTION = ENV == "production"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO" if IS_PRODUCTION else "DEBUG")
LOG_FORMAT = os.getenv("LOG_FORMAT", "json" if IS_PRODUCTION else "console")

# Sampling rates for high-frequency events
SAMPLING_RATES = {
    "prompt_logged": float(os.getenv("SAMPLE_RATE_PROMPT", "0.10")),  # 10%
    "view_query": float(os.getenv("SAMPLE_RATE_VIEW", "0.05")),  # 5%
}

REDACTED_FIELDS = {
    "access_token",
    "shopify_access_token",
    "token",
    "api_key",
    "authorization",
    "secret",
    "password",
}

_PRESERVED_KEYS = ("level", "event", "timestamp", "logger")


def add_timestamp(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add ISO format timestamp to event dict."""
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def redact_sensitive_fields(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Redact credentials from logs."""
    for key in list(event_dict.keys()):
        lowered = key.lower()
        if lowered in REDACTED_FIELDS or any(
            sensitive in lowered for sensitive in ("token", "secret", "password")
        ):
            if key not in _PRESERVED_KEYS:
                event_dict[key] = "***REDACTED***"
    return event_dict


def configure_structlog(log_format: str = LOG_FORMAT) -> None:
    """
    Configure structlog with appropriate processors for the environment.

    Production: JSON formatting for easy parsing
    Development: Pretty console formatting with colors
    """
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_timestamp,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        redact_sensitive_fields,
        structlog.processors.format_exc_info,
    ]

    if log_format == "json":
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=True,
            pad_event=15,
            sort_keys=False,
        )

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_stdlib_logging(log_level: str = LOG_LEVEL) -> None:
    """
    Configure standard library logging to work with structlog.

    Sets the level, routes records to stdout and quiets httpx request logs.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def setup_logging(log_level: str = LOG_LEVEL, log_format: str = LOG_FORMAT) -> None:
    """
    Initialize logging system for the application.

    Called once from the application factory, before anything logs.
    """
    configure_stdlib_logging(log_level)
    configure_structlog(log_format)

    logger = structlog.get_logger(__name__)
    logger.info(
        "logging_initialized",
        env=ENV,
        log_level=log_level,
        log_format=log_format,
        sentry_enabled=bool(os.getenv("SENTRY_DSN")),
    )
