"""
Logger factory and sampling helpers.

Provides:
- get_logger(): Get a configured logger instance
- should_sample(): Determine if an event should be logged based on sampling rate
"""

import random

import structlog
from structlog.stdlib import BoundLogger

from shared.logging_config import SAMPLING_RATES, configure_structlog, setup_logging


def get_logger(name: str) -> BoundLogger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Example:
        >>> log = get_logger(__name__)
        >>> log.info("geodirect_created", shop_id=123, country_code="CA")
    """
    return structlog.get_logger(name)


def should_sample(event_type: str) -> bool:
    """
    Determine if an event should be logged based on sampling rate.

    Event types without a configured rate are always logged.
    """
    sample_rate = SAMPLING_RATES.get(event_type, 1.0)

    if sample_rate >= 1.0:
        return True
    if sample_rate <= 0.0:
        return False
    return random.random() < sample_rate


__all__ = [
    "get_logger",
    "should_sample",
    "SAMPLING_RATES",
    "configure_structlog",
    "setup_logging",
]
