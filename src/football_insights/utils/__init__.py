"""Utility modules for the football insights engine."""

from .logging import reset_logging, setup_logging
from .retry import retry_with_backoff, RetryableError, NonRetryableError
from .cache import TTLCache
from .odds import (
    ODDS_CAP_SENTINEL,
    combined_odds,
    confidence_to_decimal_odds,
    format_odds,
    implied_probability,
    potential_return,
    probability_to_decimal_odds,
)

__all__ = [
    "reset_logging",
    "setup_logging",
    "retry_with_backoff",
    "RetryableError",
    "NonRetryableError",
    "TTLCache",
    "ODDS_CAP_SENTINEL",
    "combined_odds",
    "confidence_to_decimal_odds",
    "format_odds",
    "implied_probability",
    "potential_return",
    "probability_to_decimal_odds",
]
