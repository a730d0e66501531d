"""Decimal odds conversion and accumulator arithmetic."""

import math
from typing import Iterable, Optional

MIN_DECIMAL_ODDS = 1.01

# Accumulator prices beyond this are shown as a sentinel instead of a number
ODDS_DISPLAY_CAP = 999_999.0
ODDS_CAP_SENTINEL = "over 999,999"


def probability_to_decimal_odds(probability: float, margin: float = 0.0) -> float:
    """
    Convert a win probability into bookmaker decimal odds.

    The fair price ``1 / probability`` is shortened by the margin, so a 7%
    margin turns fair 2.00 into 1.87.

    Args:
        probability: Outcome probability (0-1)
        margin: Bookmaker margin as a decimal (0.07 = 7%)

    Returns:
        Decimal odds rounded to 2 places, never below 1.01
    """
    if probability <= 0:
        return 99.0
    fair = 1.0 / probability
    return round(max(MIN_DECIMAL_ODDS, fair / (1.0 + margin)), 2)


def confidence_to_decimal_odds(confidence: int, margin: float = 0.0) -> float:
    """Convert an integer confidence percentage into decimal odds."""
    return probability_to_decimal_odds(confidence / 100.0, margin)


def implied_probability(decimal_odds: float) -> float:
    """Implied probability of decimal odds (includes any margin)."""
    if decimal_odds <= 0:
        return 0.0
    return 1.0 / decimal_odds


def combined_odds(leg_odds: Iterable[float]) -> float:
    """
    Multiply leg odds into accumulator odds.

    Never raises on overflow: a product that leaves the float range is
    returned as ``math.inf`` for :func:`format_odds` to cap.
    """
    total = 1.0
    for odds in leg_odds:
        total *= odds
        if math.isinf(total):
            break
    return total


def potential_return(odds: float, stake: float = 1.0) -> float:
    """Gross return (stake included) of a winning bet."""
    if math.isinf(odds) or math.isnan(odds):
        return math.inf
    return odds * stake


def is_capped(value: float) -> bool:
    """True when a price is too large (or non-finite) to display as a number."""
    return not math.isfinite(value) or value > ODDS_DISPLAY_CAP


def format_odds(value: float, prefix: Optional[str] = None) -> str:
    """Format odds or a return for display, substituting the cap sentinel."""
    if is_capped(value):
        return ODDS_CAP_SENTINEL
    text = f"{value:,.2f}"
    return f"{prefix}{text}" if prefix else text
