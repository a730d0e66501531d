"""Synthetic multi-bookmaker odds around a market's canonical price."""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from ..config import get_settings
from ..utils.odds import MIN_DECIMAL_ODDS
from .markets import PredictionMarket

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookmakerQuote:
    bookmaker: str
    odds: float

    def to_dict(self) -> Dict[str, Any]:
        return {"bookmaker": self.bookmaker, "odds": self.odds}


@dataclass
class OddsComparison:
    """Quotes for one market, best price for the bettor first."""

    market: PredictionMarket
    quotes: List[BookmakerQuote] = field(default_factory=list)

    @property
    def best(self) -> Optional[BookmakerQuote]:
        return self.quotes[0] if self.quotes else None

    @property
    def spread(self) -> float:
        if not self.quotes:
            return 0.0
        return round(self.quotes[0].odds - self.quotes[-1].odds, 2)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "market": self.market.market,
            "pick": self.market.pick,
            "confidence": self.market.confidence,
            "canonical_odds": self.market.odds,
            "best": self.best.to_dict() if self.best else None,
            "quotes": [q.to_dict() for q in self.quotes],
        }


def odds_bounds(canonical: float, max_deviation_pct: float) -> tuple:
    """Inclusive (low, high) 2-dp range a synthesized quote may take."""
    deviation = max_deviation_pct / 100
    # Round away float noise (2.0 * 1.15 * 100 == 229.999...) before snapping to cents
    low_cents = math.ceil(round(canonical * (1 - deviation) * 100, 6))
    high_cents = math.floor(round(canonical * (1 + deviation) * 100, 6))
    low = max(MIN_DECIMAL_ODDS, low_cents / 100)
    high = max(low, high_cents / 100)
    return low, high


def synthesize_odds_spread(
    market: PredictionMarket,
    rng: Optional[np.random.Generator] = None,
    bookmakers: Optional[Sequence[str]] = None,
    jitter_pct: Optional[float] = None,
    max_deviation_pct: Optional[float] = None,
) -> List[BookmakerQuote]:
    """
    Fan a market's odds out across simulated bookmakers.

    Each quote is the canonical odds moved by a normally distributed jitter
    (standard deviation half of ``jitter_pct``), then clamped so it never
    falls below 1.01 or strays more than ``max_deviation_pct`` from the
    canonical value.

    Returns:
        Quotes sorted by descending odds (index 0 is the best price)
    """
    settings = get_settings()
    rng = rng or np.random.default_rng()
    bookmakers = list(bookmakers or settings.odds_comparison_bookmakers)
    jitter = (settings.odds_jitter_pct if jitter_pct is None else jitter_pct) / 100
    max_dev = settings.odds_max_deviation_pct if max_deviation_pct is None else max_deviation_pct

    low, high = odds_bounds(market.odds, max_dev)
    moves = rng.normal(0.0, jitter / 2, len(bookmakers))

    quotes = []
    for bookmaker, move in zip(bookmakers, moves):
        odds = round(market.odds * (1 + float(move)), 2)
        quotes.append(BookmakerQuote(bookmaker, min(high, max(low, odds))))

    quotes.sort(key=lambda q: q.odds, reverse=True)
    return quotes


def build_odds_comparison(
    markets: Sequence[PredictionMarket],
    top_n: int = 5,
    rng: Optional[np.random.Generator] = None,
) -> List[OddsComparison]:
    """Odds comparison for the first ``top_n`` (highest-confidence) markets."""
    rng = rng or np.random.default_rng()
    comparisons = [
        OddsComparison(market, synthesize_odds_spread(market, rng=rng))
        for market in list(markets)[:top_n]
    ]
    logger.debug(f"Built odds comparison for {len(comparisons)} markets")
    return comparisons
