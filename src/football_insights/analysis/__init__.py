"""Market generation and derived prediction artifacts."""

from .catalog import MARKET_CATALOG, MARKET_NAMES, MarketFamily, PickSelection, market_spec
from .markets import MarketGenerator, PredictionMarket, overall_confidence_tier
from .predictions import MatchPrediction, PredictionAssembler
from .daily_picks import DailyPicksService, SelectedPick, pick_date_for, select_daily_picks
from .longshot import LongshotAccumulator, LongshotBuilder, LongshotLeg
from .odds_comparison import (
    BookmakerQuote,
    OddsComparison,
    build_odds_comparison,
    synthesize_odds_spread,
)

__all__ = [
    "MARKET_CATALOG",
    "MARKET_NAMES",
    "MarketFamily",
    "PickSelection",
    "market_spec",
    "MarketGenerator",
    "PredictionMarket",
    "overall_confidence_tier",
    "MatchPrediction",
    "PredictionAssembler",
    "DailyPicksService",
    "SelectedPick",
    "pick_date_for",
    "select_daily_picks",
    "LongshotAccumulator",
    "LongshotBuilder",
    "LongshotLeg",
    "BookmakerQuote",
    "OddsComparison",
    "build_odds_comparison",
    "synthesize_odds_spread",
]
