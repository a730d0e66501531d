"""Longshot accumulator: one leg per upcoming fixture over a multi-day window."""

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence

from ..config import get_settings
from ..utils.odds import combined_odds, format_odds, potential_return
from .markets import PredictionMarket
from .predictions import MatchPrediction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LongshotLeg:
    """A fixture snapshot plus the market backed on it."""

    match_id: int
    home_team: str
    away_team: str
    competition: str
    match_date: datetime
    market: PredictionMarket

    @property
    def label(self) -> str:
        return f"{self.home_team} vs {self.away_team}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "match_id": self.match_id,
            "home_team": self.home_team,
            "away_team": self.away_team,
            "competition": self.competition,
            "match_date": self.match_date.isoformat(),
            **self.market.to_dict(),
        }


@dataclass
class LongshotAccumulator:
    """Combination bet over all legs. Combined odds are the product of leg odds."""

    legs: List[LongshotLeg] = field(default_factory=list)
    generated_date: Optional[date] = None

    @property
    def total_legs(self) -> int:
        return len(self.legs)

    @property
    def combined_odds(self) -> float:
        if not self.legs:
            return 0.0
        return combined_odds(leg.market.odds for leg in self.legs)

    @property
    def combined_odds_display(self) -> str:
        return format_odds(self.combined_odds)

    def potential_return(self, stake: float = 1.0) -> float:
        return potential_return(self.combined_odds, stake)

    def potential_return_display(self, stake: float = 1.0) -> str:
        return format_odds(self.potential_return(stake), prefix="$")

    @property
    def day_spread(self) -> int:
        return len({leg.match_date.date() for leg in self.legs})

    @property
    def league_count(self) -> int:
        return len({leg.competition for leg in self.legs})

    def to_dict(self) -> Dict[str, Any]:
        return {
            "legs": [leg.to_dict() for leg in self.legs],
            "total_legs": self.total_legs,
            "combined_odds": self.combined_odds_display,
            "potential_return": self.potential_return_display(),
            "day_spread": self.day_spread,
            "league_count": self.league_count,
            "generated_date": self.generated_date.isoformat() if self.generated_date else None,
        }


class LongshotBuilder:
    """Builds the accumulator from scratch on every call."""

    def __init__(self, target_legs: Optional[int] = None, window_days: Optional[int] = None):
        settings = get_settings()
        self.target_legs = settings.longshot_target_legs if target_legs is None else target_legs
        self.window_days = settings.longshot_window_days if window_days is None else window_days

    def eligible(
        self,
        predictions: Sequence[MatchPrediction],
        now: Optional[datetime] = None,
    ) -> List[MatchPrediction]:
        """Not-yet-started fixtures kicking off inside the window, with a priced top market."""
        now = now or datetime.now(timezone.utc)
        end = now + timedelta(days=self.window_days)
        return [
            p for p in predictions
            if p.status.is_upcoming
            and now <= p.match_date < end
            and p.markets
            and p.markets[0].odds > 0
        ]

    def build(
        self,
        predictions: Sequence[MatchPrediction],
        now: Optional[datetime] = None,
    ) -> LongshotAccumulator:
        """Pick legs round-robin across kickoff days until the target is reached.

        Within a day the most confident fixtures come first, so a short
        target still spreads over as many days as possible.
        """
        now = now or datetime.now(timezone.utc)
        candidates = self.eligible(predictions, now)

        by_day: Dict[date, List[MatchPrediction]] = OrderedDict()
        for prediction in sorted(candidates, key=lambda p: p.match_date):
            by_day.setdefault(prediction.match_date.date(), []).append(prediction)
        for day_predictions in by_day.values():
            day_predictions.sort(key=lambda p: p.markets[0].confidence, reverse=True)

        chosen: List[MatchPrediction] = []
        seen = set()
        queues = [list(v) for v in by_day.values()]
        while len(chosen) < self.target_legs and any(queues):
            for queue in queues:
                if not queue or len(chosen) >= self.target_legs:
                    continue
                prediction = queue.pop(0)
                if prediction.match_id in seen:
                    continue
                seen.add(prediction.match_id)
                chosen.append(prediction)

        legs = [
            LongshotLeg(
                match_id=p.match_id,
                home_team=p.home_team,
                away_team=p.away_team,
                competition=p.competition,
                match_date=p.match_date,
                market=p.markets[0],
            )
            for p in sorted(chosen, key=lambda p: p.match_date)
        ]

        accumulator = LongshotAccumulator(legs=legs, generated_date=now.date())
        logger.info(
            f"Longshot built: {accumulator.total_legs} legs over {accumulator.day_spread} days, "
            f"{accumulator.league_count} leagues, odds {accumulator.combined_odds_display}"
        )
        return accumulator
