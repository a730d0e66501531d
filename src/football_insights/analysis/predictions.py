"""Prediction assembler: one MatchPrediction per fixture."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from ..data.schemas import Fixture, MatchStatus
from ..ml.probability import OutcomeDistribution, ProbabilityEngine
from ..ml.team_strength import TeamStrengthModel
from .markets import CONFIDENCE_HIGH, CONFIDENCE_LOW, MarketGenerator, PredictionMarket, overall_confidence_tier

logger = logging.getLogger(__name__)

DOMINANT_GAP = 0.25
HIGH_SCORING_XG = 2.8
LOW_SCORING_XG = 2.0


@dataclass(frozen=True)
class MatchPrediction:
    """Probabilistic view of one fixture for one prediction cycle."""

    match_id: int
    home_team: str
    away_team: str
    competition: str
    match_date: datetime
    status: MatchStatus
    home_win_prob: int
    draw_prob: int
    away_win_prob: int
    markets: Tuple[PredictionMarket, ...]
    ai_summary: str
    overall_confidence: str
    home_xg: float = 0.0
    away_xg: float = 0.0
    home_team_id: Optional[int] = None
    away_team_id: Optional[int] = None
    score: Optional[Tuple[int, int]] = None
    generated_at: Optional[datetime] = field(default=None, compare=False)

    @property
    def top_market(self) -> Optional[PredictionMarket]:
        return self.markets[0] if self.markets else None

    @property
    def label(self) -> str:
        return f"{self.home_team} vs {self.away_team}"

    @property
    def is_finished(self) -> bool:
        return self.status == MatchStatus.FINISHED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "match_id": self.match_id,
            "home_team": self.home_team,
            "away_team": self.away_team,
            "home_team_id": self.home_team_id,
            "away_team_id": self.away_team_id,
            "competition": self.competition,
            "match_date": self.match_date.isoformat(),
            "status": self.status.value,
            "score": list(self.score) if self.score else None,
            "home_win_prob": self.home_win_prob,
            "draw_prob": self.draw_prob,
            "away_win_prob": self.away_win_prob,
            "home_xg": self.home_xg,
            "away_xg": self.away_xg,
            "markets": [m.to_dict() for m in self.markets],
            "ai_summary": self.ai_summary,
            "overall_confidence": self.overall_confidence,
        }


def build_summary(
    home_team: str,
    away_team: str,
    distribution: OutcomeDistribution,
    markets: List[PredictionMarket],
    tier: str,
) -> str:
    """Short narrative: match profile, goal expectation, top picks, verdict."""
    gap = distribution.home_win - distribution.away_win
    if gap >= DOMINANT_GAP:
        profile = f"{home_team} are clear favourites at home against {away_team}."
    elif gap <= -DOMINANT_GAP:
        profile = f"{away_team} look the stronger side on their trip to {home_team}."
    else:
        profile = f"{home_team} and {away_team} look evenly matched."

    total_xg = distribution.home_xg + distribution.away_xg
    if total_xg >= HIGH_SCORING_XG:
        goals = f"Expect an open game (xG {distribution.home_xg:.1f}-{distribution.away_xg:.1f})."
    elif total_xg <= LOW_SCORING_XG:
        goals = f"Chances should be scarce (xG {distribution.home_xg:.1f}-{distribution.away_xg:.1f})."
    else:
        goals = f"Projected xG {distribution.home_xg:.1f}-{distribution.away_xg:.1f}."

    top = ", ".join(f"{m.market}: {m.pick} ({m.confidence}%)" for m in markets[:3])
    if tier == CONFIDENCE_HIGH:
        verdict = "Strong conviction on the top pick."
    elif tier == CONFIDENCE_LOW:
        verdict = "Low conviction; stake accordingly."
    else:
        verdict = "Moderate conviction."
    return f"{profile} {goals} Top picks: {top}. {verdict}"


class PredictionAssembler:
    """Runs strength lookup, probability engine and market generator for a fixture."""

    def __init__(
        self,
        strength_model: Optional[TeamStrengthModel] = None,
        engine: Optional[ProbabilityEngine] = None,
        generator: Optional[MarketGenerator] = None,
    ):
        self.strength_model = strength_model or TeamStrengthModel()
        self.engine = engine or ProbabilityEngine()
        self.generator = generator or MarketGenerator()

    def assemble(
        self,
        fixture: Fixture,
        seed: Optional[int] = None,
        generated_at: Optional[datetime] = None,
    ) -> MatchPrediction:
        home = self.strength_model.get(fixture.home_team.name, fixture.home_team.id)
        away = self.strength_model.get(fixture.away_team.name, fixture.away_team.id)

        distribution = self.engine.predict(home, away, seed=seed)
        markets = self.generator.build_markets(
            distribution, fixture.home_team.name, fixture.away_team.name
        )
        tier = overall_confidence_tier(markets)
        home_pct, draw_pct, away_pct = distribution.win_percentages()

        full_time = fixture.score.full_time
        score = (full_time.home, full_time.away) if full_time.is_complete else None

        return MatchPrediction(
            match_id=fixture.id,
            home_team=fixture.home_team.name,
            away_team=fixture.away_team.name,
            home_team_id=fixture.home_team.id,
            away_team_id=fixture.away_team.id,
            competition=fixture.competition.name,
            match_date=fixture.utc_date,
            status=fixture.status,
            score=score,
            home_win_prob=home_pct,
            draw_prob=draw_pct,
            away_win_prob=away_pct,
            home_xg=distribution.home_xg,
            away_xg=distribution.away_xg,
            markets=tuple(markets),
            ai_summary=build_summary(
                fixture.home_team.name, fixture.away_team.name, distribution, markets, tier
            ),
            overall_confidence=tier,
            generated_at=generated_at,
        )
