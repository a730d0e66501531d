"""Market generator: maps an outcome distribution onto the betting catalog."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, NamedTuple, Optional, Sequence, Tuple

from ..config import get_settings
from ..ml.probability import OutcomeDistribution
from ..utils.odds import confidence_to_decimal_odds
from .catalog import (
    AWAY,
    DRAW,
    HOME,
    MARKET_CATALOG,
    MarketFamily,
    MarketSpec,
    PickSelection,
)

logger = logging.getLogger(__name__)

CONFIDENCE_HIGH = "High"
CONFIDENCE_MID = "Mid"
CONFIDENCE_LOW = "Low"

EXACT_TOTAL_CAP = 6  # "6+ Goals" bucket
MARGIN_CAP = 3  # "by 3+" bucket

# Double chance pairs in display order
DOUBLE_CHANCE_PAIRS: Tuple[Tuple[str, str], ...] = ((HOME, DRAW), (DRAW, AWAY), (HOME, AWAY))


@dataclass(frozen=True)
class PredictionMarket:
    """One catalog market with its pick, confidence and synthetic odds."""

    market: str
    pick: str
    confidence: int
    odds: float
    selection: Optional[PickSelection] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "market": self.market,
            "pick": self.pick,
            "confidence": self.confidence,
            "odds": self.odds,
            "selection": self.selection.to_dict() if self.selection else None,
        }


class _Outcome(NamedTuple):
    pick: str
    probability: float
    selection: PickSelection


def overall_confidence_tier(
    markets: Sequence[PredictionMarket],
    high_threshold: Optional[int] = None,
    mid_threshold: Optional[int] = None,
) -> str:
    """High / Mid / Low from the top-ranked market's confidence."""
    settings = get_settings()
    high = settings.high_confidence_threshold if high_threshold is None else high_threshold
    mid = settings.mid_confidence_threshold if mid_threshold is None else mid_threshold

    if not markets:
        return CONFIDENCE_LOW
    top = markets[0].confidence
    if top >= high:
        return CONFIDENCE_HIGH
    if top >= mid:
        return CONFIDENCE_MID
    return CONFIDENCE_LOW


def result_label(side: str, home_team: str, away_team: str) -> str:
    if side == HOME:
        return f"{home_team} Win"
    if side == AWAY:
        return f"{away_team} Win"
    return "Draw"


def double_chance_label(sides: Tuple[str, str], home_team: str, away_team: str) -> str:
    names = {HOME: home_team, DRAW: "Draw", AWAY: away_team}
    if DRAW in sides:
        team = home_team if HOME in sides else away_team
        return f"{team} or Draw"
    return f"{names[sides[0]]} or {names[sides[1]]}"


class MarketGenerator:
    """Builds the fixed market catalog for one fixture.

    Each market's pick is the most probable outcome of that market's
    partition of the joint score distribution. Confidence is that
    probability as an integer percentage clamped to the configured floor
    and ceiling; odds come from the confidence with the bookmaker margin
    applied.
    """

    def __init__(
        self,
        margin: Optional[float] = None,
        confidence_floor: Optional[int] = None,
        confidence_ceiling: Optional[int] = None,
    ):
        settings = get_settings()
        self.margin = settings.bookmaker_margin if margin is None else margin
        self.confidence_floor = settings.confidence_floor if confidence_floor is None else confidence_floor
        self.confidence_ceiling = (
            settings.confidence_ceiling if confidence_ceiling is None else confidence_ceiling
        )

    def to_confidence(self, probability: float) -> int:
        value = int(round(probability * 100))
        return max(self.confidence_floor, min(self.confidence_ceiling, value))

    def build_markets(
        self,
        distribution: OutcomeDistribution,
        home_team: str,
        away_team: str,
    ) -> List[PredictionMarket]:
        """Every catalog market, sorted by descending confidence.

        Ties keep catalog order. No market is ever dropped: when a market's
        outcomes are near-equal the first best outcome is still emitted.
        """
        markets = []
        for spec in MARKET_CATALOG:
            outcomes = self._outcomes(spec, distribution, home_team, away_team)
            best = max(outcomes, key=lambda o: o.probability)
            confidence = self.to_confidence(best.probability)
            markets.append(PredictionMarket(
                market=spec.name,
                pick=best.pick,
                confidence=confidence,
                odds=confidence_to_decimal_odds(confidence, self.margin),
                selection=best.selection,
            ))

        markets.sort(key=lambda m: m.confidence, reverse=True)
        logger.debug(
            f"{home_team} v {away_team}: top market {markets[0].market} "
            f"{markets[0].pick} ({markets[0].confidence}%)"
        )
        return markets

    # ------------------------------------------------------------------
    # Partitions
    # ------------------------------------------------------------------

    def _outcomes(
        self,
        spec: MarketSpec,
        dist: OutcomeDistribution,
        home_team: str,
        away_team: str,
    ) -> List[_Outcome]:
        family = spec.family
        names = {HOME: home_team, AWAY: away_team}
        results = dist.result_probabilities

        if family == MarketFamily.RESULT:
            return [
                _Outcome(result_label(side, home_team, away_team), p,
                         PickSelection(spec.name, family, sides=(side,)))
                for side, p in results.items()
            ]

        if family == MarketFamily.DOUBLE_CHANCE:
            return [
                _Outcome(double_chance_label(pair, home_team, away_team),
                         results[pair[0]] + results[pair[1]],
                         PickSelection(spec.name, family, sides=pair))
                for pair in DOUBLE_CHANCE_PAIRS
            ]

        if family == MarketFamily.DRAW_NO_BET:
            decisive = results[HOME] + results[AWAY]
            return [
                _Outcome(names[side], results[side] / decisive if decisive else 0.5,
                         PickSelection(spec.name, family, sides=(side,)))
                for side in (HOME, AWAY)
            ]

        if family == MarketFamily.BTTS:
            p_yes = dist.btts()
            return [
                _Outcome("Yes (GG)", p_yes, PickSelection(spec.name, family, btts=True)),
                _Outcome("No (NG)", 1 - p_yes, PickSelection(spec.name, family, btts=False)),
            ]

        if family == MarketFamily.TOTAL_GOALS:
            return self._over_under(spec, dist.total_over(spec.line))

        if family == MarketFamily.TEAM_GOALS:
            return self._over_under(spec, dist.team_over(spec.team, spec.line), team=spec.team)

        if family == MarketFamily.CORRECT_SCORE:
            h, a, p = dist.most_likely_score()
            return [_Outcome(f"{h}-{a}", p, PickSelection(spec.name, family, score=(h, a)))]

        if family == MarketFamily.EXACT_TOTAL:
            return self._exact_totals(spec, dist)

        if family == MarketFamily.HANDICAP:
            return self._handicap(spec, dist, names)

        if family == MarketFamily.HTFT:
            return [
                _Outcome(
                    f"{self._side_name(ht, names)}/{self._side_name(ft, names)}", p,
                    PickSelection(spec.name, family, sides=(ft,), halftime=ht),
                )
                for (ht, ft), p in dist.htft.items()
            ]

        if family == MarketFamily.HALFTIME:
            return [
                _Outcome(f"{names[side]} Lead" if side != DRAW else "Draw", p,
                         PickSelection(spec.name, family, halftime=side))
                for side, p in dist.halftime.items()
            ]

        if family == MarketFamily.WINNING_MARGIN:
            return self._winning_margin(spec, dist, names)

        if family in (MarketFamily.FIRST_GOAL, MarketFamily.LAST_GOAL):
            # Under a constant-rate scoring process first and last scorer share a distribution
            return [
                _Outcome(names.get(side, "No Goal"), p, PickSelection(spec.name, family, scorer=side))
                for side, p in dist.first_goal().items()
            ]

        if family == MarketFamily.ODD_EVEN:
            p_odd = dist.odd_total()
            return [
                _Outcome("Odd", p_odd, PickSelection(spec.name, family, parity="odd")),
                _Outcome("Even", 1 - p_odd, PickSelection(spec.name, family, parity="even")),
            ]

        if family in (MarketFamily.RESULT_TOTAL, MarketFamily.RESULT_BTTS,
                      MarketFamily.DOUBLE_CHANCE_TOTAL, MarketFamily.DOUBLE_CHANCE_BTTS):
            return self._combo(spec, dist, home_team, away_team)

        raise ValueError(f"No partition defined for market {spec.name}")

    @staticmethod
    def _side_name(side: str, names: Dict[str, str]) -> str:
        return names.get(side, "Draw")

    @staticmethod
    def _over_under(spec: MarketSpec, p_over: float, team: Optional[str] = None) -> List[_Outcome]:
        line = spec.line
        return [
            _Outcome(f"Over {line}", p_over,
                     PickSelection(spec.name, spec.family, goals="over", line=line, team=team)),
            _Outcome(f"Under {line}", 1 - p_over,
                     PickSelection(spec.name, spec.family, goals="under", line=line, team=team)),
        ]

    @staticmethod
    def _exact_totals(spec: MarketSpec, dist: OutcomeDistribution) -> List[_Outcome]:
        totals = dist.exact_totals()
        outcomes = [
            _Outcome(f"{n} Goals", totals.get(n, 0.0),
                     PickSelection(spec.name, spec.family, total_goals=n))
            for n in range(EXACT_TOTAL_CAP)
        ]
        p_cap = sum(p for n, p in totals.items() if n >= EXACT_TOTAL_CAP)
        outcomes.append(_Outcome(
            f"{EXACT_TOTAL_CAP}+ Goals", p_cap,
            PickSelection(spec.name, spec.family, total_goals=EXACT_TOTAL_CAP, total_or_more=True),
        ))
        return outcomes

    @staticmethod
    def _handicap(spec: MarketSpec, dist: OutcomeDistribution, names: Dict[str, str]) -> List[_Outcome]:
        # A -N.5 handicap wins when the side wins by more than N goals
        need = int(-spec.line + 0.5)
        margins = dist.margin_probabilities()
        p_home = sum(p for m, p in margins.items() if m >= need)
        p_away = sum(p for m, p in margins.items() if -m >= need)
        return [
            _Outcome(f"{names[side]} {spec.line}", p,
                     PickSelection(spec.name, spec.family, sides=(side,), handicap=spec.line))
            for side, p in ((HOME, p_home), (AWAY, p_away))
        ]

    @staticmethod
    def _winning_margin(spec: MarketSpec, dist: OutcomeDistribution, names: Dict[str, str]) -> List[_Outcome]:
        margins = dist.margin_probabilities()
        outcomes = [_Outcome("Draw", margins.get(0, 0.0), PickSelection(spec.name, spec.family, sides=(DRAW,)))]
        for side, sign in ((HOME, 1), (AWAY, -1)):
            for bucket in range(1, MARGIN_CAP + 1):
                if bucket < MARGIN_CAP:
                    p = margins.get(sign * bucket, 0.0)
                    label = f"{names[side]} by {bucket}"
                else:
                    p = sum(v for m, v in margins.items() if sign * m >= MARGIN_CAP)
                    label = f"{names[side]} by {MARGIN_CAP}+"
                outcomes.append(_Outcome(
                    label, p, PickSelection(spec.name, spec.family, sides=(side,), margin=bucket),
                ))
        return outcomes

    @staticmethod
    def _combo(spec: MarketSpec, dist: OutcomeDistribution, home_team: str, away_team: str) -> List[_Outcome]:
        family = spec.family
        if family in (MarketFamily.RESULT_TOTAL, MarketFamily.DOUBLE_CHANCE_TOTAL):
            legs = [
                ("over", f"Over {spec.line}", dist.result_with(lambda h, a: h + a > spec.line)),
                ("under", f"Under {spec.line}", dist.result_with(lambda h, a: h + a < spec.line)),
            ]
        else:
            legs = [
                (True, "GG", dist.result_with(lambda h, a: h > 0 and a > 0)),
                (False, "NG", dist.result_with(lambda h, a: h == 0 or a == 0)),
            ]

        if family in (MarketFamily.RESULT_TOTAL, MarketFamily.RESULT_BTTS):
            groups = [((side,), result_label(side, home_team, away_team)) for side in (HOME, DRAW, AWAY)]
        else:
            groups = [(pair, double_chance_label(pair, home_team, away_team)) for pair in DOUBLE_CHANCE_PAIRS]

        outcomes = []
        for sides, side_label in groups:
            for value, leg_label, joint in legs:
                extra: Dict[str, Any]
                if isinstance(value, bool):
                    extra = {"btts": value}
                else:
                    extra = {"goals": value, "line": spec.line}
                outcomes.append(_Outcome(
                    f"{side_label} & {leg_label}",
                    sum(joint[s] for s in sides),
                    PickSelection(spec.name, family, sides=sides, **extra),
                ))
        return outcomes
