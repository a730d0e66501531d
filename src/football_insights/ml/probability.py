"""Goal-model probability engine.

Expected goals per side come from team attack/defense ratings, a venue
adjustment and recent form. The closed-form joint distribution is an
independent Poisson grid with a Dixon-Coles correction for low scores; it is
blended with a Monte Carlo grid whose trials simulate each half separately,
which also yields the half-time and HT/FT distributions.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np
from scipy.stats import poisson

from ..config import get_settings
from .team_strength import TeamStrength

logger = logging.getLogger(__name__)

HOME = "home"
DRAW = "draw"
AWAY = "away"
RESULTS = (HOME, DRAW, AWAY)

MIN_XG = 0.2
MAX_XG = 4.0
FORM_WEIGHT = 0.08
FIRST_HALF_SHARE = 0.45  # share of goals scored before half-time
DIXON_COLES_RHO = -0.05
SIMULATION_WEIGHT = 0.5


def to_percentages(probabilities: Sequence[float]) -> List[int]:
    """Round probabilities to integer percentages summing to exactly 100.

    Uses the largest-remainder method so no outcome drifts by more than one
    point from its unrounded value.
    """
    total = sum(probabilities)
    if total <= 0:
        raise ValueError("probabilities must have a positive sum")
    scaled = [p / total * 100 for p in probabilities]
    floors = [math.floor(s) for s in scaled]
    shortfall = 100 - sum(floors)
    order = sorted(range(len(scaled)), key=lambda i: scaled[i] - floors[i], reverse=True)
    for i in order[:shortfall]:
        floors[i] += 1
    return floors


def _result_of(home_goals: int, away_goals: int) -> str:
    if home_goals > away_goals:
        return HOME
    if home_goals < away_goals:
        return AWAY
    return DRAW


@dataclass(frozen=True, eq=False)
class OutcomeDistribution:
    """Joint full-time score distribution plus half-time views.

    ``score_matrix[h, a]`` is P(home scores h, away scores a) for
    0 <= h, a <= max_goals; the matrix sums to 1 and every cell is positive.
    """

    home_xg: float
    away_xg: float
    score_matrix: np.ndarray
    halftime: Dict[str, float] = field(default_factory=dict)
    htft: Dict[Tuple[str, str], float] = field(default_factory=dict)
    simulations: int = 0
    seed: Optional[int] = None

    @property
    def max_goals(self) -> int:
        return self.score_matrix.shape[0] - 1

    @property
    def home_win(self) -> float:
        return float(np.tril(self.score_matrix, -1).sum())

    @property
    def draw(self) -> float:
        return float(np.trace(self.score_matrix))

    @property
    def away_win(self) -> float:
        return float(np.triu(self.score_matrix, 1).sum())

    @property
    def result_probabilities(self) -> Dict[str, float]:
        return {HOME: self.home_win, DRAW: self.draw, AWAY: self.away_win}

    def win_percentages(self) -> Tuple[int, int, int]:
        """(home, draw, away) integer percentages summing to 100."""
        home, draw, away = to_percentages([self.home_win, self.draw, self.away_win])
        return home, draw, away

    def probability(self, predicate: Callable[[int, int], bool]) -> float:
        """Total probability of all scorelines matching ``predicate(home, away)``."""
        n = self.max_goals + 1
        return float(sum(
            self.score_matrix[h, a]
            for h in range(n)
            for a in range(n)
            if predicate(h, a)
        ))

    def total_over(self, line: float) -> float:
        return self.probability(lambda h, a: h + a > line)

    def team_over(self, side: str, line: float) -> float:
        if side == HOME:
            return self.probability(lambda h, a: h > line)
        return self.probability(lambda h, a: a > line)

    def btts(self) -> float:
        return float(self.score_matrix[1:, 1:].sum())

    def odd_total(self) -> float:
        return self.probability(lambda h, a: (h + a) % 2 == 1)

    def most_likely_score(self) -> Tuple[int, int, float]:
        h, a = np.unravel_index(int(np.argmax(self.score_matrix)), self.score_matrix.shape)
        return int(h), int(a), float(self.score_matrix[h, a])

    def result_with(self, predicate: Callable[[int, int], bool]) -> Dict[str, float]:
        """Joint probability of each 1X2 result together with ``predicate``."""
        return {
            result: self.probability(lambda h, a, r=result: _result_of(h, a) == r and predicate(h, a))
            for result in RESULTS
        }

    def margin_probabilities(self) -> Dict[int, float]:
        """P(home goals - away goals = m) for every representable margin."""
        margins: Dict[int, float] = {}
        n = self.max_goals + 1
        for h in range(n):
            for a in range(n):
                margins[h - a] = margins.get(h - a, 0.0) + float(self.score_matrix[h, a])
        return margins

    def exact_totals(self) -> Dict[int, float]:
        totals: Dict[int, float] = {}
        n = self.max_goals + 1
        for h in range(n):
            for a in range(n):
                totals[h + a] = totals.get(h + a, 0.0) + float(self.score_matrix[h, a])
        return totals

    def first_goal(self) -> Dict[str, float]:
        """Who scores first under a Poisson scoring process ("none" = 0-0)."""
        no_goal = float(self.score_matrix[0, 0])
        total_xg = self.home_xg + self.away_xg
        return {
            HOME: (1 - no_goal) * self.home_xg / total_xg,
            AWAY: (1 - no_goal) * self.away_xg / total_xg,
            "none": no_goal,
        }


class ProbabilityEngine:
    """Turns two teams' strengths into an :class:`OutcomeDistribution`."""

    def __init__(
        self,
        simulations: Optional[int] = None,
        max_goals: Optional[int] = None,
        league_average_goals: Optional[float] = None,
        seed: Optional[int] = None,
    ):
        settings = get_settings()
        self.simulations = simulations or settings.simulations
        self.max_goals = max_goals or settings.max_goals
        self.league_average_goals = league_average_goals or settings.league_average_goals
        self.seed = seed if seed is not None else settings.simulation_seed
        self.default_venue_adjustment = settings.home_advantage

    def expected_goals(
        self,
        home: TeamStrength,
        away: TeamStrength,
        venue_adjustment: float,
    ) -> Tuple[float, float]:
        """Expected goals (home, away) clamped to a plausible range."""
        base = self.league_average_goals
        home_xg = (
            base
            * home.attack_for(at_home=True)
            * away.defense_for(at_home=False)
            * venue_adjustment
            * (1 + FORM_WEIGHT * home.form)
        )
        away_xg = (
            base
            * away.attack_for(at_home=False)
            * home.defense_for(at_home=True)
            / math.sqrt(venue_adjustment)
            * (1 + FORM_WEIGHT * away.form)
        )
        return (
            min(MAX_XG, max(MIN_XG, home_xg)),
            min(MAX_XG, max(MIN_XG, away_xg)),
        )

    def predict(
        self,
        home: TeamStrength,
        away: TeamStrength,
        venue_adjustment: Optional[float] = None,
        seed: Optional[int] = None,
    ) -> OutcomeDistribution:
        """Build the outcome distribution for one fixture.

        Args:
            home: Home team strength
            away: Away team strength
            venue_adjustment: Home expected-goals multiplier (1.0 = neutral)
            seed: RNG seed; falls back to the engine seed, else a fresh one

        Returns:
            OutcomeDistribution with full-time, half-time and HT/FT views
        """
        if venue_adjustment is None:
            venue_adjustment = self.default_venue_adjustment
        if venue_adjustment <= 0:
            raise ValueError(f"venue_adjustment must be positive, got {venue_adjustment}")

        seed = seed if seed is not None else self.seed
        home_xg, away_xg = self.expected_goals(home, away, venue_adjustment)

        analytic = self._poisson_matrix(home_xg, away_xg)
        empirical, halftime, htft = self._simulate(home_xg, away_xg, np.random.default_rng(seed))

        matrix = (1 - SIMULATION_WEIGHT) * analytic + SIMULATION_WEIGHT * empirical
        matrix /= matrix.sum()

        logger.debug(
            f"{home.team} v {away.team}: xG {home_xg:.2f}-{away_xg:.2f}, "
            f"1X2 {matrix[np.tril_indices_from(matrix, -1)].sum():.3f}/{np.trace(matrix):.3f}"
        )

        return OutcomeDistribution(
            home_xg=round(home_xg, 3),
            away_xg=round(away_xg, 3),
            score_matrix=matrix,
            halftime=halftime,
            htft=htft,
            simulations=self.simulations,
            seed=seed,
        )

    def _poisson_matrix(self, home_xg: float, away_xg: float) -> np.ndarray:
        goals = np.arange(self.max_goals + 1)
        matrix = np.outer(poisson.pmf(goals, home_xg), poisson.pmf(goals, away_xg))

        # Dixon-Coles adjustment of the four low-score cells
        rho = DIXON_COLES_RHO
        matrix[0, 0] *= 1 - home_xg * away_xg * rho
        matrix[0, 1] *= 1 + home_xg * rho
        matrix[1, 0] *= 1 + away_xg * rho
        matrix[1, 1] *= 1 - rho

        matrix = np.clip(matrix, 1e-12, None)
        return matrix / matrix.sum()

    def _simulate(
        self,
        home_xg: float,
        away_xg: float,
        rng: np.random.Generator,
    ) -> Tuple[np.ndarray, Dict[str, float], Dict[Tuple[str, str], float]]:
        n = self.simulations
        home_first = rng.poisson(home_xg * FIRST_HALF_SHARE, n)
        away_first = rng.poisson(away_xg * FIRST_HALF_SHARE, n)
        home_full = home_first + rng.poisson(home_xg * (1 - FIRST_HALF_SHARE), n)
        away_full = away_first + rng.poisson(away_xg * (1 - FIRST_HALF_SHARE), n)

        grid = np.zeros((self.max_goals + 1, self.max_goals + 1))
        np.add.at(
            grid,
            (np.minimum(home_full, self.max_goals), np.minimum(away_full, self.max_goals)),
            1,
        )
        grid /= n

        ht_codes = np.sign(home_first - away_first)
        ft_codes = np.sign(home_full - away_full)
        code_to_result = {1: HOME, 0: DRAW, -1: AWAY}

        # Add-one smoothing keeps rare half-time paths strictly positive
        halftime = {
            code_to_result[c]: (int(np.sum(ht_codes == c)) + 1) / (n + 3)
            for c in (1, 0, -1)
        }
        htft = {
            (code_to_result[h], code_to_result[f]): (int(np.sum((ht_codes == h) & (ft_codes == f))) + 1) / (n + 9)
            for h in (1, 0, -1)
            for f in (1, 0, -1)
        }
        return grid, halftime, htft
