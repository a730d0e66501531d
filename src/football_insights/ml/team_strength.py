"""Per-team attack/defense ratings refreshed from league standings."""

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from ..data.schemas import StandingEntry, StandingsTable

logger = logging.getLogger(__name__)

# Regress ratings towards league average until a team has played this many games
SHRINKAGE_GAMES = 3.0
FORM_DECAY = 0.8
FORM_POINTS = {"W": 1.0, "D": 0.0, "L": -1.0}


@dataclass(frozen=True)
class TeamStrength:
    """Multiplicative ratings relative to league average (1.0 = average).

    ``defense`` measures goals conceded, so lower is better.
    """

    team: str
    attack: float = 1.0
    defense: float = 1.0
    home_attack: Optional[float] = None
    home_defense: Optional[float] = None
    away_attack: Optional[float] = None
    away_defense: Optional[float] = None
    form: float = 0.0  # recency-weighted, -1 (all losses) .. 1 (all wins)
    is_default: bool = False

    def attack_for(self, at_home: bool) -> float:
        split = self.home_attack if at_home else self.away_attack
        return split if split is not None else self.attack

    def defense_for(self, at_home: bool) -> float:
        split = self.home_defense if at_home else self.away_defense
        return split if split is not None else self.defense


def form_signal(results: Iterable[str]) -> float:
    """Recency-weighted form from W/D/L results, most recent first."""
    total = 0.0
    weights = 0.0
    for i, result in enumerate(r.strip().upper() for r in results if r and r.strip()):
        if result not in FORM_POINTS:
            continue
        weight = FORM_DECAY ** i
        total += FORM_POINTS[result] * weight
        weights += weight
    return total / weights if weights else 0.0


def _normalize(name: str) -> str:
    return " ".join(name.lower().split())


def _shrunk(ratio: float, games: int) -> float:
    weight = games / (games + SHRINKAGE_GAMES)
    return 1.0 + (ratio - 1.0) * weight


def _table_ratings(rows: List[StandingEntry]) -> Dict[str, tuple]:
    """(attack, defense) per team for one table, relative to that table's average."""
    played = sum(r.played_games for r in rows)
    if played == 0:
        return {}
    league_avg = sum(r.goals_for for r in rows) / played
    if league_avg <= 0:
        return {}

    ratings = {}
    for row in rows:
        if row.played_games == 0:
            continue
        attack = (row.goals_for / row.played_games) / league_avg
        defense = (row.goals_against / row.played_games) / league_avg
        ratings[_normalize(row.team.name)] = (
            _shrunk(attack, row.played_games),
            _shrunk(defense, row.played_games),
        )
    return ratings


class TeamStrengthModel:
    """Lookup of team ratings with a league-average fallback."""

    def __init__(self):
        self._ratings: Dict[str, TeamStrength] = {}
        self._by_id: Dict[int, str] = {}
        self.last_refreshed: Optional[datetime] = None

    def __len__(self) -> int:
        return len(self._ratings)

    def __contains__(self, team_name: str) -> bool:
        return _normalize(team_name) in self._ratings

    def refresh_from_standings(self, tables: List[StandingsTable]) -> int:
        """Rebuild ratings from TOTAL (and optional HOME/AWAY) standings tables.

        The new ratings replace the old set in one assignment, so readers
        never observe a half-built model.

        Returns:
            Number of teams rated
        """
        totals: Dict[str, TeamStrength] = {}
        by_id: Dict[int, str] = {}
        splits: Dict[str, Dict[str, tuple]] = {}

        for table in tables:
            kind = table.type.upper()
            if kind == "TOTAL":
                ratings = _table_ratings(table.table)
                for row in table.table:
                    key = _normalize(row.team.name)
                    if key not in ratings:
                        continue
                    attack, defense = ratings[key]
                    form = form_signal(row.form.split(",")) if row.form else 0.0
                    totals[key] = TeamStrength(
                        team=row.team.name,
                        attack=round(attack, 4),
                        defense=round(defense, 4),
                        form=round(form, 4),
                    )
                    if row.team.id is not None:
                        by_id[row.team.id] = key
            elif kind in ("HOME", "AWAY"):
                splits.setdefault(kind, {}).update(_table_ratings(table.table))

        for key, strength in list(totals.items()):
            home = splits.get("HOME", {}).get(key)
            away = splits.get("AWAY", {}).get(key)
            totals[key] = replace(
                strength,
                home_attack=round(home[0], 4) if home else None,
                home_defense=round(home[1], 4) if home else None,
                away_attack=round(away[0], 4) if away else None,
                away_defense=round(away[1], 4) if away else None,
            )

        if not totals:
            logger.warning("Standings refresh produced no ratings; keeping previous model")
            return 0

        self._ratings = totals
        self._by_id = by_id
        self.last_refreshed = datetime.now(timezone.utc)
        logger.info(f"Team strength model refreshed: {len(totals)} teams")
        return len(totals)

    def update_form(self, team_name: str, recent_results: Iterable[str]) -> TeamStrength:
        """Override a team's form from its recent results (most recent first)."""
        current = self.get(team_name)
        updated = replace(current, form=round(form_signal(recent_results), 4))
        if not current.is_default:
            self._ratings = {**self._ratings, _normalize(team_name): updated}
        return updated

    def get(self, team_name: str, team_id: Optional[int] = None) -> TeamStrength:
        """Ratings for a team, falling back to league average when unknown."""
        key = _normalize(team_name)
        strength = self._ratings.get(key)
        if strength is None and team_id is not None and team_id in self._by_id:
            strength = self._ratings.get(self._by_id[team_id])
        if strength is None:
            logger.debug(f"No rating for {team_name}; using league average")
            return self.default(team_name)
        return strength

    @staticmethod
    def default(team_name: str) -> TeamStrength:
        return TeamStrength(team=team_name, is_default=True)
