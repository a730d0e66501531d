"""Fixture source access and validated input records."""

from .football_api import FixtureRequestRejected, FixtureSourceError, FootballDataClient
from .schemas import (
    CompetitionRef,
    Fixture,
    MatchScore,
    MatchStatus,
    ScoreLine,
    StandingEntry,
    StandingsTable,
    TeamRef,
    parse_fixture,
    parse_fixtures,
    parse_standings,
)

__all__ = [
    "FixtureRequestRejected",
    "FixtureSourceError",
    "FootballDataClient",
    "CompetitionRef",
    "Fixture",
    "MatchScore",
    "MatchStatus",
    "ScoreLine",
    "StandingEntry",
    "StandingsTable",
    "TeamRef",
    "parse_fixture",
    "parse_fixtures",
    "parse_standings",
]
