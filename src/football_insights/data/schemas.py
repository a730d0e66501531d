"""Validated fixture-source records.

Raw football-data.org payloads are untyped JSON; everything entering the
engine goes through these models first. Records that fail validation are
quarantined (logged and dropped) instead of propagating nulls downstream.
"""

import logging
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

logger = logging.getLogger(__name__)


class MatchStatus(str, Enum):
    """Lifecycle status reported by the fixture source."""

    SCHEDULED = "SCHEDULED"
    TIMED = "TIMED"
    IN_PLAY = "IN_PLAY"
    PAUSED = "PAUSED"
    LIVE = "LIVE"
    FINISHED = "FINISHED"
    AWARDED = "AWARDED"
    POSTPONED = "POSTPONED"
    SUSPENDED = "SUSPENDED"
    CANCELLED = "CANCELLED"

    @property
    def is_upcoming(self) -> bool:
        return self in (MatchStatus.SCHEDULED, MatchStatus.TIMED)

    @property
    def is_live(self) -> bool:
        return self in (MatchStatus.IN_PLAY, MatchStatus.PAUSED, MatchStatus.LIVE)


class _SourceModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class TeamRef(_SourceModel):
    id: Optional[int] = None
    name: str
    short_name: Optional[str] = Field(default=None, alias="shortName")
    crest: str = ""

    @model_validator(mode="before")
    @classmethod
    def fill_name(cls, data: Any) -> Any:
        # Some feeds only carry shortName
        if isinstance(data, dict) and not data.get("name") and data.get("shortName"):
            data = {**data, "name": data["shortName"]}
        return data

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("team name is blank")
        return v

    @field_validator("crest", mode="before")
    @classmethod
    def crest_default(cls, v: Any) -> str:
        return v or ""


class CompetitionRef(_SourceModel):
    id: Optional[int] = None
    name: str = "Unknown"
    emblem: str = ""

    @field_validator("name", "emblem", mode="before")
    @classmethod
    def blank_to_default(cls, v: Any, info) -> str:
        if v:
            return v
        return "Unknown" if info.field_name == "name" else ""


class ScoreLine(_SourceModel):
    home: Optional[int] = Field(default=None, ge=0)
    away: Optional[int] = Field(default=None, ge=0)

    @property
    def is_complete(self) -> bool:
        return self.home is not None and self.away is not None


class MatchScore(_SourceModel):
    full_time: ScoreLine = Field(default_factory=ScoreLine, alias="fullTime")
    half_time: ScoreLine = Field(default_factory=ScoreLine, alias="halfTime")


class Fixture(_SourceModel):
    """A scheduled or completed match."""

    id: int
    home_team: TeamRef = Field(alias="homeTeam")
    away_team: TeamRef = Field(alias="awayTeam")
    utc_date: datetime = Field(alias="utcDate")
    status: MatchStatus = MatchStatus.SCHEDULED
    score: MatchScore = Field(default_factory=MatchScore)
    competition: CompetitionRef = Field(default_factory=CompetitionRef)
    matchday: Optional[int] = None

    @field_validator("utc_date")
    @classmethod
    def to_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    @field_validator("score", mode="before")
    @classmethod
    def score_default(cls, v: Any) -> Any:
        return v or {}

    @field_validator("competition", mode="before")
    @classmethod
    def competition_default(cls, v: Any) -> Any:
        return v or {}

    @property
    def is_finished(self) -> bool:
        return self.status == MatchStatus.FINISHED

    @property
    def final_score(self) -> Optional[Tuple[int, int]]:
        """Full-time goals, only once the match is FINISHED with both sides known."""
        if not self.is_finished or not self.score.full_time.is_complete:
            return None
        return self.score.full_time.home, self.score.full_time.away

    @property
    def kickoff_date(self) -> date:
        return self.utc_date.date()

    @property
    def label(self) -> str:
        return f"{self.home_team.name} vs {self.away_team.name}"


class StandingEntry(_SourceModel):
    position: int
    team: TeamRef
    played_games: int = Field(alias="playedGames", ge=0)
    won: int = Field(default=0, ge=0)
    draw: int = Field(default=0, ge=0)
    lost: int = Field(default=0, ge=0)
    points: int = 0
    goals_for: int = Field(alias="goalsFor", ge=0)
    goals_against: int = Field(alias="goalsAgainst", ge=0)
    form: Optional[str] = None


class StandingsTable(_SourceModel):
    competition: str
    type: str = "TOTAL"  # TOTAL, HOME or AWAY
    table: List[StandingEntry] = Field(default_factory=list)


def parse_fixtures(payload: Optional[Dict[str, Any]]) -> List[Fixture]:
    """Validate the ``matches`` array of a fixture-source response.

    Malformed records are logged and skipped.
    """
    fixtures: List[Fixture] = []
    if not payload:
        return fixtures
    if not isinstance(payload, dict):
        logger.warning(f"Rejected fixtures payload of type {type(payload).__name__}")
        return fixtures

    matches = payload.get("matches") or []
    if not isinstance(matches, list):
        logger.warning("Rejected fixtures payload: matches is not a list")
        return fixtures

    for raw in matches:
        fixture = parse_fixture(raw)
        if fixture is not None:
            fixtures.append(fixture)

    rejected = len(matches) - len(fixtures)
    if rejected:
        logger.warning(f"Quarantined {rejected} malformed fixture(s)")
    return fixtures


def parse_fixture(raw: Any) -> Optional[Fixture]:
    """Validate a single match record, returning None if it is malformed."""
    try:
        return Fixture.model_validate(raw)
    except ValidationError as e:
        match_id = raw.get("id") if isinstance(raw, dict) else None
        logger.warning(f"Rejected fixture {match_id}: {e.error_count()} validation error(s)")
        logger.debug(str(e))
        return None


def parse_standings(payload: Optional[Dict[str, Any]]) -> List[StandingsTable]:
    """Validate a standings response into one table per type (TOTAL/HOME/AWAY)."""
    tables: List[StandingsTable] = []
    if not payload:
        return tables
    if not isinstance(payload, dict):
        logger.warning(f"Rejected standings payload of type {type(payload).__name__}")
        return tables

    competition_ref = payload.get("competition")
    competition = (competition_ref.get("name") if isinstance(competition_ref, dict) else None) or "Unknown"
    for standing in payload.get("standings") or []:
        if not isinstance(standing, dict):
            logger.warning(f"Rejected standings block in {competition}")
            continue
        rows: List[StandingEntry] = []
        for raw in standing.get("table") or []:
            try:
                rows.append(StandingEntry.model_validate(raw))
            except ValidationError as e:
                logger.warning(f"Rejected standings row in {competition}: {e.error_count()} error(s)")
        if rows:
            tables.append(StandingsTable(
                competition=competition,
                type=standing.get("type") or "TOTAL",
                table=rows,
            ))
    return tables
