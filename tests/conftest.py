"""Pytest fixtures for the football insights test suite."""

from datetime import datetime, timezone

import pytest

from football_insights.config import get_settings
from football_insights.database import init_db, reset_engine
from football_insights.utils.logging import reset_logging


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Point every test at a throwaway SQLite file and log directory."""
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'test.db'}")
    monkeypatch.setenv("LOG_TO_FILE", "false")
    monkeypatch.setenv("DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("LOGS_DIR", str(tmp_path / "logs"))
    monkeypatch.delenv("FOOTBALL_DATA_API_KEY", raising=False)
    monkeypatch.delenv("SIMULATION_SEED", raising=False)
    get_settings.cache_clear()
    reset_engine()
    yield
    reset_logging()
    reset_engine()
    get_settings.cache_clear()


@pytest.fixture
def db():
    """Initialised database tables."""
    init_db()


@pytest.fixture
def make_fixture():
    """Build a validated Fixture from football-data.org style fields."""
    from football_insights.data.schemas import Fixture

    def _make(
        match_id=100,
        home="Arsenal",
        away="Chelsea",
        status="FINISHED",
        score=(2, 1),
        utc_date="2026-03-01T15:00:00Z",
        competition="Premier League",
    ):
        full_time = {"home": score[0], "away": score[1]} if score else {"home": None, "away": None}
        return Fixture.model_validate({
            "id": match_id,
            "utcDate": utc_date,
            "status": status,
            "homeTeam": {"id": match_id * 10 + 1, "name": home},
            "awayTeam": {"id": match_id * 10 + 2, "name": away},
            "score": {"fullTime": full_time, "halfTime": {"home": None, "away": None}},
            "competition": {"id": 2021, "name": competition},
        })

    return _make


@pytest.fixture
def make_prediction():
    """Build a MatchPrediction with a single top market."""
    from football_insights.analysis.catalog import MarketFamily, PickSelection
    from football_insights.analysis.markets import PredictionMarket
    from football_insights.analysis.predictions import MatchPrediction
    from football_insights.data.schemas import MatchStatus
    from football_insights.utils.odds import confidence_to_decimal_odds

    def _make(
        match_id,
        confidence=70,
        odds=None,
        match_date=None,
        status=MatchStatus.TIMED,
        competition="Premier League",
    ):
        home = f"Home {match_id}"
        market = PredictionMarket(
            market="1X2",
            pick=f"{home} Win",
            confidence=confidence,
            odds=confidence_to_decimal_odds(confidence, 0.07) if odds is None else odds,
            selection=PickSelection("1X2", MarketFamily.RESULT, sides=("home",)),
        )
        return MatchPrediction(
            match_id=match_id,
            home_team=home,
            away_team=f"Away {match_id}",
            competition=competition,
            match_date=match_date or datetime(2026, 3, 2, 15, 0, tzinfo=timezone.utc),
            status=status,
            home_win_prob=50,
            draw_prob=25,
            away_win_prob=25,
            markets=(market,),
            ai_summary=f"Summary for match {match_id}",
            overall_confidence="High",
        )

    return _make


@pytest.fixture
def standings_payload():
    """football-data.org standings response with a strong and a weak side."""

    def _row(position, team_id, name, played, goals_for, goals_against, form=None):
        return {
            "position": position,
            "team": {"id": team_id, "name": name},
            "playedGames": played,
            "goalsFor": goals_for,
            "goalsAgainst": goals_against,
            "form": form,
        }

    return {
        "competition": {"id": 2021, "name": "Premier League"},
        "standings": [
            {
                "type": "TOTAL",
                "table": [
                    _row(1, 1001, "Arsenal", 20, 50, 12, "W,W,W,D,W"),
                    _row(2, 1003, "Brighton", 20, 28, 28, "D,L,W,D,W"),
                    _row(3, 1002, "Chelsea", 20, 12, 40, "L,L,D,L,L"),
                ],
            },
            {
                "type": "HOME",
                "table": [
                    _row(1, 1001, "Arsenal", 10, 30, 4),
                    _row(2, 1003, "Brighton", 10, 15, 12),
                    _row(3, 1002, "Chelsea", 10, 8, 16),
                ],
            },
        ],
    }
