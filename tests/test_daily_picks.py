"""Tests for daily pick selection and publication."""

from datetime import date, datetime, timezone
from unittest.mock import Mock

import pytest

from football_insights.analysis.daily_picks import (
    DailyPicksService,
    pick_date_for,
    select_daily_picks,
)
from football_insights.database import DailyPick, get_session

NOW = datetime(2026, 3, 2, 6, 0, tzinfo=timezone.utc)


@pytest.fixture
def predictions(make_prediction):
    # Confidences 90, 85, ... 45
    return [make_prediction(match_id=i, confidence=90 - 5 * i) for i in range(10)]


class TestSelectDailyPicks:
    """Ranking and de-duplication."""

    def test_top_five_by_confidence(self, predictions):
        selected = select_daily_picks(predictions, count=5)
        assert [p.market.confidence for p in selected] == [90, 85, 80, 75, 70]
        assert [p.prediction.match_id for p in selected] == [0, 1, 2, 3, 4]

    def test_default_count_from_settings(self, predictions):
        assert len(select_daily_picks(predictions)) == 5

    def test_one_pick_per_fixture(self, make_prediction):
        duplicated = [make_prediction(1, confidence=80), make_prediction(1, confidence=75), make_prediction(2, 60)]
        selected = select_daily_picks(duplicated, count=5)
        assert [p.prediction.match_id for p in selected] == [1, 2]
        assert selected[0].market.confidence == 80

    def test_ties_broken_by_kickoff(self, make_prediction):
        late = make_prediction(1, confidence=70, match_date=datetime(2026, 3, 2, 20, 0, tzinfo=timezone.utc))
        early = make_prediction(2, confidence=70, match_date=datetime(2026, 3, 2, 12, 30, tzinfo=timezone.utc))
        selected = select_daily_picks([late, early], count=1)
        assert selected[0].prediction.match_id == 2

    def test_fewer_candidates_than_count(self, make_prediction):
        assert len(select_daily_picks([make_prediction(1)], count=5)) == 1
        assert select_daily_picks([], count=5) == []


class TestPickDate:
    """UTC calendar day."""

    def test_utc_date(self):
        assert pick_date_for(NOW) == "2026-03-02"

    def test_converts_offsets_to_utc(self):
        from datetime import timedelta

        late_evening_new_york = datetime(2026, 3, 1, 22, 0, tzinfo=timezone(timedelta(hours=-5)))
        assert pick_date_for(late_evening_new_york) == "2026-03-02"


class TestDailyPicksService:
    """Once-per-day publication."""

    def test_generates_and_stores(self, db, predictions):
        service = DailyPicksService(lambda: predictions, count=5)

        picks = service.generate_for_today(now=NOW)

        assert len(picks) == 5
        stored = service.get_picks_for_date("2026-03-02")
        assert [p.confidence for p in stored] == [90, 85, 80, 75, 70]
        first = stored[0]
        assert first.home_team == "Home 0"
        assert first.competition == "Premier League"
        assert first.market == "1X2"
        assert first.pick == "Home 0 Win"
        assert first.confidence_tier == "High"
        assert first.result == "pending"
        assert first.selection["family"] == "result"
        assert first.match_date == datetime(2026, 3, 2, 15, 0)

    def test_second_run_same_day_is_noop(self, db, predictions):
        provider = Mock(return_value=predictions)
        service = DailyPicksService(provider, count=5)

        first = service.generate_for_today(now=NOW)
        second = service.generate_for_today(now=NOW.replace(hour=18))

        assert provider.call_count == 1
        assert [p.id for p in second] == sorted(p.id for p in first)
        assert len(service.get_picks_for_date("2026-03-02")) == 5

    def test_new_day_generates_again(self, db, predictions):
        service = DailyPicksService(lambda: predictions, count=3)
        service.generate_for_today(now=NOW)
        service.generate_for_today(now=datetime(2026, 3, 3, 6, 0, tzinfo=timezone.utc))
        assert len(service.get_picks_for_date("2026-03-03")) == 3

    def test_no_predictions(self, db):
        service = DailyPicksService(lambda: [], count=5)
        assert service.generate_for_today(now=NOW) == []
        assert service.get_picks_for_date("2026-03-02") == []

    def test_concurrent_publication_keeps_stored_set(self, db, predictions):
        """A racing writer's rows win; ours are rolled back."""

        def racing_provider():
            with get_session() as session:
                session.add(DailyPick(
                    pick_date="2026-03-02",
                    match_id=0,
                    market="1X2",
                    pick="Draw",
                    confidence=50,
                    confidence_tier="Mid",
                    odds=1.87,
                    home_team="Home 0",
                    away_team="Away 0",
                    competition="Premier League",
                    match_date=datetime(2026, 3, 2, 15, 0),
                ))
            return predictions

        service = DailyPicksService(racing_provider, count=5)
        picks = service.generate_for_today(now=NOW)

        assert len(picks) == 1
        assert picks[0].pick == "Draw"

    def test_history_grouped_newest_first(self, db, predictions):
        service = DailyPicksService(lambda: predictions, count=2)
        service.generate_for_today(now=NOW)
        service.generate_for_today(now=datetime(2026, 3, 3, 6, 0, tzinfo=timezone.utc))

        history = service.get_history()
        assert list(history) == ["2026-03-03", "2026-03-02"]
        assert [p.confidence for p in history["2026-03-02"]] == [90, 85]

        recent = service.get_history(since=date(2026, 3, 3))
        assert list(recent) == ["2026-03-03"]

    def test_concurrent_disjoint_set_is_rejected(self, db, make_prediction):
        """Only one set per date is stored even when the fixtures differ."""
        ours = [make_prediction(match_id=i, confidence=90 - i) for i in range(5)]
        theirs = [make_prediction(match_id=100 + i, confidence=60 - i) for i in range(5)]

        def racing_provider():
            DailyPicksService(lambda: theirs, count=5).generate_for_today(now=NOW)
            return ours

        picks = DailyPicksService(racing_provider, count=5).generate_for_today(now=NOW)

        stored = DailyPicksService.get_picks_for_date("2026-03-02")
        assert len(stored) == 5
        assert sorted(p.match_id for p in stored) == [100, 101, 102, 103, 104]
        assert sorted(p.match_id for p in picks) == [100, 101, 102, 103, 104]
