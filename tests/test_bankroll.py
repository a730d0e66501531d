"""Tests for bankroll logging, settlement and streaks."""

from datetime import datetime
from unittest.mock import Mock, patch

import pytest

from football_insights.database import DailyPick, get_session
from football_insights.tracking.bankroll import BankrollTracker


@pytest.fixture
def sleep():
    return Mock()


@pytest.fixture
def client():
    client = Mock()
    client.get_match.return_value = None
    return client


@pytest.fixture
def tracker(db, client, sleep):
    return BankrollTracker(client=client, lookup_delay=6.0, sleep=sleep)


def _log(tracker, match_id=100, market="1X2", pick="Arsenal Win", stake=10.0, odds=2.0, **kwargs):
    return tracker.log_pick(
        match_label="Arsenal vs Chelsea",
        market=market,
        pick=pick,
        stake=stake,
        odds=odds,
        match_id=match_id,
        home_team="Arsenal",
        away_team="Chelsea",
        **kwargs,
    )


def _daily_pick(match_id, pick="Arsenal Win", pick_date="2026-03-01"):
    row = DailyPick(
        pick_date=pick_date,
        match_id=match_id,
        market="1X2",
        pick=pick,
        confidence=70,
        confidence_tier="High",
        odds=1.34,
        home_team="Arsenal",
        away_team="Chelsea",
        competition="Premier League",
        match_date=datetime(2026, 3, 1, 15, 0),
    )
    with get_session() as session:
        session.add(row)
    return row


class TestLogPick:
    """Creating pending entries."""

    def test_log_pick_pending(self, tracker):
        entry = _log(tracker)
        assert entry.id is not None
        assert entry.result == "pending"
        assert entry.payout == 0.0
        assert tracker.list_entries()[0].id == entry.id

    def test_default_stake(self, tracker):
        assert _log(tracker, stake=None).stake == 10.0

    def test_invalid_stake_and_odds(self, tracker):
        with pytest.raises(ValueError):
            _log(tracker, stake=-5)
        with pytest.raises(ValueError):
            _log(tracker, odds=0.5)

    def test_log_prediction_market_keeps_selection(self, tracker, make_prediction):
        prediction = make_prediction(100, confidence=70)
        entry = tracker.log_prediction_market(prediction, prediction.markets[0], stake=5)
        assert entry.match_label == "Home 100 vs Away 100"
        assert entry.selection == {"market": "1X2", "family": "result", "sides": ["home"]}
        assert entry.odds == prediction.markets[0].odds
        assert entry.match_date == datetime(2026, 3, 2, 15, 0)


class TestAutoResolve:
    """Settlement passes over pending entries."""

    def test_won_entry_paid(self, tracker, make_fixture):
        entry = _log(tracker, stake=10.0, odds=2.5)

        report = tracker.auto_resolve([make_fixture(score=(2, 1))])

        assert report.won == 1
        assert report.settled == 1
        assert report.settled_ids == [entry.id]
        settled = tracker.list_entries()[0]
        assert settled.result == "won"
        assert settled.payout == 25.0
        assert settled.settled_at is not None

    def test_lost_and_void(self, tracker, make_fixture):
        _log(tracker, market="1X2", pick="Chelsea Win")
        _log(tracker, market="No Bet (Draw No Bet)", pick="Arsenal", stake=8.0, odds=1.5)

        report = tracker.auto_resolve([make_fixture(score=(1, 1))])

        assert report.lost == 1
        assert report.void == 1
        by_market = {e.market: e for e in tracker.list_entries()}
        assert by_market["1X2"].payout == 0.0
        assert by_market["No Bet (Draw No Bet)"].payout == 8.0

    def test_second_pass_is_noop(self, tracker, make_fixture):
        _log(tracker)
        fixtures = [make_fixture(score=(2, 1))]
        tracker.auto_resolve(fixtures)

        report = tracker.auto_resolve(fixtures)

        assert report.checked == 0
        assert report.settled == 0
        assert tracker.summary().wins == 1

    def test_unfinished_match_stays_pending(self, tracker, make_fixture):
        _log(tracker)
        report = tracker.auto_resolve([make_fixture(status="IN_PLAY", score=(1, 0))])
        assert report.not_finished == 1
        assert tracker.list_entries()[0].result == "pending"

    def test_unresolvable_stays_pending(self, tracker, make_fixture):
        _log(tracker, market="HT/FT", pick="Arsenal/Arsenal")
        report = tracker.auto_resolve([make_fixture(score=(2, 0))])
        assert report.unresolvable == 1
        assert report.settled == 0
        assert tracker.list_entries()[0].result == "pending"

    def test_entry_without_match_id_skipped(self, tracker, client):
        _log(tracker, match_id=None)
        report = tracker.auto_resolve([])
        assert report.checked == 0
        client.get_match.assert_not_called()

    def test_lookups_are_spaced(self, tracker, client, sleep, make_fixture):
        _log(tracker, match_id=1)
        _log(tracker, match_id=2)
        _log(tracker, match_id=3)
        client.get_match.side_effect = lambda match_id: make_fixture(match_id=match_id, score=(2, 1))

        report = tracker.auto_resolve()

        assert report.lookups == 3
        assert [c.args[0] for c in client.get_match.call_args_list] == [1, 2, 3]
        assert sleep.call_count == 2
        sleep.assert_called_with(6.0)
        assert report.won == 3

    def test_known_fixtures_skip_lookup(self, tracker, client, make_fixture):
        _log(tracker, match_id=100)
        tracker.auto_resolve([make_fixture(match_id=100)])
        client.get_match.assert_not_called()

    def test_failed_lookup_leaves_pending(self, tracker, client):
        _log(tracker, match_id=55)
        report = tracker.auto_resolve()
        assert report.lookups == 1
        assert report.checked == 0
        assert tracker.list_entries()[0].result == "pending"


    def test_lookup_exception_isolated(self, tracker, client, make_fixture):
        _log(tracker, match_id=1)
        _log(tracker, match_id=2)

        def lookup(match_id):
            if match_id == 1:
                raise ValueError("Expecting value")
            return make_fixture(match_id=match_id, score=(2, 1))

        client.get_match.side_effect = lookup
        report = tracker.auto_resolve()

        assert report.errors == 1
        assert report.won == 1
        results = {e.match_id: e.result for e in tracker.list_entries()}
        assert results == {1: "pending", 2: "won"}

    def test_failing_entry_does_not_block_others(self, tracker, make_fixture):
        from football_insights.tracking import bankroll

        _log(tracker, market="Broken", pick="???")
        good = _log(tracker)
        real_grade = bankroll.grade_fixture

        def grade(fixture, market, pick, selection):
            if market == "Broken":
                raise TypeError("unexpected selection key")
            return real_grade(fixture, market, pick, selection)

        with patch.object(bankroll, "grade_fixture", side_effect=grade):
            report = tracker.auto_resolve([make_fixture(score=(2, 1))])

        assert report.errors == 1
        assert report.settled_ids == [good.id]
        results = {e.market: e.result for e in tracker.list_entries()}
        assert results == {"Broken": "pending", "1X2": "won"}

    def test_unpriced_win_has_unknown_payout(self, tracker, make_fixture):
        entry = _log(tracker, odds=None)
        assert entry.odds is None

        tracker.auto_resolve([make_fixture(score=(2, 1))])

        settled = tracker.list_entries()[0]
        assert settled.result == "won"
        assert settled.payout is None


class TestDailyPickSettlement:
    """Daily picks settle and drive the streak."""

    def test_daily_pick_settled_with_streak(self, tracker, make_fixture):
        _daily_pick(100)
        tracker.auto_resolve([make_fixture(match_id=100, score=(2, 1))])

        streak = tracker.get_streak()
        assert streak.current_streak == 1
        assert streak.longest_win_streak == 1
        assert streak.last_result == "won"

    def test_streak_flips_on_loss(self, tracker, make_fixture):
        _daily_pick(1)
        _daily_pick(2)
        _daily_pick(3, pick="Chelsea Win")
        tracker.auto_resolve([
            make_fixture(match_id=1, score=(1, 0)),
            make_fixture(match_id=2, score=(3, 0)),
            make_fixture(match_id=3, score=(2, 0)),
        ])

        streak = tracker.get_streak()
        assert streak.current_streak == -1
        assert streak.longest_win_streak == 2
        assert streak.longest_loss_streak == 1

    def test_void_keeps_streak(self, tracker):
        pick = _daily_pick(1)
        tracker.record_pick_result(pick.id, "won")
        other = _daily_pick(2)
        tracker.record_pick_result(other.id, "void")
        streak = tracker.get_streak()
        assert streak.current_streak == 1
        assert streak.last_result == "void"

    def test_record_pick_result_only_once(self, tracker):
        pick = _daily_pick(1)
        assert tracker.record_pick_result(pick.id, "LOST") is True
        assert tracker.record_pick_result(pick.id, "won") is False
        assert tracker.get_streak().current_streak == -1

    def test_record_pick_result_rejects_unknown(self, tracker):
        pick = _daily_pick(1)
        with pytest.raises(ValueError):
            tracker.record_pick_result(pick.id, "pending")
        assert tracker.record_pick_result(9999, "won") is False


class TestSummary:
    """Bankroll totals."""

    def test_summary(self, tracker, make_fixture):
        _log(tracker, match_id=1, pick="Arsenal Win", stake=10.0, odds=2.0)
        _log(tracker, match_id=2, pick="Chelsea Win", stake=10.0, odds=3.0)
        _log(tracker, match_id=3, stake=5.0, odds=1.8)
        tracker.auto_resolve([
            make_fixture(match_id=1, score=(2, 0)),
            make_fixture(match_id=2, score=(2, 0)),
            make_fixture(match_id=3, status="TIMED", score=None),
        ])

        summary = tracker.summary()

        assert summary.total_bets == 3
        assert summary.wins == 1
        assert summary.losses == 1
        assert summary.pending == 1
        assert summary.pending_stake == 5.0
        assert summary.total_staked == 20.0
        assert summary.total_returns == 20.0
        assert summary.profit == 0.0
        assert summary.roi == 0.0
        assert summary.win_rate == 50.0

    def test_unpriced_win_excluded_from_returns(self, tracker, make_fixture):
        _log(tracker, match_id=1, stake=10.0, odds=2.0)
        _log(tracker, match_id=2, stake=10.0, odds=None)
        tracker.auto_resolve([
            make_fixture(match_id=1, score=(2, 0)),
            make_fixture(match_id=2, score=(2, 0)),
        ])

        summary = tracker.summary()

        assert summary.wins == 2
        assert summary.unpriced == 1
        assert summary.total_staked == 10.0
        assert summary.total_returns == 20.0
        assert summary.profit == 10.0

    def test_empty_summary(self, tracker):
        summary = tracker.summary()
        assert summary.total_bets == 0
        assert summary.roi == 0.0
        assert summary.win_rate == 0.0
