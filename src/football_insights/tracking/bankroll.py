"""Bankroll logging, automatic settlement and streak tracking."""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from ..config import get_settings
from ..data.football_api import FootballDataClient
from ..data.schemas import Fixture
from ..database import (
    LOST,
    PENDING,
    TERMINAL_RESULTS,
    VOID,
    WON,
    BankrollEntry,
    DailyPick,
    UserStreak,
    get_session,
)
from .settlement import Verdict, grade_fixture, settlement_payout

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


@dataclass
class ResolveReport:
    """Outcome counts of one settlement pass."""

    checked: int = 0
    won: int = 0
    lost: int = 0
    void: int = 0
    unresolvable: int = 0
    not_finished: int = 0
    errors: int = 0
    lookups: int = 0
    settled_ids: List[int] = field(default_factory=list)

    @property
    def settled(self) -> int:
        return self.won + self.lost + self.void

    def record(self, verdict: Verdict) -> None:
        if verdict == Verdict.WON:
            self.won += 1
        elif verdict == Verdict.LOST:
            self.lost += 1
        elif verdict == Verdict.VOID:
            self.void += 1
        else:
            self.unresolvable += 1


@dataclass
class BankrollSummary:
    total_bets: int = 0
    pending: int = 0
    wins: int = 0
    losses: int = 0
    voids: int = 0
    total_staked: float = 0.0
    total_returns: float = 0.0
    pending_stake: float = 0.0
    unpriced: int = 0

    @property
    def profit(self) -> float:
        return round(self.total_returns - self.total_staked, 2)

    @property
    def roi(self) -> float:
        """Profit as a percentage of settled stakes."""
        return round(self.profit / self.total_staked * 100, 2) if self.total_staked > 0 else 0.0

    @property
    def win_rate(self) -> float:
        decided = self.wins + self.losses
        return round(self.wins / decided * 100, 1) if decided > 0 else 0.0


def apply_streak(session: Session, result: str) -> UserStreak:
    """Fold one settled daily-pick result into the running streak."""
    streak = session.scalars(select(UserStreak).order_by(UserStreak.id).limit(1)).first()
    if streak is None:
        streak = UserStreak(current_streak=0, longest_win_streak=0, longest_loss_streak=0, last_result="")
        session.add(streak)

    if result == WON:
        streak.current_streak = streak.current_streak + 1 if streak.current_streak > 0 else 1
        streak.longest_win_streak = max(streak.longest_win_streak, streak.current_streak)
    elif result == LOST:
        streak.current_streak = streak.current_streak - 1 if streak.current_streak < 0 else -1
        streak.longest_loss_streak = max(streak.longest_loss_streak, -streak.current_streak)
    streak.last_result = result
    streak.updated_at = _utcnow()
    return streak


class BankrollTracker:
    """Logged picks and their settlement against final scores."""

    def __init__(
        self,
        client: Optional[FootballDataClient] = None,
        lookup_delay: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        settings = get_settings()
        self._client = client
        self.lookup_delay = settings.settlement_lookup_delay_seconds if lookup_delay is None else lookup_delay
        self.default_stake = settings.default_stake
        self._sleep = sleep

    @property
    def client(self) -> FootballDataClient:
        if self._client is None:
            self._client = FootballDataClient()
        return self._client

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------

    def log_pick(
        self,
        match_label: str,
        market: str,
        pick: str,
        stake: Optional[float] = None,
        odds: Optional[float] = None,
        match_id: Optional[int] = None,
        home_team: Optional[str] = None,
        away_team: Optional[str] = None,
        confidence: Optional[int] = None,
        match_date: Optional[datetime] = None,
        selection: Optional[dict] = None,
    ) -> BankrollEntry:
        """Create a pending bankroll entry."""
        stake = self.default_stake if stake is None else stake
        if stake < 0:
            raise ValueError("stake must be non-negative")
        if odds is not None and odds < 1.0:
            raise ValueError("odds must be decimal odds of at least 1.0")

        if match_date is not None and match_date.tzinfo is not None:
            match_date = match_date.astimezone(timezone.utc).replace(tzinfo=None)

        entry = BankrollEntry(
            match_id=match_id,
            match_label=match_label,
            home_team=home_team,
            away_team=away_team,
            market=market,
            pick=pick,
            selection=selection,
            stake=stake,
            odds=odds,
            confidence=confidence,
            match_date=match_date,
            result=PENDING,
            payout=0.0,
        )
        with get_session() as session:
            session.add(entry)
        logger.info(f"Logged pick #{entry.id}: {match_label} {market} '{pick}' stake {stake:.2f}")
        return entry

    def log_prediction_market(self, prediction, market, stake: Optional[float] = None) -> BankrollEntry:
        """Log a generated market, carrying its structured selection and odds."""
        return self.log_pick(
            match_label=prediction.label,
            market=market.market,
            pick=market.pick,
            stake=stake,
            odds=market.odds,
            match_id=prediction.match_id,
            home_team=prediction.home_team,
            away_team=prediction.away_team,
            confidence=market.confidence,
            match_date=prediction.match_date,
            selection=market.selection.to_dict() if market.selection else None,
        )

    # ------------------------------------------------------------------
    # Settlement
    # ------------------------------------------------------------------

    def auto_resolve(self, fixtures: Optional[Iterable[Fixture]] = None) -> ResolveReport:
        """
        Settle every pending bankroll entry and daily pick whose match has finished.

        Known fixtures are used first; remaining matches are looked up one
        at a time with a delay between requests. Each transition is a single
        conditional UPDATE on a still-pending row, so overlapping passes
        cannot settle an entry twice.

        Args:
            fixtures: Recently fetched fixtures to grade against without a lookup

        Returns:
            ResolveReport with per-verdict counts
        """
        report = ResolveReport()
        known: Dict[int, Optional[Fixture]] = {f.id: f for f in (fixtures or [])}

        with get_session() as session:
            entries = session.scalars(
                select(BankrollEntry).where(BankrollEntry.result == PENDING).order_by(BankrollEntry.id)
            ).all()
            picks = session.scalars(
                select(DailyPick).where(DailyPick.result == PENDING).order_by(DailyPick.id)
            ).all()

        needed = {e.match_id for e in entries if e.match_id is not None}
        needed.update(p.match_id for p in picks)
        self._lookup_missing(needed, known, report)

        for entry in entries:
            if entry.match_id is None:
                logger.debug(f"Bankroll entry #{entry.id} has no match reference; skipping")
                continue
            fixture = known.get(entry.match_id)
            if fixture is None:
                continue
            report.checked += 1
            try:
                verdict = grade_fixture(fixture, entry.market, entry.pick, entry.selection)
                if self._handle_verdict(report, f"bankroll entry #{entry.id}", verdict):
                    if self._settle_entry(entry, verdict):
                        report.settled_ids.append(entry.id)
            except Exception as e:
                report.errors += 1
                logger.error(f"Failed to settle bankroll entry #{entry.id}: {e}")

        for pick in picks:
            fixture = known.get(pick.match_id)
            if fixture is None:
                continue
            report.checked += 1
            try:
                verdict = grade_fixture(fixture, pick.market, pick.pick, pick.selection)
                if self._handle_verdict(report, f"daily pick #{pick.id}", verdict):
                    self._settle_daily_pick(pick.id, verdict.value)
            except Exception as e:
                report.errors += 1
                logger.error(f"Failed to settle daily pick #{pick.id}: {e}")

        logger.info(
            f"Settlement pass: {report.checked} checked, {report.won} won, {report.lost} lost, "
            f"{report.void} void, {report.unresolvable} unresolvable, {report.not_finished} not finished, "
            f"{report.errors} errors"
        )
        return report

    def _lookup_missing(self, needed: Iterable[int], known: Dict[int, Optional[Fixture]], report: ResolveReport) -> None:
        for match_id in sorted(set(needed) - set(known)):
            if report.lookups:
                self._sleep(self.lookup_delay)
            report.lookups += 1
            try:
                known[match_id] = self.client.get_match(match_id)
            except Exception as e:
                report.errors += 1
                known[match_id] = None
                logger.error(f"Lookup of match {match_id} failed: {e}")

    @staticmethod
    def _handle_verdict(report: ResolveReport, what: str, verdict: Optional[Verdict]) -> bool:
        """Count a verdict; True when it should be written."""
        if verdict is None:
            report.not_finished += 1
            return False
        report.record(verdict)
        if verdict == Verdict.UNRESOLVABLE:
            logger.warning(f"No settlement rule for {what}; leaving pending")
            return False
        logger.info(f"Settled {what}: {verdict.value}")
        return True

    def _settle_entry(self, entry: BankrollEntry, verdict: Verdict) -> bool:
        payout = settlement_payout(verdict, entry.stake or 0.0, entry.odds)
        with get_session() as session:
            result = session.execute(
                update(BankrollEntry)
                .where(BankrollEntry.id == entry.id, BankrollEntry.result == PENDING)
                .values(result=verdict.value, payout=payout, settled_at=_utcnow())
            )
            return result.rowcount == 1

    @staticmethod
    def _settle_daily_pick(pick_id: int, result: str) -> bool:
        with get_session() as session:
            updated = session.execute(
                update(DailyPick)
                .where(DailyPick.id == pick_id, DailyPick.result == PENDING)
                .values(result=result, settled_at=_utcnow())
            ).rowcount == 1
            if updated:
                apply_streak(session, result)
        return updated

    def record_pick_result(self, pick_id: int, result: str) -> bool:
        """Manually settle a daily pick; False if it was already settled or missing."""
        result = result.lower()
        if result not in TERMINAL_RESULTS:
            raise ValueError(f"result must be one of {TERMINAL_RESULTS}, got {result!r}")
        updated = self._settle_daily_pick(pick_id, result)
        if not updated:
            logger.info(f"Daily pick #{pick_id} not pending; result unchanged")
        return updated

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    @staticmethod
    def summary() -> BankrollSummary:
        """Totals over settled entries; pending stakes are reported separately.

        Wins logged without odds count towards the win rate but are left out
        of the staked and returned totals, since their payout is unknown.
        """
        unpriced = BankrollEntry.payout.is_(None)
        with get_session() as session:
            rows = session.execute(
                select(
                    BankrollEntry.result,
                    unpriced,
                    func.count(BankrollEntry.id),
                    func.coalesce(func.sum(BankrollEntry.stake), 0.0),
                    func.coalesce(func.sum(BankrollEntry.payout), 0.0),
                ).group_by(BankrollEntry.result, unpriced)
            ).all()

        summary = BankrollSummary()
        for result, is_unpriced, count, staked, payout in rows:
            summary.total_bets += count
            if result == PENDING:
                summary.pending += count
                summary.pending_stake = round(summary.pending_stake + float(staked), 2)
                continue
            if result == WON:
                summary.wins += count
            elif result == LOST:
                summary.losses += count
            elif result == VOID:
                summary.voids += count
            if is_unpriced:
                summary.unpriced += count
                continue
            summary.total_staked = round(summary.total_staked + float(staked), 2)
            summary.total_returns = round(summary.total_returns + float(payout), 2)
        return summary

    @staticmethod
    def list_entries(result: Optional[str] = None, limit: int = 50) -> List[BankrollEntry]:
        query = select(BankrollEntry).order_by(BankrollEntry.created_at.desc(), BankrollEntry.id.desc())
        if result:
            query = query.where(BankrollEntry.result == result)
        with get_session() as session:
            return list(session.scalars(query.limit(limit)).all())

    @staticmethod
    def get_streak() -> Optional[UserStreak]:
        with get_session() as session:
            return session.scalars(select(UserStreak).order_by(UserStreak.id).limit(1)).first()
