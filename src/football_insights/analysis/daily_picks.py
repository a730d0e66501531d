"""Daily best-picks shortlist.

Picks are generated at most once per UTC calendar day. Each stored pick
snapshots its fixture's teams, competition and kickoff so later fixture
updates cannot rewrite a day that has already been published.
"""

import logging
from collections import OrderedDict
from datetime import date, datetime, timezone
from typing import Callable, Dict, List, NamedTuple, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from ..config import get_settings
from ..database import DailyPick, DailyPickSet, get_session
from .markets import PredictionMarket, overall_confidence_tier
from .predictions import MatchPrediction

logger = logging.getLogger(__name__)


class SelectedPick(NamedTuple):
    prediction: MatchPrediction
    market: PredictionMarket


def pick_date_for(now: Optional[datetime] = None) -> str:
    """UTC calendar date (YYYY-MM-DD) that ``now`` falls on."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return now.date().isoformat()


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def select_daily_picks(
    predictions: Sequence[MatchPrediction],
    count: Optional[int] = None,
) -> List[SelectedPick]:
    """Highest-confidence top markets, at most one per fixture.

    Each prediction contributes its first (highest-confidence) market; the
    candidates are ranked by confidence and the first ``count`` distinct
    fixtures are kept.
    """
    count = get_settings().daily_picks_count if count is None else count

    candidates = [
        SelectedPick(prediction, prediction.markets[0])
        for prediction in predictions
        if prediction.markets
    ]
    # Equal confidence: earlier kickoff first
    candidates.sort(key=lambda c: (-c.market.confidence, _naive_utc(c.prediction.match_date)))

    selected: List[SelectedPick] = []
    seen = set()
    for candidate in candidates:
        if len(selected) >= count:
            break
        if candidate.prediction.match_id in seen:
            continue
        seen.add(candidate.prediction.match_id)
        selected.append(candidate)
    return selected


class DailyPicksService:
    """Generates, stores and reads the daily shortlist."""

    def __init__(
        self,
        prediction_provider: Callable[[], List[MatchPrediction]],
        count: Optional[int] = None,
    ):
        self.prediction_provider = prediction_provider
        self.count = get_settings().daily_picks_count if count is None else count

    def generate_for_today(self, now: Optional[datetime] = None) -> List[DailyPick]:
        """Publish today's picks unless they already exist.

        Returns:
            The picks stored for today (existing or newly generated)
        """
        today = pick_date_for(now)

        existing = self.get_picks_for_date(today)
        if existing:
            logger.info(f"Daily picks for {today} already exist ({len(existing)}); skipping generation")
            return existing

        predictions = self.prediction_provider()
        selected = select_daily_picks(predictions, self.count)
        if not selected:
            logger.warning(f"No predictions available to build daily picks for {today}")
            return []

        rows = [self._snapshot(today, pick) for pick in selected]
        try:
            with get_session() as session:
                session.add(DailyPickSet(pick_date=today, pick_count=len(rows)))
                session.add_all(rows)
        except IntegrityError:
            # Another run published today's picks between our check and insert
            logger.info(f"Daily picks for {today} were generated concurrently; keeping stored set")
            return self.get_picks_for_date(today)

        logger.info(f"Generated {len(rows)} daily picks for {today}")
        return rows

    @staticmethod
    def _snapshot(pick_date: str, pick: SelectedPick) -> DailyPick:
        prediction, market = pick
        tier = overall_confidence_tier([market])
        return DailyPick(
            pick_date=pick_date,
            match_id=prediction.match_id,
            market=market.market,
            pick=market.pick,
            selection=market.selection.to_dict() if market.selection else None,
            confidence=market.confidence,
            confidence_tier=tier,
            odds=market.odds,
            reasoning=prediction.ai_summary,
            home_team=prediction.home_team,
            away_team=prediction.away_team,
            competition=prediction.competition,
            match_date=_naive_utc(prediction.match_date),
        )

    @staticmethod
    def get_picks_for_date(pick_date: str) -> List[DailyPick]:
        with get_session() as session:
            rows = session.scalars(
                select(DailyPick)
                .where(DailyPick.pick_date == pick_date)
                .order_by(DailyPick.confidence.desc(), DailyPick.id)
            ).all()
        return list(rows)

    @staticmethod
    def get_history(since: Optional[date] = None) -> Dict[str, List[DailyPick]]:
        """Stored picks grouped by pick date, newest day first."""
        query = select(DailyPick).order_by(DailyPick.pick_date.desc(), DailyPick.confidence.desc())
        if since is not None:
            query = query.where(DailyPick.pick_date >= since.isoformat())

        with get_session() as session:
            rows = session.scalars(query).all()

        history: Dict[str, List[DailyPick]] = OrderedDict()
        for row in rows:
            history.setdefault(row.pick_date, []).append(row)
        return history
