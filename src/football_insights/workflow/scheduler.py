"""Background timers for daily picks and settlement.

Uses APScheduler with UTC cron/interval triggers. Both jobs also run once
immediately on start so a missed 06:00 slot is caught up.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Union

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from ..analysis.daily_picks import DailyPicksService
from ..config import get_settings
from ..tracking.bankroll import BankrollTracker
from .pipeline import PredictionPipeline

logger = logging.getLogger(__name__)

DAILY_PICKS_JOB = "daily_picks"
SETTLEMENT_JOB = "settlement"


def next_refresh_time(now: Optional[datetime] = None, hour: Optional[int] = None) -> datetime:
    """Next daily-picks slot (hour:00 UTC) strictly after ``now``."""
    hour = get_settings().daily_picks_hour_utc if hour is None else hour
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    now = now.astimezone(timezone.utc)

    slot = now.replace(hour=hour, minute=0, second=0, microsecond=0)
    if slot <= now:
        slot += timedelta(days=1)
    return slot


def run_daily_cycle(pipeline: PredictionPipeline, service: DailyPicksService) -> int:
    """Refresh team strengths, then publish today's picks if not yet published."""
    logger.info("Running daily picks cycle")
    try:
        pipeline.refresh_strengths()
    except Exception as e:
        logger.error(f"Team strength refresh failed, using previous ratings: {e}")
    picks = service.generate_for_today()
    logger.info(f"Daily picks ready: {len(picks)}; next run at {next_refresh_time().isoformat()}")
    return len(picks)


def run_settlement(pipeline: PredictionPipeline, tracker: BankrollTracker) -> int:
    """One settlement pass, grading against the latest fetched fixtures first."""
    logger.info("Running settlement pass")
    report = tracker.auto_resolve(pipeline.last_fixtures)
    return report.settled


def build_scheduler(
    pipeline: PredictionPipeline,
    service: DailyPicksService,
    tracker: BankrollTracker,
    blocking: bool = False,
    run_on_start: bool = True,
) -> Union[BackgroundScheduler, BlockingScheduler]:
    """Scheduler with the daily-picks cron job and the settlement interval job."""
    settings = get_settings()
    scheduler = BlockingScheduler(timezone="UTC") if blocking else BackgroundScheduler(timezone="UTC")
    start_now = {"next_run_time": datetime.now(timezone.utc)} if run_on_start else {}

    scheduler.add_job(
        run_daily_cycle,
        CronTrigger(hour=settings.daily_picks_hour_utc, minute=0, timezone="UTC"),
        args=(pipeline, service),
        id=DAILY_PICKS_JOB,
        name="Daily picks",
        max_instances=1,
        coalesce=True,
        replace_existing=True,
        **start_now,
    )
    scheduler.add_job(
        run_settlement,
        IntervalTrigger(minutes=settings.settlement_interval_minutes, timezone="UTC"),
        args=(pipeline, tracker),
        id=SETTLEMENT_JOB,
        name="Settlement",
        max_instances=1,
        coalesce=True,
        replace_existing=True,
        **start_now,
    )
    return scheduler
