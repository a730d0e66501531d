"""Command line interface for predictions, picks and settlement."""

import logging
import re
from datetime import datetime

import click
from rich.console import Console
from rich.table import Table

from ..analysis.daily_picks import DailyPicksService
from ..analysis.longshot import LongshotBuilder
from ..analysis.odds_comparison import build_odds_comparison
from ..config import get_settings
from ..database import LOST, WON, init_db
from ..tracking.bankroll import BankrollTracker
from ..tracking.settlement import Verdict, grade
from ..utils import format_odds, setup_logging
from ..workflow.pipeline import PredictionPipeline
from ..workflow.scheduler import build_scheduler, next_refresh_time

console = Console()
logger = logging.getLogger(__name__)

VERDICT_STYLES = {
    Verdict.WON: "green",
    Verdict.LOST: "red",
    Verdict.VOID: "yellow",
    Verdict.UNRESOLVABLE: "magenta",
}


def _parse_date(value):
    return datetime.strptime(value, "%Y-%m-%d").date() if value else None


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.pass_context
def cli(ctx, verbose):
    """Football match predictions, daily picks and pick settlement."""
    setup_logging(level="DEBUG" if verbose else None)
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


@cli.command("init-db")
def init_db_command():
    """Create database tables."""
    get_settings().ensure_directories()
    init_db()
    console.print("[green]✅ Database initialized[/green]")


@cli.command()
@click.option("--date-from", help="First date (YYYY-MM-DD)")
@click.option("--date-to", help="Last date (YYYY-MM-DD)")
@click.option("--limit", type=int, default=20, help="Number of matches to show")
def predict(date_from, date_to, limit):
    """Show match predictions."""
    pipeline = PredictionPipeline()
    with console.status("Generating predictions..."):
        predictions = pipeline.get_predictions(_parse_date(date_from), _parse_date(date_to))

    if not predictions:
        console.print("[yellow]No predictions available yet, check back later.[/yellow]")
        return

    table = Table(title=f"Predictions ({len(predictions)} matches)")
    table.add_column("Kickoff (UTC)")
    table.add_column("Match")
    table.add_column("Competition")
    table.add_column("H/D/A %", justify="center")
    table.add_column("Top pick")
    table.add_column("Conf", justify="right")
    table.add_column("Tier")

    for p in predictions[:limit]:
        top = p.top_market
        table.add_row(
            p.match_date.strftime("%Y-%m-%d %H:%M"),
            p.label,
            p.competition,
            f"{p.home_win_prob}/{p.draw_prob}/{p.away_win_prob}",
            f"{top.market}: {top.pick}" if top else "-",
            f"{top.confidence}%" if top else "-",
            p.overall_confidence,
        )
    console.print(table)


@cli.command("daily-picks")
@click.option("--history", is_flag=True, help="Show previously published picks")
def daily_picks(history):
    """Publish (once per UTC day) and show today's picks."""
    init_db()
    pipeline = PredictionPipeline()
    service = DailyPicksService(pipeline.get_predictions)

    if history:
        for pick_date, picks in service.get_history().items():
            won = sum(1 for p in picks if p.result == WON)
            settled = sum(1 for p in picks if p.result in (WON, LOST))
            console.print(f"[bold]{pick_date}[/bold]  {won}/{settled} won")
            for pick in picks:
                console.print(f"  {pick.match_label}: {pick.market} {pick.pick} ({pick.confidence}%) [{pick.result}]")
        return

    picks = service.generate_for_today()
    if not picks:
        console.print("[yellow]No picks available yet, check back later.[/yellow]")
        return

    table = Table(title=f"Daily picks {picks[0].pick_date}")
    table.add_column("#", justify="right")
    table.add_column("Match")
    table.add_column("Market")
    table.add_column("Pick")
    table.add_column("Conf", justify="right")
    table.add_column("Odds", justify="right")
    table.add_column("Result")
    for i, pick in enumerate(picks, 1):
        table.add_row(
            str(i),
            pick.match_label,
            pick.market,
            pick.pick,
            f"{pick.confidence}% {pick.confidence_tier}",
            f"{pick.odds:.2f}",
            pick.result,
        )
    console.print(table)
    console.print(f"Next picks at {next_refresh_time().strftime('%Y-%m-%d %H:%M')} UTC")


@cli.command()
@click.option("--stake", type=float, default=1.0, help="Stake for the potential return")
def longshot(stake):
    """Build the long-odds accumulator."""
    pipeline = PredictionPipeline()
    accumulator = LongshotBuilder().build(pipeline.get_predictions())

    if not accumulator.legs:
        console.print("[yellow]No eligible fixtures for an accumulator yet.[/yellow]")
        return

    table = Table(title=f"Longshot: {accumulator.total_legs} legs")
    table.add_column("Kickoff (UTC)")
    table.add_column("Match")
    table.add_column("Competition")
    table.add_column("Pick")
    table.add_column("Odds", justify="right")
    for leg in accumulator.legs:
        table.add_row(
            leg.match_date.strftime("%a %d %b %H:%M"),
            leg.label,
            leg.competition,
            f"{leg.market.market}: {leg.market.pick}",
            f"{leg.market.odds:.2f}",
        )
    console.print(table)
    console.print(
        f"Combined odds [bold]{accumulator.combined_odds_display}[/bold] over "
        f"{accumulator.day_spread} days and {accumulator.league_count} leagues"
    )
    console.print(f"Potential return on {format_odds(stake, prefix='$')}: {accumulator.potential_return_display(stake)}")


@cli.command()
@click.argument("match_id", type=int)
@click.option("--top", type=int, default=5, help="Number of markets to compare")
def odds(match_id, top):
    """Compare simulated bookmaker odds for a match."""
    prediction = PredictionPipeline().get_prediction(match_id)
    if prediction is None:
        console.print(f"[yellow]No prediction for match {match_id}.[/yellow]")
        return

    console.print(f"[bold]{prediction.label}[/bold] ({prediction.competition})")
    for comparison in build_odds_comparison(prediction.markets, top_n=top):
        table = Table(title=f"{comparison.market.market}: {comparison.market.pick} ({comparison.market.confidence}%)")
        table.add_column("Bookmaker")
        table.add_column("Odds", justify="right")
        for i, quote in enumerate(comparison.quotes):
            style = "bold green" if i == 0 else None
            table.add_row(quote.bookmaker, f"{quote.odds:.2f}", style=style)
        console.print(table)


@cli.command("grade")
@click.argument("market")
@click.argument("pick")
@click.argument("score")
@click.option("--home", "home_team", required=True, help="Home team name")
@click.option("--away", "away_team", required=True, help="Away team name")
def grade_command(market, pick, score, home_team, away_team):
    """Grade a pick against a final SCORE such as 2-1."""
    match = re.fullmatch(r"\s*(\d+)\s*[-:]\s*(\d+)\s*", score)
    if match is None:
        raise click.BadParameter("score must look like 2-1", param_hint="SCORE")

    verdict = grade(market, pick, int(match.group(1)), int(match.group(2)), home_team, away_team)
    style = VERDICT_STYLES[verdict]
    console.print(f"[{style}]{verdict.value.upper()}[/{style}]")


@cli.command("log-bet")
@click.option("--match", "match_label", required=True, help="Match label, e.g. 'Arsenal vs Chelsea'")
@click.option("--market", required=True, help="Market name")
@click.option("--pick", required=True, help="Pick text")
@click.option("--stake", type=float, help="Stake (defaults to DEFAULT_STAKE)")
@click.option("--odds", "odds_value", type=float, help="Decimal odds")
@click.option("--match-id", type=int, help="Fixture id for automatic settlement")
@click.option("--home", "home_team", help="Home team name")
@click.option("--away", "away_team", help="Away team name")
def log_bet(match_label, market, pick, stake, odds_value, match_id, home_team, away_team):
    """Log a pick to the bankroll."""
    init_db()
    if (home_team is None or away_team is None) and " vs " in match_label:
        home_team, away_team = (part.strip() for part in match_label.split(" vs ", 1))

    entry = BankrollTracker().log_pick(
        match_label=match_label,
        market=market,
        pick=pick,
        stake=stake,
        odds=odds_value,
        match_id=match_id,
        home_team=home_team,
        away_team=away_team,
    )
    console.print(f"[green]Logged #{entry.id}[/green] {entry.match_label}: {entry.market} {entry.pick}")


@cli.command()
def settle():
    """Settle pending picks whose matches have finished."""
    init_db()
    report = BankrollTracker().auto_resolve()
    console.print(
        f"Checked {report.checked}: [green]{report.won} won[/green], [red]{report.lost} lost[/red], "
        f"[yellow]{report.void} void[/yellow], {report.unresolvable} unresolvable, "
        f"{report.not_finished} not finished, {report.errors} errors"
    )


@cli.command()
def bankroll():
    """Show bankroll totals and streak."""
    init_db()
    tracker = BankrollTracker()
    summary = tracker.summary()

    table = Table(title="Bankroll")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Bets", str(summary.total_bets))
    table.add_row("Pending", f"{summary.pending} ({summary.pending_stake:.2f} staked)")
    table.add_row("Won / Lost / Void", f"{summary.wins} / {summary.losses} / {summary.voids}")
    table.add_row("Staked", f"{summary.total_staked:.2f}")
    table.add_row("Returns", f"{summary.total_returns:.2f}")
    profit_style = "green" if summary.profit >= 0 else "red"
    table.add_row("Profit", f"[{profit_style}]{summary.profit:+.2f}[/{profit_style}]")
    table.add_row("ROI", f"{summary.roi:+.1f}%")
    if summary.unpriced:
        table.add_row("Unpriced (excluded)", str(summary.unpriced))
    console.print(table)

    streak = tracker.get_streak()
    if streak is not None:
        console.print(
            f"Daily pick streak: {streak.current_streak:+d} "
            f"(best {streak.longest_win_streak}W, worst {streak.longest_loss_streak}L)"
        )


@cli.command("run-scheduler")
def run_scheduler():
    """Run the daily-picks and settlement timers in the foreground."""
    get_settings().ensure_directories()
    init_db()
    pipeline = PredictionPipeline()
    scheduler = build_scheduler(
        pipeline,
        DailyPicksService(pipeline.get_predictions),
        BankrollTracker(client=pipeline.client),
        blocking=True,
    )

    logger.info("Starting football insights scheduler")
    for job in scheduler.get_jobs():
        logger.info(f"  - {job.name}: {job.trigger}")
    console.print("Press Ctrl+C to exit")
    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Scheduler stopped")


if __name__ == "__main__":
    cli()
