"""Settlement and bankroll tracking."""

from .settlement import (
    Verdict,
    grade,
    grade_fixture,
    grade_selection,
    parse_pick,
    settlement_payout,
)
from .bankroll import BankrollSummary, BankrollTracker, ResolveReport, apply_streak

__all__ = [
    "Verdict",
    "grade",
    "grade_fixture",
    "grade_selection",
    "parse_pick",
    "settlement_payout",
    "BankrollSummary",
    "BankrollTracker",
    "ResolveReport",
    "apply_streak",
]
