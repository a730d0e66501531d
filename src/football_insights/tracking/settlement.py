"""Deterministic settlement of picks against final scores.

Grading is a pure function of (market, pick, final score). Structured
:class:`PickSelection` values produced at market-generation time are graded
directly; free-text picks (hand-logged bets, older entries) are parsed into
a selection first.
"""

import logging
import re
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from ..analysis.catalog import (
    AWAY,
    DRAW,
    HOME,
    UNGRADED_FAMILIES,
    MarketFamily,
    PickSelection,
    market_spec,
)
from ..data.schemas import Fixture

logger = logging.getLogger(__name__)


class Verdict(str, Enum):
    """Settlement outcome. UNRESOLVABLE leaves the entry pending."""

    WON = "won"
    LOST = "lost"
    VOID = "void"
    UNRESOLVABLE = "unresolvable"

    @property
    def is_terminal(self) -> bool:
        return self != Verdict.UNRESOLVABLE


DOUBLE_CHANCE_CODES = {
    "1x": (HOME, DRAW),
    "x2": (DRAW, AWAY),
    "12": (HOME, AWAY),
}

_SCORE_RE = re.compile(r"^\s*(\d+)\s*[-:]\s*(\d+)\s*$")
_SIGNED_NUMBER_RE = re.compile(r"([+-]\d+(?:\.\d+)?)")
_NUMBER_RE = re.compile(r"(\d+(?:\.\d+)?)")
_MARGIN_RE = re.compile(r"\bby\s+(\d+)\s*(\+)?")
_EXACT_TOTAL_RE = re.compile(r"(\d+)\s*(\+)?")
_COMBO_SPLIT_RE = re.compile(r"\s*&\s*|\s+\+\s+")


def result_of(home_goals: int, away_goals: int) -> str:
    if home_goals > away_goals:
        return HOME
    if home_goals < away_goals:
        return AWAY
    return DRAW


def _normalize(text: str) -> str:
    return " ".join(text.lower().split())


def _has_word(text: str, word: str) -> bool:
    return bool(word) and re.search(rf"(?<!\w){re.escape(word)}(?!\w)", text) is not None


def sides_in(text: str, home_team: str, away_team: str) -> List[str]:
    """Teams named in ``text``, by full name or first-name token.

    A first-name token shared by both teams ("Manchester") is ignored so it
    cannot select either side.
    """
    text = _normalize(text)
    home = _normalize(home_team or "")
    away = _normalize(away_team or "")
    home_first = home.split()[0] if home else ""
    away_first = away.split()[0] if away else ""

    found = []
    for side, full, first, other_first in (
        (HOME, home, home_first, away_first),
        (AWAY, away, away_first, home_first),
    ):
        if _has_word(text, full):
            found.append(side)
        elif first != other_first and _has_word(text, first):
            found.append(side)
    return found


def _parse_result(text: str, home_team: str, away_team: str) -> Optional[str]:
    # Team names take precedence over a generic "draw"
    sides = sides_in(text, home_team, away_team)
    if len(sides) == 1:
        return sides[0]
    if not sides and _has_word(_normalize(text), "draw"):
        return DRAW
    return None


def _parse_double_chance(text: str, home_team: str, away_team: str) -> Optional[Tuple[str, ...]]:
    normalized = _normalize(text)
    for code, pair in DOUBLE_CHANCE_CODES.items():
        if _has_word(normalized, code):
            return pair

    sides = sides_in(text, home_team, away_team)
    if _has_word(normalized, "draw"):
        sides = sides + [DRAW]
    if len(sides) != 2:
        return None
    return tuple(s for s in (HOME, DRAW, AWAY) if s in sides)


def _parse_btts(text: str) -> Optional[bool]:
    normalized = _normalize(text)
    if _has_word(normalized, "yes") or _has_word(normalized, "gg"):
        return True
    if _has_word(normalized, "no") or _has_word(normalized, "ng"):
        return False
    return None


def _parse_goals(text: str, line: Optional[float]) -> Optional[Dict[str, Any]]:
    normalized = _normalize(text)
    if "over" in normalized:
        direction = "over"
    elif "under" in normalized:
        direction = "under"
    else:
        return None
    if line is None:
        number = _NUMBER_RE.search(normalized)
        if number is None:
            return None
        line = float(number.group(1))
    return {"goals": direction, "line": line}


def parse_pick(
    market: str,
    pick_text: str,
    home_team: str,
    away_team: str,
) -> Optional[PickSelection]:
    """Convert a free-text pick into a structured selection.

    Returns None when the market is unknown or the text names no outcome
    the market can settle.
    """
    spec = market_spec(market)
    if spec is None or not pick_text:
        return None
    family = spec.family
    text = pick_text.strip()
    normalized = _normalize(text)

    if family in UNGRADED_FAMILIES:
        return PickSelection(market, family)

    if family in (MarketFamily.RESULT, MarketFamily.DRAW_NO_BET):
        side = _parse_result(text, home_team, away_team)
        return PickSelection(market, family, sides=(side,)) if side else None

    if family == MarketFamily.DOUBLE_CHANCE:
        pair = _parse_double_chance(text, home_team, away_team)
        return PickSelection(market, family, sides=pair) if pair else None

    if family == MarketFamily.HANDICAP:
        sides = sides_in(text, home_team, away_team)
        if len(sides) != 1:
            return None
        number = _SIGNED_NUMBER_RE.search(normalized)
        handicap = float(number.group(1)) if number else spec.line
        if handicap is None:
            return None
        return PickSelection(market, family, sides=(sides[0],), handicap=handicap)

    if family == MarketFamily.BTTS:
        btts = _parse_btts(text)
        return PickSelection(market, family, btts=btts) if btts is not None else None

    if family == MarketFamily.TOTAL_GOALS:
        goals = _parse_goals(text, spec.line)
        return PickSelection(market, family, **goals) if goals else None

    if family == MarketFamily.TEAM_GOALS:
        team = spec.team
        if team is None:
            sides = sides_in(text, home_team, away_team)
            team = sides[0] if len(sides) == 1 else None
        goals = _parse_goals(text, spec.line)
        if team is None or goals is None:
            return None
        return PickSelection(market, family, team=team, **goals)

    if family == MarketFamily.CORRECT_SCORE:
        match = _SCORE_RE.match(text)
        if match is None:
            return None
        return PickSelection(market, family, score=(int(match.group(1)), int(match.group(2))))

    if family == MarketFamily.EXACT_TOTAL:
        match = _EXACT_TOTAL_RE.search(normalized)
        if match is None:
            return None
        return PickSelection(
            market, family, total_goals=int(match.group(1)), total_or_more=bool(match.group(2)),
        )

    if family == MarketFamily.ODD_EVEN:
        for parity in ("odd", "even"):
            if _has_word(normalized, parity):
                return PickSelection(market, family, parity=parity)
        return None

    if family == MarketFamily.WINNING_MARGIN:
        side = _parse_result(text, home_team, away_team)
        if side == DRAW:
            return PickSelection(market, family, sides=(DRAW,))
        match = _MARGIN_RE.search(normalized)
        if side is None or match is None:
            return None
        return PickSelection(market, family, sides=(side,), margin=min(int(match.group(1)), 3))

    # Combos: "<result or double chance> & <goals or btts>"
    parts = _COMBO_SPLIT_RE.split(text, maxsplit=1)
    if len(parts) != 2:
        return None
    first, second = parts

    if family in (MarketFamily.RESULT_TOTAL, MarketFamily.RESULT_BTTS):
        side = _parse_result(first, home_team, away_team)
        sides: Optional[Tuple[str, ...]] = (side,) if side else None
    else:
        sides = _parse_double_chance(first, home_team, away_team)
    if not sides:
        return None

    if family in (MarketFamily.RESULT_TOTAL, MarketFamily.DOUBLE_CHANCE_TOTAL):
        goals = _parse_goals(second, spec.line)
        return PickSelection(market, family, sides=sides, **goals) if goals else None

    btts = _parse_btts(second)
    return PickSelection(market, family, sides=sides, btts=btts) if btts is not None else None


def _grade_sides(selection: PickSelection, home_goals: int, away_goals: int) -> Verdict:
    actual = result_of(home_goals, away_goals)

    if selection.handicap is not None:
        if len(selection.sides) != 1 or selection.sides[0] == DRAW:
            return Verdict.UNRESOLVABLE
        diff = home_goals - away_goals if selection.sides[0] == HOME else away_goals - home_goals
        adjusted = diff + selection.handicap
        if adjusted == 0:
            return Verdict.VOID
        return Verdict.WON if adjusted > 0 else Verdict.LOST

    if selection.margin is not None:
        if actual not in selection.sides:
            return Verdict.LOST
        bucket = min(abs(home_goals - away_goals), 3)
        return Verdict.WON if bucket == selection.margin else Verdict.LOST

    return Verdict.WON if actual in selection.sides else Verdict.LOST


def _grade_goals(selection: PickSelection, home_goals: int, away_goals: int) -> Verdict:
    if selection.line is None:
        return Verdict.UNRESOLVABLE
    if selection.team == HOME:
        count = home_goals
    elif selection.team == AWAY:
        count = away_goals
    else:
        count = home_goals + away_goals

    # Whole-number lines push
    if count == selection.line:
        return Verdict.VOID
    over = count > selection.line
    return Verdict.WON if over == (selection.goals == "over") else Verdict.LOST


def grade_selection(selection: PickSelection, home_goals: int, away_goals: int) -> Verdict:
    """Grade a structured selection against a full-time score.

    Every component set on the selection must win; a pushed component voids
    the bet unless another component lost.
    """
    if home_goals < 0 or away_goals < 0:
        raise ValueError(f"Goal counts must be non-negative, got {home_goals}-{away_goals}")

    if selection.family in UNGRADED_FAMILIES:
        return Verdict.UNRESOLVABLE
    if selection.family == MarketFamily.DRAW_NO_BET and home_goals == away_goals:
        return Verdict.VOID

    checks: List[Verdict] = []
    if selection.sides:
        checks.append(_grade_sides(selection, home_goals, away_goals))
    if selection.goals is not None:
        checks.append(_grade_goals(selection, home_goals, away_goals))
    if selection.btts is not None:
        scored = home_goals > 0 and away_goals > 0
        checks.append(Verdict.WON if scored == selection.btts else Verdict.LOST)
    if selection.parity is not None:
        parity = "odd" if (home_goals + away_goals) % 2 else "even"
        checks.append(Verdict.WON if parity == selection.parity else Verdict.LOST)
    if selection.score is not None:
        checks.append(Verdict.WON if tuple(selection.score) == (home_goals, away_goals) else Verdict.LOST)
    if selection.total_goals is not None:
        total = home_goals + away_goals
        if selection.total_or_more:
            hit = total >= selection.total_goals
        else:
            hit = total == selection.total_goals
        checks.append(Verdict.WON if hit else Verdict.LOST)

    if not checks or Verdict.UNRESOLVABLE in checks:
        return Verdict.UNRESOLVABLE
    if Verdict.LOST in checks:
        return Verdict.LOST
    if Verdict.VOID in checks:
        return Verdict.VOID
    return Verdict.WON


def resolve_selection(
    market: str,
    pick_text: str,
    home_team: str,
    away_team: str,
    selection: Optional[Dict[str, Any]] = None,
) -> Optional[PickSelection]:
    """Stored structured selection if present, else one parsed from the text."""
    if selection:
        try:
            return PickSelection.from_dict(selection)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Ignoring malformed stored selection for {market} '{pick_text}': {e}")
    return parse_pick(market, pick_text, home_team, away_team)


def grade(
    market: str,
    pick_text: str,
    home_goals: int,
    away_goals: int,
    home_team: str,
    away_team: str,
    selection: Optional[Dict[str, Any]] = None,
) -> Verdict:
    """Grade a logged pick against a final score.

    Args:
        market: Market name
        pick_text: Pick as displayed/logged
        home_goals: Full-time home goals
        away_goals: Full-time away goals
        home_team: Home team name
        away_team: Away team name
        selection: Stored structured selection, preferred over ``pick_text``

    Returns:
        WON, LOST, VOID, or UNRESOLVABLE when no rule applies
    """
    if home_goals < 0 or away_goals < 0:
        raise ValueError(f"Goal counts must be non-negative, got {home_goals}-{away_goals}")

    parsed = resolve_selection(market, pick_text, home_team, away_team, selection)
    if parsed is None:
        return Verdict.UNRESOLVABLE
    return grade_selection(parsed, home_goals, away_goals)


def grade_fixture(
    fixture: Fixture,
    market: str,
    pick_text: str,
    selection: Optional[Dict[str, Any]] = None,
) -> Optional[Verdict]:
    """Grade against a fixture, or None if it has no final score yet."""
    final = fixture.final_score
    if final is None:
        logger.debug(f"Match {fixture.id} is {fixture.status.value}; not grading")
        return None
    return grade(
        market,
        pick_text,
        final[0],
        final[1],
        fixture.home_team.name,
        fixture.away_team.name,
        selection=selection,
    )


def settlement_payout(verdict: Verdict, stake: float, odds: Optional[float]) -> Optional[float]:
    """Gross amount returned to the bettor for a terminal verdict.

    A win logged without odds has no known payout and returns None.
    """
    if verdict == Verdict.WON:
        return round(stake * odds, 2) if odds else None
    if verdict == Verdict.VOID:
        return round(stake, 2)
    return 0.0
