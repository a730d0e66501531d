"""Market catalog and structured pick selections.

Every generated market carries a :class:`PickSelection` alongside its
display text. The selection is stored with logged picks so settlement can
grade the structured value instead of re-reading free text.
"""

import re
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

HOME = "home"
DRAW = "draw"
AWAY = "away"


class MarketFamily(str, Enum):
    RESULT = "result"
    DOUBLE_CHANCE = "double_chance"
    DRAW_NO_BET = "draw_no_bet"
    HANDICAP = "handicap"
    BTTS = "btts"
    TOTAL_GOALS = "total_goals"
    CORRECT_SCORE = "correct_score"
    EXACT_TOTAL = "exact_total"
    TEAM_GOALS = "team_goals"
    ODD_EVEN = "odd_even"
    WINNING_MARGIN = "winning_margin"
    HALFTIME = "halftime"
    HTFT = "htft"
    FIRST_GOAL = "first_goal"
    LAST_GOAL = "last_goal"
    RESULT_TOTAL = "result_total"
    RESULT_BTTS = "result_btts"
    DOUBLE_CHANCE_TOTAL = "double_chance_total"
    DOUBLE_CHANCE_BTTS = "double_chance_btts"


# Families without a settlement rule: no half-time or goal-timing data is graded
UNGRADED_FAMILIES = frozenset({
    MarketFamily.HALFTIME,
    MarketFamily.HTFT,
    MarketFamily.FIRST_GOAL,
    MarketFamily.LAST_GOAL,
})


@dataclass(frozen=True)
class MarketSpec:
    name: str
    family: MarketFamily
    line: Optional[float] = None
    team: Optional[str] = None


MARKET_1X2 = "1X2"
MARKET_DOUBLE_CHANCE = "Double Chance"
MARKET_DRAW_NO_BET = "No Bet (Draw No Bet)"
MARKET_BTTS = "BTTS (GG/NG)"
MARKET_CORRECT_SCORE = "Correct Score"
MARKET_EXACT_TOTAL = "Exact Total Goals"
MARKET_HTFT = "HT/FT"
MARKET_HALFTIME = "Halftime Result"
MARKET_WINNING_MARGIN = "Winning Margin"
MARKET_FIRST_GOAL = "First Goal"
MARKET_LAST_GOAL = "Last Goal"
MARKET_ODD_EVEN = "Odd/Even Goals"

MARKET_CATALOG: Tuple[MarketSpec, ...] = (
    MarketSpec(MARKET_1X2, MarketFamily.RESULT),
    MarketSpec(MARKET_DOUBLE_CHANCE, MarketFamily.DOUBLE_CHANCE),
    MarketSpec(MARKET_DRAW_NO_BET, MarketFamily.DRAW_NO_BET),
    MarketSpec(MARKET_BTTS, MarketFamily.BTTS),
    MarketSpec("Over/Under 1.5", MarketFamily.TOTAL_GOALS, line=1.5),
    MarketSpec("Over/Under 2.5", MarketFamily.TOTAL_GOALS, line=2.5),
    MarketSpec("Over/Under 3.5", MarketFamily.TOTAL_GOALS, line=3.5),
    MarketSpec("Over/Under 4.5", MarketFamily.TOTAL_GOALS, line=4.5),
    MarketSpec(MARKET_CORRECT_SCORE, MarketFamily.CORRECT_SCORE),
    MarketSpec(MARKET_EXACT_TOTAL, MarketFamily.EXACT_TOTAL),
    MarketSpec("Asian Handicap -0.5", MarketFamily.HANDICAP, line=-0.5),
    MarketSpec("Asian Handicap -1.5", MarketFamily.HANDICAP, line=-1.5),
    MarketSpec(MARKET_HTFT, MarketFamily.HTFT),
    MarketSpec(MARKET_HALFTIME, MarketFamily.HALFTIME),
    MarketSpec("Home Team Goals O/U 1.5", MarketFamily.TEAM_GOALS, line=1.5, team=HOME),
    MarketSpec("Away Team Goals O/U 1.5", MarketFamily.TEAM_GOALS, line=1.5, team=AWAY),
    MarketSpec(MARKET_WINNING_MARGIN, MarketFamily.WINNING_MARGIN),
    MarketSpec(MARKET_FIRST_GOAL, MarketFamily.FIRST_GOAL),
    MarketSpec(MARKET_LAST_GOAL, MarketFamily.LAST_GOAL),
    MarketSpec(MARKET_ODD_EVEN, MarketFamily.ODD_EVEN),
    MarketSpec("1X2 + Over/Under 2.5", MarketFamily.RESULT_TOTAL, line=2.5),
    MarketSpec("1X2 + BTTS", MarketFamily.RESULT_BTTS),
    MarketSpec("Double Chance + O/U 2.5", MarketFamily.DOUBLE_CHANCE_TOTAL, line=2.5),
    MarketSpec("Double Chance + BTTS", MarketFamily.DOUBLE_CHANCE_BTTS),
)

MARKET_SPECS: Dict[str, MarketSpec] = {spec.name: spec for spec in MARKET_CATALOG}
MARKET_NAMES: List[str] = [spec.name for spec in MARKET_CATALOG]

_LINE_RE = re.compile(r"([+-]?\d+(?:\.\d+)?)\s*$")


def market_spec(market: str) -> Optional[MarketSpec]:
    """Catalog entry for a market name, inferring unknown names by keyword.

    Logged picks may carry older or hand-typed market names such as
    "Over/Under 0.5" or "Asian Handicap -2.5"; those resolve to the family
    their wording implies, with the line taken from the name.
    """
    spec = MARKET_SPECS.get(market)
    if spec is not None:
        return spec

    name = market.strip().lower()
    line_match = _LINE_RE.search(name)
    line = float(line_match.group(1)) if line_match else None

    if "correct score" in name:
        return MarketSpec(market, MarketFamily.CORRECT_SCORE)
    if "ht/ft" in name or "half time/full time" in name:
        return MarketSpec(market, MarketFamily.HTFT)
    if "halftime" in name or "half-time" in name or "half time" in name:
        return MarketSpec(market, MarketFamily.HALFTIME)
    if "first goal" in name:
        return MarketSpec(market, MarketFamily.FIRST_GOAL)
    if "last goal" in name:
        return MarketSpec(market, MarketFamily.LAST_GOAL)
    if "draw no bet" in name:
        return MarketSpec(market, MarketFamily.DRAW_NO_BET)
    if "winning margin" in name:
        return MarketSpec(market, MarketFamily.WINNING_MARGIN)
    if "exact total" in name:
        return MarketSpec(market, MarketFamily.EXACT_TOTAL)
    if "odd/even" in name or "odd or even" in name:
        return MarketSpec(market, MarketFamily.ODD_EVEN)
    if "handicap" in name:
        return MarketSpec(market, MarketFamily.HANDICAP, line=line)
    if "home team goals" in name:
        return MarketSpec(market, MarketFamily.TEAM_GOALS, line=line, team=HOME)
    if "away team goals" in name:
        return MarketSpec(market, MarketFamily.TEAM_GOALS, line=line, team=AWAY)

    has_btts = "btts" in name or "both teams to score" in name
    has_total = "over/under" in name or "o/u" in name
    if "double chance" in name:
        if has_btts:
            return MarketSpec(market, MarketFamily.DOUBLE_CHANCE_BTTS)
        if has_total:
            return MarketSpec(market, MarketFamily.DOUBLE_CHANCE_TOTAL, line=line)
        return MarketSpec(market, MarketFamily.DOUBLE_CHANCE)
    if "1x2" in name or "match result" in name:
        if has_btts:
            return MarketSpec(market, MarketFamily.RESULT_BTTS)
        if has_total:
            return MarketSpec(market, MarketFamily.RESULT_TOTAL, line=line)
        return MarketSpec(market, MarketFamily.RESULT)
    if has_btts:
        return MarketSpec(market, MarketFamily.BTTS)
    if has_total:
        return MarketSpec(market, MarketFamily.TOTAL_GOALS, line=line)
    return None


@dataclass(frozen=True)
class PickSelection:
    """Structured form of a pick.

    Only the components relevant to the market are set; a combo market sets
    several (e.g. ``sides`` and ``goals``) and wins only if all of them win.

    Attributes:
        market: Catalog market name
        family: Market family driving settlement rules
        sides: Full-time results covered ("home", "draw", "away")
        handicap: Asian handicap applied to the single selected side
        margin: Winning-margin bucket (1, 2, or 3 meaning "3 or more")
        goals: "over" or "under"
        line: Goal line for ``goals``
        team: Side whose goals are counted for team-goal markets
        btts: True for both-teams-to-score yes
        parity: "odd" or "even" total goals
        score: Exact (home, away) full-time score
        total_goals: Exact total goals (``total_or_more`` makes it N+)
        halftime: Half-time result for HT/FT style markets
        scorer: Side scoring first/last goal ("none" for no goal)
    """

    market: str
    family: MarketFamily
    sides: Tuple[str, ...] = ()
    handicap: Optional[float] = None
    margin: Optional[int] = None
    goals: Optional[str] = None
    line: Optional[float] = None
    team: Optional[str] = None
    btts: Optional[bool] = None
    parity: Optional[str] = None
    score: Optional[Tuple[int, int]] = None
    total_goals: Optional[int] = None
    total_or_more: bool = False
    halftime: Optional[str] = None
    scorer: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["family"] = self.family.value
        data["sides"] = list(self.sides)
        data["score"] = list(self.score) if self.score else None
        if not self.total_or_more:
            del data["total_or_more"]
        return {k: v for k, v in data.items() if v is not None and v != []}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PickSelection":
        values = dict(data)
        values["family"] = MarketFamily(values["family"])
        values["sides"] = tuple(values.get("sides") or ())
        if values.get("score") is not None:
            values["score"] = tuple(values["score"])
        return cls(**values)
