"""Team strength ratings and the goal-model probability engine."""

from .probability import (
    AWAY,
    DRAW,
    HOME,
    OutcomeDistribution,
    ProbabilityEngine,
    to_percentages,
)
from .team_strength import TeamStrength, TeamStrengthModel, form_signal

__all__ = [
    "AWAY",
    "DRAW",
    "HOME",
    "OutcomeDistribution",
    "ProbabilityEngine",
    "to_percentages",
    "TeamStrength",
    "TeamStrengthModel",
    "form_signal",
]
