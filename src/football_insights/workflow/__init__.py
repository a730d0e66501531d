"""Prediction pipeline and background scheduling."""

from .pipeline import PredictionPipeline
from .scheduler import build_scheduler, next_refresh_time, run_daily_cycle, run_settlement

__all__ = [
    "PredictionPipeline",
    "build_scheduler",
    "next_refresh_time",
    "run_daily_cycle",
    "run_settlement",
]
