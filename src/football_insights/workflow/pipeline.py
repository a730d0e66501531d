"""Prediction pipeline: fixture fetch, per-fixture assembly and TTL caching."""

import logging
import threading
from datetime import date, datetime, timezone
from typing import Hashable, List, Optional

from ..analysis.predictions import MatchPrediction, PredictionAssembler
from ..config import get_settings
from ..data.football_api import FixtureRequestRejected, FixtureSourceError, FootballDataClient
from ..data.schemas import Fixture
from ..ml.team_strength import TeamStrengthModel
from ..utils import TTLCache

logger = logging.getLogger(__name__)

DEFAULT_KEY = "default"


class PredictionPipeline:
    """Produces the current list of MatchPredictions.

    Results are cached per date range. When the cache is stale exactly one
    caller regenerates while others wait for the fresh snapshot. If the
    fixture source is unavailable the last cached predictions are served,
    even if expired.
    """

    def __init__(
        self,
        client: Optional[FootballDataClient] = None,
        assembler: Optional[PredictionAssembler] = None,
        cache: Optional[TTLCache] = None,
    ):
        self.settings = get_settings()
        self.client = client or FootballDataClient()
        self.assembler = assembler or PredictionAssembler()
        self.cache = cache or TTLCache(self.settings.prediction_cache_ttl_seconds)
        self._lock = threading.Lock()
        self.last_fixtures: List[Fixture] = []
        self.last_generated: Optional[datetime] = None

    @property
    def strength_model(self) -> TeamStrengthModel:
        return self.assembler.strength_model

    @staticmethod
    def cache_key(date_from: Optional[date], date_to: Optional[date]) -> Hashable:
        if date_from is None and date_to is None:
            return DEFAULT_KEY
        return (date_from, date_to)

    def get_predictions(
        self,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> List[MatchPrediction]:
        """Predictions for a date range (default: today plus the fixture window)."""
        key = self.cache_key(date_from, date_to)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug(f"Prediction cache hit for {key}")
            return cached

        with self._lock:
            # Another caller may have refreshed while we waited
            cached = self.cache.get(key)
            if cached is not None:
                return cached

            try:
                fixtures = self.client.get_matches(date_from, date_to)
            except (FixtureSourceError, FixtureRequestRejected) as e:
                stale = self.cache.get_stale(key)
                logger.error(
                    f"Fixture source unavailable ({e}); serving "
                    f"{'cached' if stale is not None else 'no'} predictions"
                )
                return stale if stale is not None else []

            predictions = self.predict_fixtures(fixtures)
            self.cache.set(key, predictions)
            self.last_fixtures = fixtures
            self.last_generated = datetime.now(timezone.utc)
            return predictions

    def predict_fixtures(self, fixtures: List[Fixture]) -> List[MatchPrediction]:
        """Assemble predictions sequentially; one failing fixture never blanks the batch."""
        generated_at = datetime.now(timezone.utc)
        predictions: List[MatchPrediction] = []
        failures = 0
        for fixture in fixtures:
            try:
                predictions.append(self.assembler.assemble(fixture, generated_at=generated_at))
            except Exception as e:
                failures += 1
                logger.error(f"Prediction failed for match {fixture.id} ({fixture.label}): {e}")

        logger.info(f"Generated {len(predictions)} predictions ({failures} failed)")
        return predictions

    def get_prediction(self, match_id: int) -> Optional[MatchPrediction]:
        """A single match's prediction from the default snapshot."""
        for prediction in self.get_predictions():
            if prediction.match_id == match_id:
                return prediction
        return None

    def refresh_strengths(self) -> int:
        """Rebuild team ratings from standings; clears cached predictions on success."""
        tables = self.client.get_top_league_standings()
        rated = self.strength_model.refresh_from_standings(tables)
        if rated:
            self.cache.clear()
        return rated

    def invalidate(self) -> None:
        self.cache.clear()
