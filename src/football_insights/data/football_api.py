"""football-data.org v4 client."""

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import requests

from ..config import get_settings
from ..utils.retry import NonRetryableError, RetryableError, retry_with_backoff
from .schemas import Fixture, StandingsTable, parse_fixture, parse_fixtures, parse_standings

logger = logging.getLogger(__name__)


class FixtureSourceError(RetryableError):
    """Transient fixture-source failure (network, 429, 5xx)."""


class FixtureRequestRejected(NonRetryableError):
    """The fixture source refused the request (bad token, unknown resource)."""


def _reset_seconds(response: requests.Response) -> Optional[float]:
    """Seconds until the request quota resets, from the 429 response headers."""
    value = response.headers.get("X-RequestCounter-Reset") or response.headers.get("Retry-After")
    try:
        return float(value) if value is not None else None
    except ValueError:
        return None


class FootballDataClient:
    """Read-only client for fixtures, single matches and standings."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ):
        self.settings = get_settings()
        self.api_key = api_key or self.settings.football_data_api_key
        if not self.api_key:
            logger.warning("No FOOTBALL_DATA_API_KEY found. Set in .env or pass to constructor.")

        self.base_url = (base_url or self.settings.football_data_base_url).rstrip("/")
        self.timeout = self.settings.request_timeout_seconds
        self.session = session or requests.Session()
        if self.api_key:
            self.session.headers.update({"X-Auth-Token": self.api_key})

        self.requests_made = 0

    @retry_with_backoff(max_retries=2, initial_delay=2.0, exceptions=(FixtureSourceError,))
    def _get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """GET an endpoint and return decoded JSON.

        Raises:
            FixtureSourceError: transport failure, rate limit or server error
            FixtureRequestRejected: any other non-2xx response
        """
        url = f"{self.base_url}{endpoint}"
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise FixtureSourceError(f"Request to {endpoint} failed: {e}") from e

        self.requests_made += 1
        if response.status_code == 429:
            raise FixtureSourceError(
                f"Fixture source rate limit hit on {endpoint}",
                retry_after=_reset_seconds(response),
            )
        if response.status_code >= 500:
            raise FixtureSourceError(f"Fixture source error {response.status_code} on {endpoint}")
        if not response.ok:
            raise FixtureRequestRejected(
                f"Fixture source rejected {endpoint}: {response.status_code} {response.text[:200]}"
            )
        try:
            payload = response.json()
        except ValueError as e:
            raise FixtureSourceError(f"Fixture source returned a non-JSON body for {endpoint}") from e
        if not isinstance(payload, dict):
            raise FixtureSourceError(f"Unexpected {type(payload).__name__} payload from {endpoint}")
        return payload

    def get_matches(
        self,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> List[Fixture]:
        """Fixtures between two dates (defaults to today + the configured window)."""
        today = datetime.now(timezone.utc).date()
        date_from = date_from or today
        date_to = date_to or (date_from + timedelta(days=self.settings.fixture_window_days))

        logger.info(f"Fetching fixtures {date_from} to {date_to}")
        payload = self._get(
            "/matches",
            {"dateFrom": date_from.isoformat(), "dateTo": date_to.isoformat()},
        )
        return parse_fixtures(payload)

    def get_match(self, match_id: int) -> Optional[Fixture]:
        """A single match, or None if it cannot be fetched."""
        try:
            payload = self._get(f"/matches/{match_id}")
        except (FixtureSourceError, FixtureRequestRejected) as e:
            logger.warning(f"Could not fetch match {match_id}: {e}")
            return None
        return parse_fixture(payload)

    def get_standings(self, competition_id: int) -> List[StandingsTable]:
        return parse_standings(self._get(f"/competitions/{competition_id}/standings"))

    def get_top_league_standings(self, competition_ids: Optional[List[int]] = None) -> List[StandingsTable]:
        """Standings for every configured competition; failures are skipped."""
        tables: List[StandingsTable] = []
        for competition_id in competition_ids or self.settings.competition_ids:
            try:
                tables.extend(self.get_standings(competition_id))
            except (FixtureSourceError, FixtureRequestRejected) as e:
                logger.error(f"Failed to fetch standings for {competition_id}: {e}")
        return tables
