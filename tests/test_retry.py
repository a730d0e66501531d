"""Tests for retrying fixture-source calls."""

from unittest.mock import Mock, patch

import pytest

from football_insights.data.football_api import FixtureRequestRejected, FixtureSourceError
from football_insights.utils.retry import (
    NonRetryableError,
    RetryableError,
    next_delay,
    retry_with_backoff,
)

MATCHES = {"matches": [{"id": 1}]}


def _fetcher(source, **retry_kwargs):
    """Wrap a mocked fixture source in the retry decorator."""
    retry_kwargs.setdefault("exceptions", (FixtureSourceError,))

    @retry_with_backoff(**retry_kwargs)
    def fetch_matches():
        return source()

    return fetch_matches


@pytest.fixture
def sleep():
    with patch("football_insights.utils.retry.time.sleep") as mocked:
        yield mocked


class TestRetryWithBackoff:
    """Backoff behaviour around a flaky football-data source."""

    def test_healthy_source_called_once(self, sleep):
        source = Mock(return_value=MATCHES)

        assert _fetcher(source, max_retries=3)() == MATCHES
        assert source.call_count == 1
        sleep.assert_not_called()

    def test_recovers_after_outages(self, sleep):
        """Two 503s then a payload: waits double between attempts."""
        source = Mock(side_effect=[
            FixtureSourceError("503 Service Unavailable"),
            FixtureSourceError("503 Service Unavailable"),
            MATCHES,
        ])

        assert _fetcher(source, max_retries=3, initial_delay=1.0)() == MATCHES
        assert source.call_count == 3
        assert [c.args[0] for c in sleep.call_args_list] == [1.0, 2.0]

    def test_gives_up_with_last_error(self, sleep):
        source = Mock(side_effect=FixtureSourceError("connection reset"))

        with pytest.raises(FixtureSourceError, match="connection reset"):
            _fetcher(source, max_retries=2)()

        # first call plus two retries
        assert source.call_count == 3
        assert sleep.call_count == 2

    def test_rejected_request_not_retried(self, sleep):
        """A 403 from a bad API key fails straight away."""
        source = Mock(side_effect=FixtureRequestRejected("403 Forbidden"))

        with pytest.raises(FixtureRequestRejected):
            _fetcher(source, max_retries=3)()

        assert source.call_count == 1
        sleep.assert_not_called()

    def test_backoff_capped(self, sleep):
        source = Mock(side_effect=FixtureSourceError("timeout"))

        with pytest.raises(FixtureSourceError):
            _fetcher(source, max_retries=4, initial_delay=1.0, backoff_factor=10.0, max_delay=5.0)()

        assert [c.args[0] for c in sleep.call_args_list] == [1.0, 5.0, 5.0, 5.0]

    def test_quota_reset_hint_extends_wait(self, sleep):
        """A 429 reset hint beats the backoff delay but never max_delay."""
        source = Mock(side_effect=[
            FixtureSourceError("429 Too Many Requests", retry_after=12.0),
            FixtureSourceError("429 Too Many Requests", retry_after=500.0),
            FixtureSourceError("429 Too Many Requests"),
        ])

        with pytest.raises(FixtureSourceError):
            _fetcher(source, max_retries=2, initial_delay=1.0, max_delay=60.0)()

        assert [c.args[0] for c in sleep.call_args_list] == [12.0, 60.0]

    def test_on_retry_sees_each_failure(self, sleep):
        seen = []
        source = Mock(side_effect=[
            FixtureSourceError("502 Bad Gateway"),
            FixtureSourceError("504 Gateway Timeout"),
            MATCHES,
        ])

        fetch = _fetcher(source, max_retries=2, on_retry=lambda e, attempt: seen.append((str(e), attempt)))
        assert fetch() == MATCHES
        assert seen == [("502 Bad Gateway", 0), ("504 Gateway Timeout", 1)]

    def test_wrapped_name_kept(self):
        fetch = _fetcher(Mock())
        assert fetch.__name__ == "fetch_matches"
        assert fetch.__doc__ is None


class TestRetryExceptions:
    """Error classification and wait computation."""

    def test_retryable_error_carries_hint(self):
        error = RetryableError("slow down", retry_after=30)
        assert str(error) == "slow down"
        assert error.retry_after == 30
        assert RetryableError("x").retry_after is None

    def test_next_delay(self):
        assert next_delay(ValueError("x"), 2.0, 60.0) == 2.0
        assert next_delay(RetryableError("x", retry_after=1.0), 2.0, 60.0) == 2.0
        assert next_delay(RetryableError("x", retry_after=90.0), 2.0, 60.0) == 60.0

    def test_fixture_errors_classified(self):
        """Transient source failures retry; rejected requests do not."""
        assert issubclass(FixtureSourceError, RetryableError)
        assert issubclass(FixtureRequestRejected, NonRetryableError)
        assert not issubclass(FixtureRequestRejected, RetryableError)
