"""Tests for retry delay computation and Retry-After parsing."""

from datetime import UTC, datetime, timedelta
from email.utils import format_datetime

import pytest

from apple_music_api.infrastructure.backoff import BackoffPolicy, parse_retry_after

NOW = datetime(2025, 6, 1, 12, 0, 0, tzinfo=UTC)


class TestBackoffPolicy:
    """Test capped exponential backoff."""

    def test_delays_double_until_cap(self) -> None:
        """Test the exponential curve without jitter."""
        policy = BackoffPolicy(base=0.5, cap=3.0, jitter=0.0)

        assert [policy.delay(attempt) for attempt in range(5)] == [
            0.5,
            1.0,
            2.0,
            3.0,
            3.0,
        ]

    def test_huge_attempt_stays_capped(self) -> None:
        """Test that large attempt numbers never overflow."""
        policy = BackoffPolicy(base=0.2, cap=10.0, jitter=0.0)
        assert policy.delay(10_000) == 10.0

    @pytest.mark.parametrize(("rng_value", "expected"), [(0.0, 0.8), (0.5, 1.0), (1.0, 1.2)])
    def test_jitter_spreads_delay(self, rng_value: float, expected: float) -> None:
        """Test that jitter scales the delay within +-jitter."""
        policy = BackoffPolicy(base=1.0, cap=10.0, jitter=0.2, rng=lambda: rng_value)
        assert policy.delay(0) == pytest.approx(expected)

    def test_retry_after_wins_when_longer(self) -> None:
        """Test that the server hint overrides a shorter computed delay."""
        policy = BackoffPolicy(base=0.2, cap=10.0, jitter=0.0)
        assert policy.delay(0, retry_after=5.0) == 5.0

    def test_retry_after_not_capped(self) -> None:
        """Test that a hint above the cap is still honoured."""
        policy = BackoffPolicy(base=0.2, cap=1.0, jitter=0.0)
        assert policy.delay(0, retry_after=30.0) == 30.0

    def test_computed_wins_when_hint_is_shorter(self) -> None:
        policy = BackoffPolicy(base=2.0, cap=10.0, jitter=0.0)
        assert policy.delay(1, retry_after=1.0) == 4.0

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"base": 0},
            {"cap": -1},
            {"jitter": 1.0},
            {"jitter": -0.1},
            {"multiplier": 0.5},
        ],
    )
    def test_invalid_policy_rejected(self, kwargs: dict[str, float]) -> None:
        with pytest.raises(ValueError):
            BackoffPolicy(**kwargs)


class TestParseRetryAfter:
    """Test Retry-After header parsing."""

    @pytest.mark.parametrize(("value", "expected"), [("5", 5.0), (" 120 ", 120.0), ("0", 0.0), ("1.5", 1.5)])
    def test_delta_seconds(self, value: str, expected: float) -> None:
        assert parse_retry_after(value) == expected

    def test_http_date(self) -> None:
        """Test that an HTTP-date is converted to seconds from now."""
        header = format_datetime(NOW + timedelta(seconds=30), usegmt=True)
        assert parse_retry_after(header, now=lambda: NOW) == pytest.approx(30.0)

    def test_http_date_in_past_is_zero(self) -> None:
        header = format_datetime(NOW - timedelta(minutes=5), usegmt=True)
        assert parse_retry_after(header, now=lambda: NOW) == 0.0

    @pytest.mark.parametrize("value", [None, "", "   ", "-3", "soon", "inf", "nan"])
    def test_missing_or_invalid_is_none(self, value: str | None) -> None:
        """Test that unusable headers are ignored rather than raising."""
        assert parse_retry_after(value) is None
