"""Tests for voiceprint.utils -- timezone and numeric helpers."""

from datetime import datetime, timedelta, timezone

import pytest

from voiceprint.utils import clamp, ensure_utc, mean, std_dev, utc_now


# ---------------------------------------------------------------------------
# utc_now / ensure_utc
# ---------------------------------------------------------------------------


def test_utc_now_returns_timezone_aware_utc():
    now = utc_now()
    assert now.tzinfo is not None
    assert now.utcoffset() == timedelta(0)


def test_ensure_utc_naive_datetime_adds_utc():
    """Naive datetimes are assumed to be UTC."""
    naive = datetime(2025, 6, 15, 12, 0, 0)
    result = ensure_utc(naive)
    assert result.tzinfo == timezone.utc
    assert result.hour == 12


def test_ensure_utc_non_utc_aware_converts_to_utc():
    plus_three = timezone(timedelta(hours=3))
    result = ensure_utc(datetime(2025, 6, 15, 15, 0, 0, tzinfo=plus_three))
    assert result == datetime(2025, 6, 15, 12, 0, 0, tzinfo=timezone.utc)
    assert result.utcoffset() == timedelta(0)


# ---------------------------------------------------------------------------
# Numeric helpers
# ---------------------------------------------------------------------------


def test_mean_and_std_dev():
    assert mean([2.0, 4.0, 6.0]) == 4.0
    assert std_dev([2.0, 4.0, 4.0, 4.0, 5.0, 5.0, 7.0, 9.0]) == pytest.approx(2.0)


def test_empty_sequences_give_zero():
    """Empty input gives zero instead of raising."""
    assert mean([]) == 0.0
    assert std_dev([]) == 0.0


@pytest.mark.parametrize(
    "value, expected",
    [(-0.5, 0.0), (0.25, 0.25), (1.5, 1.0)],
)
def test_clamp_unit_interval(value, expected):
    assert clamp(value) == expected


def test_clamp_custom_bounds():
    assert clamp(12, 0, 10) == 10
