"""Tests for query parameter parsing in the API dependencies."""

import pytest

from traffic_flower.api.dependencies import get_days, get_limit, get_minutes


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(None, 7), ("lots", 7), ("30", 30), ("0", 1), ("-5", 1), ("1000000000", 3650)],
)
def test_get_days(raw, expected):
    assert get_days(raw) == expected


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(None, 20), ("soon", 20), ("10", 10), ("-1", 1), ("50000000", 1440)],
)
def test_get_minutes(raw, expected):
    assert get_minutes(raw) == expected


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(None, 50), ("many", 50), ("0", 50), ("-3", 1), ("25", 25), ("999999", 1000)],
)
def test_get_limit(raw, expected):
    assert get_limit(raw) == expected
