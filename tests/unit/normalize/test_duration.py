"""Tests for RouterOS duration parsing."""
from __future__ import annotations

import pytest

from telemetry_agent.normalize.duration import parse_duration


def test_all_segments():
    assert parse_duration("1w2d3h4m5s") == 604800 + 2 * 86400 + 3 * 3600 + 4 * 60 + 5


@pytest.mark.parametrize("value, expected", [
    ("1d", 86400),
    ("5m", 300),
    ("30s", 30),
    ("9m30s", 570),
    ("2h", 7200),
])
def test_subsets(value, expected):
    assert parse_duration(value) == expected


def test_segment_order_does_not_matter():
    assert parse_duration("5s4m") == parse_duration("4m5s") == 245


@pytest.mark.parametrize("value", ["", None, 42, "never", "00:10:00"])
def test_unparseable_is_zero(value):
    assert parse_duration(value) == 0


def test_milliseconds_are_not_minutes():
    assert parse_duration("120ms") == 0
    assert parse_duration("1s120ms") == 1


def test_first_occurrence_of_a_unit_wins():
    assert parse_duration("1h2h") == 3600
