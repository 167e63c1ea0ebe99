"""Tests for numeric / unit lexing helpers."""
from __future__ import annotations

import pytest

from telemetry_agent.normalize.units import (
    is_numeric,
    parse_number,
    parse_quantity,
    parse_signal,
    split_pair,
)


@pytest.mark.parametrize("text", ["0", "-3", "+7", "1.5", ".5", "2e3", " 12 "])
def test_is_numeric(text):
    assert is_numeric(text)


@pytest.mark.parametrize("text", ["", "abc", "1.2.3", "10.0.0.1", "12%", "0x10"])
def test_is_not_numeric(text):
    assert not is_numeric(text)


def test_parse_number_keeps_integers():
    assert parse_number("42") == 42
    assert isinstance(parse_number("42"), int)


def test_parse_number_floats():
    assert parse_number("4.5") == 4.5
    assert isinstance(parse_number("1e2"), float)


def test_parse_number_rejects_text():
    assert parse_number("ether1") is None


@pytest.mark.parametrize("text, expected", [
    ("37%", 37.0),
    ("12", 12.0),
    ("12.5", 12.5),
    ("6Mbps", 6_000_000.0),
    ("41C", 41.0),
    ("2KiB", 2048.0),
])
def test_parse_quantity(text, expected):
    assert parse_quantity(text) == expected


def test_parse_quantity_always_float():
    assert isinstance(parse_quantity("12"), float)


@pytest.mark.parametrize("text", ["fast", "12furlongs", "", "1/2"])
def test_parse_quantity_rejects(text):
    assert parse_quantity(text) is None


def test_parse_signal():
    assert parse_signal("-55dBm@6Mbps") == -55
    assert parse_signal("-70dBm@HT20-7") == -70


def test_parse_signal_requires_rate_suffix():
    assert parse_signal("-55") is None
    assert parse_signal("-55dBm") is None


def test_split_pair():
    assert split_pair("1200/3400") == (1200, 3400)
    assert split_pair("10,20") == (10, 20)


def test_split_pair_rejects_non_numeric():
    assert split_pair("a/b") is None
    assert split_pair("100") is None
