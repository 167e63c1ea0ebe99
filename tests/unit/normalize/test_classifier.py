"""Tests for FieldClassifier."""
from __future__ import annotations

import pytest

from telemetry_agent.core.enums import FieldDisposition, UnknownFieldPolicy
from telemetry_agent.normalize.classifier import FieldClassifier, value_text
from telemetry_agent.normalize.field_tables import parse_field_tables


def _classifier(policy=UnknownFieldPolicy.WRITE, **measurements) -> FieldClassifier:
    tables = parse_field_tables({
        "duration_keys": ["uptime"],
        "measurements": measurements,
    })
    return FieldClassifier(tables, policy)


# =========================================================================
# value_text
# =========================================================================


def test_value_text():
    assert value_text(None) is None
    assert value_text(True) == "true"
    assert value_text(False) == "false"
    assert value_text("  x ") == "x"
    assert value_text(7) == "7"
    assert value_text({"a": 1}) == '{"a":1}'


# =========================================================================
# Table dispositions
# =========================================================================


def test_ignored_field_is_never_written(classifier):
    assert classifier.classify("system_resource", "cpu-count", "4") == []


def test_forced_string_keeps_text(classifier):
    assert classifier.classify("system_resource", "version", "7.12.1") == [
        ("version", "7.12.1"),
    ]


def test_forced_string_keeps_numeric_looking_text(classifier):
    assert classifier.classify("ip_arp", "address", "10") == [("address", "10")]


def test_forced_numeric_strips_unit(classifier):
    assert classifier.classify("system_resource", "cpu-load", "37%") == [
        ("cpu_load", 37.0),
    ]


@pytest.mark.parametrize("raw", ["12", "12.5"])
def test_forced_numeric_is_always_float(classifier, raw):
    [(key, value)] = classifier.classify("system_resource", "free-memory", raw)
    assert key == "free_memory"
    assert isinstance(value, float)
    assert value == float(raw)


def test_forced_numeric_drops_non_numeric(classifier):
    assert classifier.classify("system_resource", "cpu-load", "n/a") == []


def test_ignore_wins_over_string():
    c = _classifier(kind={"ignore": ["a"], "string": ["a"]})
    assert c.disposition("kind", "a") is FieldDisposition.IGNORE
    assert c.classify("kind", "a", "x") == []


def test_string_wins_over_numeric():
    c = _classifier(kind={"string": ["a"], "numeric": ["a"]})
    assert c.classify("kind", "a", "5") == [("a", "5")]


def test_disposition_of_unlisted_key(classifier):
    assert classifier.disposition("system_resource", "whatever") is FieldDisposition.INFER


# =========================================================================
# Special transforms
# =========================================================================


def test_duration_becomes_seconds(classifier):
    assert classifier.classify("system_resource", "uptime", "1d") == [
        ("uptime_seconds", 86400),
    ]


def test_duration_beats_ignore_list():
    c = _classifier(kind={"ignore": ["uptime"]})
    assert c.classify("kind", "uptime", "2m") == [("uptime_seconds", 120)]


def test_signal_strength_becomes_dbm(classifier):
    assert classifier.classify(
        "interface_wireless_registration_table", "signal-strength", "-55dBm@6Mbps",
    ) == [("signal_strength_dbm", -55)]


def test_paired_value_is_split(classifier):
    assert classifier.classify(
        "interface_wireless_registration_table", "bytes", "1200/3400",
    ) == [("tx_bytes", 1200), ("rx_bytes", 3400)]


def test_pair_only_applies_to_listed_keys(classifier):
    assert classifier.classify("system_resource", "ratio", "1/2") == [("ratio", "1/2")]


def test_unsplittable_paired_value_falls_through():
    c = _classifier(kind={"paired": ["bytes"]})
    assert c.classify("kind", "bytes", "n/a") == [("bytes", "n/a")]


# =========================================================================
# Inference & unknown-field policy
# =========================================================================


@pytest.mark.parametrize("raw, expected", [
    ("15", 15),
    ("-3", -3),
    ("2.5", 2.5),
    ("ether1", "ether1"),
    ("10.0.0.1", "10.0.0.1"),
])
def test_inference(classifier, raw, expected):
    [(_, value)] = classifier.classify("unknown_kind", "field", raw)
    assert value == expected
    assert type(value) is type(expected)


def test_bool_is_inferred_as_text(classifier):
    assert classifier.classify("unknown_kind", "running", True) == [("running", "true")]


def test_drop_policy_skips_unlisted_fields():
    c = _classifier(UnknownFieldPolicy.DROP, kind={"numeric": ["n"]})
    assert c.classify("kind", "other", "5") == []
    assert c.classify("kind", "n", "5") == [("n", 5.0)]


def test_drop_policy_keeps_special_transforms():
    c = _classifier(UnknownFieldPolicy.DROP)
    assert c.classify("kind", "uptime", "1m") == [("uptime_seconds", 60)]


@pytest.mark.parametrize("value", [None, "", "   "])
def test_empty_values_are_skipped(classifier, value):
    assert classifier.classify("system_resource", "version", value) == []


def test_unusable_key_is_skipped(classifier):
    assert classifier.classify("system_resource", "--", "1") == []


def test_policy_accepts_plain_string(field_tables):
    c = FieldClassifier(field_tables, "drop")
    assert c.unknown_policy is UnknownFieldPolicy.DROP
