"""Tests for field classification table loading."""
from __future__ import annotations

import pytest

from telemetry_agent.normalize.field_tables import (
    DEFAULT_TABLES_PATH,
    EMPTY_TABLE,
    load_field_tables,
    parse_field_tables,
    sanitize_key,
)


# =========================================================================
# sanitize_key
# =========================================================================


@pytest.mark.parametrize("raw, expected", [
    ("mac-address", "mac_address"),
    (".id", "id"),
    ("CPU Load", "cpu_load"),
    ("rx-bits-per-second", "rx_bits_per_second"),
    ("__x__", "x"),
])
def test_sanitize_key(raw, expected):
    assert sanitize_key(raw) == expected


def test_sanitize_key_is_idempotent():
    for raw in ("mac-address", ".id", "a b-c.d", "ALREADY_ok"):
        once = sanitize_key(raw)
        assert sanitize_key(once) == once


# =========================================================================
# Loading
# =========================================================================


def test_packaged_tables_exist():
    assert DEFAULT_TABLES_PATH.is_file()


def test_packaged_tables_are_sanitized(field_tables):
    resource = field_tables.table_for("system_resource")
    assert "cpu_load" in resource.numeric
    assert "version" in resource.string
    assert "cpu_count" in resource.ignore

    lease = field_tables.table_for("ip_dhcp_server_lease")
    assert "mac_address" in lease.string
    assert "id" in lease.ignore


def test_registration_table_pairs(field_tables):
    table = field_tables.table_for("interface_wireless_registration_table")
    assert {"bytes", "packets"} <= table.paired


def test_unknown_measurement_gets_empty_table(field_tables):
    assert field_tables.table_for("no_such_kind") is EMPTY_TABLE


def test_duration_key_exact_and_suffix(field_tables):
    assert field_tables.is_duration_key("uptime")
    assert field_tables.is_duration_key("expires_after")
    assert field_tables.is_duration_key("session_uptime")
    assert not field_tables.is_duration_key("uptimes")
    assert not field_tables.is_duration_key("cpu_load")


def test_parse_rejects_unknown_list():
    with pytest.raises(ValueError, match="Unknown classification lists"):
        parse_field_tables({"measurements": {"x": {"numbers": ["a"]}}})


def test_parse_empty_document():
    tables = parse_field_tables({})
    assert len(tables.measurements) == 0
    assert not tables.duration_keys


def test_tables_are_read_only(field_tables):
    with pytest.raises(TypeError):
        field_tables.measurements["x"] = EMPTY_TABLE


def test_load_alternative_file(tmp_path):
    path = tmp_path / "tables.yaml"
    path.write_text(
        "duration_keys: [age]\n"
        "measurements:\n"
        "  Custom-Kind:\n"
        "    numeric: [temp-c]\n",
        encoding="utf-8",
    )
    tables = load_field_tables(path)
    assert tables.duration_keys == frozenset({"age"})
    assert "temp_c" in tables.table_for("custom_kind").numeric
