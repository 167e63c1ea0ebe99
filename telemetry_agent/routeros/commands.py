"""
RouterOS command catalogue & measurement-kind mapping.

All command paths the collector issues are kept here; the collector only
references them.
"""
from __future__ import annotations

from typing import Any, Iterable, Mapping

from telemetry_agent.normalize.field_tables import sanitize_key

# =============================================================================
# Inventory commands (one point per reply row)
# =============================================================================

SYSTEM_RESOURCE = "/system/resource/print"
SYSTEM_CLOCK = "/system/clock/print"
SYSTEM_HEALTH = "/system/health/print"
SYSTEM_ROUTERBOARD = "/system/routerboard/print"
IP_ADDRESS = "/ip/address/print"
IP_ARP = "/ip/arp/print"
IP_DHCP_LEASE = "/ip/dhcp-server/lease/print"
USER = "/user/print"

BASE_COMMANDS: tuple[str, ...] = (
    SYSTEM_RESOURCE,
    SYSTEM_CLOCK,
    SYSTEM_HEALTH,
    SYSTEM_ROUTERBOARD,
    IP_ADDRESS,
    IP_ARP,
    IP_DHCP_LEASE,
    USER,
)

# =============================================================================
# Capability probe & wireless variants
# =============================================================================

PACKAGE_LIST = "/system/package/print"

WIFIWAVE2_REGISTRATION = "/interface/wifiwave2/registration-table/print"
WIFI_REGISTRATION = "/interface/wifi/registration-table/print"
WIRELESS_REGISTRATION = "/interface/wireless/registration-table/print"

# Checked in order; the first enabled package wins.
WIRELESS_PACKAGES: tuple[tuple[str, str], ...] = (
    ("wifiwave2", WIFIWAVE2_REGISTRATION),
    ("wifi-qcom", WIFI_REGISTRATION),
    ("wifi-qcom-ac", WIFI_REGISTRATION),
    ("wireless", WIRELESS_REGISTRATION),
)

# =============================================================================
# Interfaces & sessions
# =============================================================================

INTERFACE_LIST = "/interface/print"
INTERFACE_MONITOR = "/interface/monitor-traffic"
INTERFACE_MEASUREMENT = "interface_stats"
INTERFACE_TAG = "interface_name"

HOTSPOT_ACTIVE = "/ip/hotspot/active/print"
HOTSPOT_MEASUREMENT = "hotspot_active"
HOTSPOT_TAG = "user"

# Variant command paths that denote one logical dataset.
MEASUREMENT_ALIASES: dict[str, str] = {
    "interface_wifiwave2_registration_table": "interface_wireless_registration_table",
    "interface_wifi_registration_table": "interface_wireless_registration_table",
}


def measurement_for(command: str) -> str:
    """
    Measurement kind for a command path.

    >>> measurement_for("/ip/dhcp-server/lease/print")
    'ip_dhcp_server_lease'
    """
    path = command.strip().strip("/")
    if path.endswith("/print"):
        path = path[: -len("/print")]
    elif path == "print":
        path = ""
    name = sanitize_key(path.replace("/", "_")) or "unknown"
    return MEASUREMENT_ALIASES.get(name, name)


def _is_enabled(package: Mapping[str, Any]) -> bool:
    """``disabled`` arrives as bool or text; a missing flag means enabled."""
    disabled = package.get("disabled", False)
    if isinstance(disabled, str):
        return disabled.strip().lower() in ("false", "no", "")
    return not disabled


def enabled_packages(packages: Iterable[Mapping[str, Any]]) -> set[str]:
    """Names of installed and enabled packages."""
    return {
        str(p["name"]) for p in packages
        if p.get("name") and _is_enabled(p)
    }


def build_command_list(packages: set[str]) -> list[str]:
    """
    Base commands plus the capability-gated optional ones.

    Args:
        packages: Enabled package names from the capability probe (empty
            when the probe failed, which skips every optional command).
    """
    commands = list(BASE_COMMANDS)
    for package, command in WIRELESS_PACKAGES:
        if package in packages:
            commands.append(command)
            break
    return commands
