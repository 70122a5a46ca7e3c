# =============================================================================
# core/allowlist.py  -  The only remote paths this server may ever call
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Holds an ordered list of allowed VRM paths.  Each entry is either an
#   exact string ("/users/me") or a compiled pattern for a templated path
#   ("/installations/<digits>/stats").  is_allowed_path() walks the list
#   and stops at the first match.
#
# The client checks every resolved path here BEFORE building a request.
# Schema validation already guarantees ids are integers; this is a second,
# independent check on the final path string, so a path-building bug can
# never send a request outside this list.
# =============================================================================

import re
from typing import Pattern


_ID = "[0-9]+"


def _site(suffix: str) -> Pattern[str]:
    return re.compile(rf"^/installations/{_ID}/{suffix}$")


def _user(suffix: str) -> Pattern[str]:
    return re.compile(rf"^/users/{_ID}/{suffix}$")


# Widget names served under /installations/<id>/widgets/<name>
WIDGET_NAMES: tuple[str, ...] = (
    "Graph",
    "VeBusState",
    "InverterChargerState",
    "ChargerRelayState",
    "SolarChargerRelayState",
    "GatewayRelayState",
    "GatewayRelayTwoState",
    "Status",
    "VeBusWarningsAndAlarms",
    "InverterChargerWarningsAndAlarms",
    "BatterySummary",
    "SolarChargerSummary",
    "EvChargerSummary",
    "GlobalLinkSummary",
    "MotorSummary",
    "PVInverterStatus",
    "TankSummary",
    "TempSummaryAndGraph",
    "DCMeter",
    "BMSDiagnostics",
    "LithiumBMS",
    "HistoricData",
    "IOExtenderInOut",
)

ALLOWED_PATHS: tuple[str | Pattern[str], ...] = (
    # Account
    "/users/me",
    "/auth/loginAsDemo",
    "/auth/logout",
    _user("installations"),
    _user("search"),
    _user("access-tokens/list"),
    # Per-installation
    _site("system-overview"),
    _site("stats"),
    _site("overallstats"),
    _site("alarms"),
    _site("diagnostics"),
    _site("tags"),
    _site("custom-widget"),
    _site("dynamic-ess-settings"),
    _site("reset-forecasts"),
    _site("data-download"),
    _site("gps-download"),
    *(_site(f"widgets/{name}") for name in WIDGET_NAMES),
    # System-wide
    "/data-attributes",
    "/firmwares",
)


def is_allowed_path(path: str) -> bool:
    """Return True if ``path`` matches an allowlist entry exactly."""
    for entry in ALLOWED_PATHS:
        if isinstance(entry, str):
            if path == entry:
                return True
        elif entry.fullmatch(path):
            return True
    return False
