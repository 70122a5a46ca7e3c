"""The path allowlist."""

import pytest

from core.allowlist import WIDGET_NAMES, is_allowed_path


@pytest.mark.parametrize(
    "path",
    [
        "/users/me",
        "/auth/loginAsDemo",
        "/auth/logout",
        "/users/42/installations",
        "/users/42/search",
        "/users/42/access-tokens/list",
        "/installations/12345/system-overview",
        "/installations/12345/stats",
        "/installations/12345/overallstats",
        "/installations/12345/alarms",
        "/installations/12345/diagnostics",
        "/installations/12345/tags",
        "/installations/12345/custom-widget",
        "/installations/12345/dynamic-ess-settings",
        "/installations/12345/reset-forecasts",
        "/installations/12345/data-download",
        "/installations/12345/gps-download",
        "/data-attributes",
        "/firmwares",
    ],
)
def test_known_paths_allowed(path):
    assert is_allowed_path(path)


@pytest.mark.parametrize("widget", WIDGET_NAMES)
def test_widget_paths_allowed(widget):
    assert is_allowed_path(f"/installations/1/widgets/{widget}")


@pytest.mark.parametrize(
    "path",
    [
        "/invalid/path",
        "",
        "/users/me/",
        "/users/abc/installations",
        "/users/-1/installations",
        "/installations/12345/stats/extra",
        "/installations/12345/stats?type=kwh",
        "/installations/12345/stats\n",
        "/installations/../users/me",
        "/installations/12345/widgets/Unknown",
        "/installations//stats",
        "/installations/١٢٣/stats",
        "/installations/12345/settings",
    ],
)
def test_other_paths_rejected(path):
    assert not is_allowed_path(path)
