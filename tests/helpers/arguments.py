"""Smallest valid argument set for each tool schema."""

from core import schemas

MINIMAL = {
    schemas.NoArgs: {},
    schemas.ListInstallationsArgs: {},
    schemas.UserArgs: {"idUser": 7},
    schemas.SearchInstallationsArgs: {"idUser": 7},
    schemas.SiteArgs: {"siteId": 12345},
    schemas.StatsArgs: {"siteId": 12345, "type": "kwh"},
    schemas.OverallStatsArgs: {"siteId": 12345, "attributeCodes": ["Pb"]},
    schemas.AlarmsArgs: {"siteId": 12345},
    schemas.DiagnosticsArgs: {"siteId": 12345},
    schemas.WidgetGraphArgs: {"siteId": 12345, "attributeCodes": ["OV1"], "instance": 0},
    schemas.WidgetArgs: {"siteId": 12345},
    schemas.DownloadDataArgs: {"siteId": 12345},
    schemas.DownloadGpsArgs: {"siteId": 12345},
    schemas.DataAttributesArgs: {},
    schemas.FirmwaresArgs: {},
}


def minimal_arguments(schema) -> dict:
    return dict(MINIMAL[schema])
