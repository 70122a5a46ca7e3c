# =============================================================================
# core/operations.py  -  The operation table and its handlers
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Maps every tool name to an Operation(schema, handler, description) and
#   runs a call in two stages:
#
#       raw arguments ──validate──▶ ToolArgs ──handler──▶ VRMResponse
#
#   Handlers are plain functions (client, args) → VRMResponse.  Each one
#   resolves the path, builds the query string, calls client.get() and,
#   for a few operations, post-processes the result:
#
#     vrm_list_installations        two calls when idUser is omitted
#     vrm_get_overall_stats         timezone note for relative periods
#     vrm_get_widget_graph          note when the widget comes back empty
#     vrm_download_installation_data  CSV parsing / base64 wrapping
#
# QUERY CONSTRUCTION:
#   Optional fields are only sent when the caller gave them.  Defaults that
#   this server applies itself (interval, count, type, datatype, format)
#   are filled in before the query is built.  Lists go out as repeated
#   "name[]=value" pairs.
# =============================================================================

from dataclasses import dataclass, replace
from typing import Any, Callable

from core import schemas
from core.client import VRMClient
from core.download import shape_download
from core.errors import ArgumentValidationError, UnknownToolError
from core.models import ErrorCode, ResponseError, VRMResponse

Handler = Callable[[VRMClient, Any], VRMResponse]

DEFAULT_STATS_INTERVAL = "15mins"
DEFAULT_PERIOD_TYPE = "custom"
DEFAULT_DIAGNOSTICS_COUNT = 200
DEFAULT_DOWNLOAD_DATATYPE = "log"
DEFAULT_DOWNLOAD_FORMAT = "csv"

RELATIVE_PERIODS = ("today", "yesterday", "month", "year")

TIMEZONE_NOTE = (
    "Time periods like 'today' may be calculated relative to UTC or server "
    "timezone, not the installation's local timezone."
)
EMPTY_WIDGET_NOTE = (
    "Widget returned empty data. Consider using get_diagnostics or get_stats "
    "for this data instead."
)
USER_FETCH_FAILED_MESSAGE = "Failed to fetch user ID"


@dataclass(frozen=True)
class Operation:
    name: str
    schema: type[schemas.ToolArgs]
    handler: Handler
    description: str


def _optional(params: list, args, *names: str) -> list:
    """Append (name, value) for each field the caller actually set."""
    for name in names:
        value = getattr(args, name)
        if value is not None:
            params.append((name, value))
    return params


def _codes(params: list, codes: list[str]) -> list:
    params.extend(("attributeCodes[]", code) for code in codes)
    return params


# =============================================================================
# Account & installations
# =============================================================================
def get_user_me(client: VRMClient, args) -> VRMResponse:
    return client.get("/users/me")


def _user_id_from(data: Any) -> int | None:
    """Pull the numeric user id out of a /users/me payload."""
    if not isinstance(data, dict):
        return None
    user = data.get("user")
    candidates = [data.get("idUser")]
    if isinstance(user, dict):
        candidates += [user.get("idUser"), user.get("id")]
    candidates.append(data.get("id"))
    for candidate in candidates:
        if isinstance(candidate, int) and not isinstance(candidate, bool):
            return candidate
    return None


def list_installations(client: VRMClient, args) -> VRMResponse:
    """List the installations of ``idUser``, looking the user up if omitted.

    Without an explicit idUser this makes two calls: /users/me, then
    /users/<id>/installations.  If the first one fails (or carries no id)
    its envelope is returned with the error replaced by user_fetch_failed;
    status, meta and data are kept.
    """
    user_id = args.idUser
    if user_id is None:
        me = get_user_me(client, args)
        user_id = _user_id_from(me.data) if me.ok else None
        if user_id is None:
            return replace(
                me,
                ok=False,
                error=ResponseError(ErrorCode.USER_FETCH_FAILED, USER_FETCH_FAILED_MESSAGE),
            )

    params = [("extended", "1")] if args.extended else []
    return client.get(f"/users/{user_id}/installations", params)


def search_user_installations(client: VRMClient, args) -> VRMResponse:
    params = _optional([], args, "query", "limit")
    return client.get(f"/users/{args.idUser}/search", params)


def get_user_access_tokens(client: VRMClient, args) -> VRMResponse:
    return client.get(f"/users/{args.idUser}/access-tokens/list")


def auth_login_as_demo(client: VRMClient, args) -> VRMResponse:
    return client.get("/auth/loginAsDemo")


def auth_logout(client: VRMClient, args) -> VRMResponse:
    return client.get("/auth/logout")


# =============================================================================
# Statistics
# =============================================================================
def get_system_overview(client: VRMClient, args) -> VRMResponse:
    return client.get(f"/installations/{args.siteId}/system-overview")


def get_stats(client: VRMClient, args) -> VRMResponse:
    params = [
        ("type", args.type),
        ("interval", args.interval or DEFAULT_STATS_INTERVAL),
    ]
    _optional(params, args, "start", "end")
    return client.get(f"/installations/{args.siteId}/stats", params)


def get_overall_stats(client: VRMClient, args) -> VRMResponse:
    """Aggregated totals for a period.

    start/end are only sent for the "custom" period.  Relative periods get a
    note, since VRM may compute their boundaries outside the installation's
    own timezone.
    """
    period = args.type or DEFAULT_PERIOD_TYPE
    params = _codes([("type", period)], args.attributeCodes)
    if period == "custom":
        _optional(params, args, "start", "end")

    response = client.get(f"/installations/{args.siteId}/overallstats", params)
    if response.ok and period in RELATIVE_PERIODS:
        response.meta.note = TIMEZONE_NOTE
    return response


def get_alarms(client: VRMClient, args) -> VRMResponse:
    params = [("activeOnly", "true")] if args.activeOnly else []
    _optional(params, args, "page", "pageSize")
    return client.get(f"/installations/{args.siteId}/alarms", params)


def get_diagnostics(client: VRMClient, args) -> VRMResponse:
    params = [("count", args.count or DEFAULT_DIAGNOSTICS_COUNT)]
    _optional(params, args, "offset")
    return client.get(f"/installations/{args.siteId}/diagnostics", params)


def get_widget_graph(client: VRMClient, args) -> VRMResponse:
    params = _codes([], args.attributeCodes)
    params.append(("instance", args.instance))

    response = client.get(f"/installations/{args.siteId}/widgets/Graph", params)
    if response.ok and not response.data:
        response.meta.note = EMPTY_WIDGET_NOTE
    return response


def _site_resource(suffix: str) -> Handler:
    def handler(client: VRMClient, args) -> VRMResponse:
        return client.get(f"/installations/{args.siteId}/{suffix}")
    handler.__name__ = f"get_{suffix.replace('-', '_')}"
    return handler


def _widget(widget_name: str) -> Handler:
    def handler(client: VRMClient, args) -> VRMResponse:
        params = _optional([], args, "instance")
        return client.get(f"/installations/{args.siteId}/widgets/{widget_name}", params)
    handler.__name__ = f"get_widget_{widget_name}"
    return handler


# =============================================================================
# Downloads
# =============================================================================
def download_installation_data(client: VRMClient, args) -> VRMResponse:
    """Download logged data and, for CSV, parse it into records.

    The parse result (or the reason it failed) goes into meta.note.  A CSV
    that can't be parsed still comes back ok=True, with the base64 content.
    """
    datatype = args.datatype or DEFAULT_DOWNLOAD_DATATYPE
    fmt = args.format or DEFAULT_DOWNLOAD_FORMAT
    decode = True if args.decode is None else args.decode

    params = _optional([], args, "start", "end")
    params += [("datatype", datatype), ("format", fmt)]

    response = client.get(f"/installations/{args.siteId}/data-download", params)
    if not response.ok:
        return response

    data, note = shape_download(
        response.data, args.siteId, datatype, fmt, decode, args.start, args.end
    )
    response.data = data
    if note:
        response.meta.note = note
    return response


def download_gps_data(client: VRMClient, args) -> VRMResponse:
    params = _optional([], args, "start", "end")
    return client.get(f"/installations/{args.siteId}/gps-download", params)


# =============================================================================
# System-wide
# =============================================================================
def get_data_attributes(client: VRMClient, args) -> VRMResponse:
    params = _optional([], args, "filter", "sort", "limit", "offset")
    return client.get("/data-attributes", params)


def get_firmwares(client: VRMClient, args) -> VRMResponse:
    params = _optional([], args, "type", "version")
    return client.get("/firmwares", params)


# =============================================================================
# The table
# =============================================================================
# (tool name, widget path segment, description)
WIDGET_TOOLS: tuple[tuple[str, str, str], ...] = (
    ("vrm_get_vebus_state", "VeBusState",
     "Get the VE.Bus inverter/charger state widget (mode, state, alarms)."),
    ("vrm_get_inverter_charger_state", "InverterChargerState",
     "Get the inverter/charger state widget."),
    ("vrm_get_charger_relay_state", "ChargerRelayState",
     "Get the charger relay state widget."),
    ("vrm_get_solar_charger_relay_state", "SolarChargerRelayState",
     "Get the solar charger relay state widget."),
    ("vrm_get_gateway_relay_state", "GatewayRelayState",
     "Get the GX gateway relay 1 state widget."),
    ("vrm_get_gateway_relay_two_state", "GatewayRelayTwoState",
     "Get the GX gateway relay 2 state widget."),
    ("vrm_get_status_widget", "Status",
     "Get the general status widget for a device."),
    ("vrm_get_vebus_warnings_alarms", "VeBusWarningsAndAlarms",
     "Get VE.Bus warnings and alarms."),
    ("vrm_get_inverter_charger_warnings_alarms", "InverterChargerWarningsAndAlarms",
     "Get inverter/charger warnings and alarms."),
    ("vrm_get_battery_summary", "BatterySummary",
     "Get the battery summary widget (state of charge, voltage, current, power)."),
    ("vrm_get_solar_charger_summary", "SolarChargerSummary",
     "Get the solar charger summary widget (PV power, yield, charge state)."),
    ("vrm_get_ev_charger_summary", "EvChargerSummary",
     "Get the EV charger summary widget."),
    ("vrm_get_global_link_summary", "GlobalLinkSummary",
     "Get the GlobalLink summary widget."),
    ("vrm_get_motor_summary", "MotorSummary",
     "Get the motor summary widget."),
    ("vrm_get_pv_inverter_status", "PVInverterStatus",
     "Get the PV inverter status widget."),
    ("vrm_get_tank_summary", "TankSummary",
     "Get the tank level summary widget."),
    ("vrm_get_temp_summary_graph", "TempSummaryAndGraph",
     "Get the temperature summary and graph widget."),
    ("vrm_get_dc_meter", "DCMeter",
     "Get the DC meter widget."),
    ("vrm_get_bms_diagnostics", "BMSDiagnostics",
     "Get battery management system diagnostics."),
    ("vrm_get_lithium_bms", "LithiumBMS",
     "Get the lithium BMS widget (cell voltages, balancing)."),
    ("vrm_get_historic_data", "HistoricData",
     "Get the historic data widget (lifetime minimums/maximums)."),
    ("vrm_get_io_extender", "IOExtenderInOut",
     "Get the IO extender inputs/outputs widget."),
)


def _build_operations() -> dict[str, Operation]:
    entries = [
        ("vrm_get_user_me", schemas.NoArgs, get_user_me,
         "Get your VRM account information and user profile. data.user holds "
         "the account, including the numeric user id (idUser) used by the "
         "other user tools."),
        ("vrm_list_installations", schemas.ListInstallationsArgs, list_installations,
         "List all your Victron energy installations/sites (solar systems, "
         "batteries, etc.). Call this first to find the siteId every "
         "per-installation tool needs. idUser is optional: when omitted it is "
         "looked up via vrm_get_user_me, and a failed lookup is reported as "
         "user_fetch_failed. extended=true adds tags, images and device info."),
        ("vrm_get_system_overview", schemas.SiteArgs, get_system_overview,
         "Get the current status of an energy system: battery level, solar "
         "production, consumption and grid usage."),
        ("vrm_get_stats", schemas.StatsArgs, get_stats,
         "Get time-series data for solar production, battery usage, "
         "consumption, energy yield and forecasts. type is one of venus, "
         "live_feed, consumption, kwh, solar_yield, forecast. interval "
         "defaults to 15mins; start/end are epoch milliseconds."),
        ("vrm_get_overall_stats", schemas.OverallStatsArgs, get_overall_stats,
         "Get aggregated energy totals for solar yield, consumption, battery "
         "performance, etc. attributeCodes needs at least one code. type is "
         "custom (default, uses start/end), today, yesterday, month or year. "
         "Relative periods may be computed in UTC rather than the "
         "installation's timezone; the result carries a note when that applies."),
        ("vrm_get_alarms", schemas.AlarmsArgs, get_alarms,
         "Check for alarms or alerts of an installation. activeOnly limits "
         "the list to current alarms; page starts at 1, pageSize is 1-200."),
        ("vrm_get_diagnostics", schemas.DiagnosticsArgs, get_diagnostics,
         "Get detailed diagnostic readings from an installation's devices. "
         "count is 1-1000 (default 200), offset 0 or more."),
        ("vrm_get_widget_graph", schemas.WidgetGraphArgs, get_widget_graph,
         "Get graph data (battery voltage, inverter output, PV data, etc.) for "
         "specific attribute codes of one device instance. An empty widget "
         "comes back with a note pointing at vrm_get_diagnostics / vrm_get_stats."),
        ("vrm_auth_login_as_demo", schemas.NoArgs, auth_login_as_demo,
         "Log in to the public VRM demo account and return its session details."),
        ("vrm_auth_logout", schemas.NoArgs, auth_logout,
         "Log out the current VRM session."),
        ("vrm_get_user_access_tokens", schemas.UserArgs, get_user_access_tokens,
         "List the access tokens registered for a VRM user."),
        ("vrm_search_user_installations", schemas.SearchInstallationsArgs,
         search_user_installations,
         "Search a user's installations by name or identifier. limit is 1-100."),
        ("vrm_download_installation_data", schemas.DownloadDataArgs,
         download_installation_data,
         "Download logged installation data. With format csv and decode on "
         "(the defaults) the file is parsed into data.records plus "
         "data.summary {totalRecords, columns}. Other formats, or "
         "decode=false, return data.content as base64 with a suggested "
         "filename. datatype is log (default), benchmark or kwh."),
        ("vrm_download_gps_data", schemas.DownloadGpsArgs, download_gps_data,
         "Download GPS track data of an installation (epoch-millisecond range)."),
        ("vrm_get_installation_tags", schemas.SiteArgs, _site_resource("tags"),
         "Get the tags attached to an installation."),
        ("vrm_get_custom_widget", schemas.SiteArgs, _site_resource("custom-widget"),
         "Get the custom widget configuration of an installation."),
        ("vrm_get_dynamic_ess_settings", schemas.SiteArgs,
         _site_resource("dynamic-ess-settings"),
         "Get the Dynamic ESS (energy storage scheduling) settings of an installation."),
        ("vrm_get_reset_forecasts", schemas.SiteArgs, _site_resource("reset-forecasts"),
         "Get forecast reset information for an installation."),
        ("vrm_get_data_attributes", schemas.DataAttributesArgs, get_data_attributes,
         "List the data attributes (codes, names, units) known to VRM. Useful "
         "for finding attributeCodes for vrm_get_overall_stats and "
         "vrm_get_widget_graph."),
        ("vrm_get_firmwares", schemas.FirmwaresArgs, get_firmwares,
         "List available firmware versions, optionally for one device type/version."),
    ]
    entries += [
        (name, schemas.WidgetArgs, _widget(widget),
         f"{description} instance optionally selects one device instance.")
        for name, widget, description in WIDGET_TOOLS
    ]
    return {
        name: Operation(name, schema, handler, description)
        for name, schema, handler, description in entries
    }


OPERATIONS: dict[str, Operation] = _build_operations()


def get_operation(name: str) -> Operation:
    try:
        return OPERATIONS[name]
    except KeyError:
        raise UnknownToolError(name) from None


def parse_arguments(name: str, raw: Any) -> schemas.ToolArgs:
    """Stage 1: validate raw arguments for ``name``.

    Raises:
        UnknownToolError: If ``name`` is not a known operation.
        ArgumentValidationError: If the arguments don't fit the schema.
    """
    operation = get_operation(name)
    return schemas.validate_arguments(name, operation.schema, raw)


def execute(client: VRMClient, name: str, args: schemas.ToolArgs) -> VRMResponse:
    """Stage 2: run the handler for already-validated arguments."""
    return get_operation(name).handler(client, args)


def dispatch(client: VRMClient, name: str, raw: Any) -> VRMResponse:
    """Validate, then execute.  Validation failures come back as envelopes.

    Raises:
        UnknownToolError: For an unknown tool name.
        DisallowedPathError: If a handler resolves a path outside the
            allowlist.
    """
    try:
        args = parse_arguments(name, raw)
    except ArgumentValidationError as exc:
        return VRMResponse.local_failure(ErrorCode.VALIDATION_ERROR, exc.message)
    return execute(client, name, args)
