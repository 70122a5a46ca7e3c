# =============================================================================
# core/schemas.py  -  Argument Schemas (one per tool)
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Declares the accepted input of every tool as a pydantic model, and
#   exposes validate_arguments() to turn a raw argument dict into one of
#   those models (or raise ArgumentValidationError).
#
# RULES SHARED BY EVERY SCHEMA:
#   - Closed world: extra="forbid".  An unknown field is an error, even if
#     everything else is valid.
#   - Strict types: "123" is not an integer, true is not an integer.
#     The one concession is an integral float (12.0) for integer fields,
#     which is what some JSON encoders produce.
#   - Field names match the VRM API (siteId, attributeCodes, pageSize...),
#     since that's what tool callers send.
#
# This module does no I/O.  Validation is a pure function of
# (schema, raw input), so it is tested without any HTTP mocking.
# =============================================================================

from typing import Annotated, Any, Literal

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, ValidationError

from core.errors import ArgumentValidationError


def _integral(value: Any) -> Any:
    """Accept 12.0 as 12; leave everything else for strict int validation."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


Int = Annotated[int, BeforeValidator(_integral)]
SiteId = Annotated[int, BeforeValidator(_integral), Field(description="Installation/site ID")]
UserId = Annotated[int, BeforeValidator(_integral), Field(description="VRM user ID")]
EpochMs = Annotated[int, BeforeValidator(_integral), Field(description="Epoch milliseconds")]
AttributeCodes = Annotated[list[str], Field(min_length=1)]

StatsType = Literal["venus", "live_feed", "consumption", "kwh", "solar_yield", "forecast"]
PeriodType = Literal["custom", "today", "yesterday", "month", "year"]
DownloadDatatype = Literal["log", "benchmark", "kwh"]
DownloadFormat = Literal["csv", "excelxml", "xls", "xlsx"]


class ToolArgs(BaseModel):
    """Base for every tool schema: closed, strict, immutable."""

    model_config = ConfigDict(extra="forbid", strict=True, frozen=True)


# -----------------------------------------------------------------------------
# Account & installations
# -----------------------------------------------------------------------------
class NoArgs(ToolArgs):
    pass


class ListInstallationsArgs(ToolArgs):
    idUser: UserId | None = None
    extended: bool | None = None


class UserArgs(ToolArgs):
    idUser: UserId


class SearchInstallationsArgs(ToolArgs):
    idUser: UserId
    query: str | None = None
    limit: Annotated[Int, Field(ge=1, le=100)] | None = None


class SiteArgs(ToolArgs):
    siteId: SiteId


# -----------------------------------------------------------------------------
# Statistics
# -----------------------------------------------------------------------------
class StatsArgs(ToolArgs):
    siteId: SiteId
    type: StatsType
    interval: str | None = None
    start: EpochMs | None = None
    end: EpochMs | None = None


class OverallStatsArgs(ToolArgs):
    siteId: SiteId
    attributeCodes: AttributeCodes
    type: PeriodType | None = None
    start: EpochMs | None = None
    end: EpochMs | None = None


class AlarmsArgs(ToolArgs):
    siteId: SiteId
    activeOnly: bool | None = None
    page: Annotated[Int, Field(ge=1)] | None = None
    pageSize: Annotated[Int, Field(ge=1, le=200)] | None = None


class DiagnosticsArgs(ToolArgs):
    siteId: SiteId
    count: Annotated[Int, Field(ge=1, le=1000)] | None = None
    offset: Annotated[Int, Field(ge=0)] | None = None


class WidgetGraphArgs(ToolArgs):
    siteId: SiteId
    attributeCodes: AttributeCodes
    instance: Int


class WidgetArgs(ToolArgs):
    siteId: SiteId
    instance: Int | None = None


# -----------------------------------------------------------------------------
# Downloads
# -----------------------------------------------------------------------------
class DownloadDataArgs(ToolArgs):
    siteId: SiteId
    start: EpochMs | None = None
    end: EpochMs | None = None
    datatype: DownloadDatatype | None = None
    format: DownloadFormat | None = None
    decode: bool | None = None


class DownloadGpsArgs(ToolArgs):
    siteId: SiteId
    start: EpochMs | None = None
    end: EpochMs | None = None


# -----------------------------------------------------------------------------
# System-wide
# -----------------------------------------------------------------------------
class DataAttributesArgs(ToolArgs):
    filter: str | None = None
    sort: str | None = None
    limit: Annotated[Int, Field(ge=1, le=1000)] | None = None
    offset: Annotated[Int, Field(ge=0)] | None = None


class FirmwaresArgs(ToolArgs):
    type: str | None = None
    version: str | None = None


def _describe(exc: ValidationError) -> str:
    """Format the first error pydantic reports as ``field: message``."""
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first["loc"])
    message = first["msg"]
    return f"{location}: {message}" if location else message


def validate_arguments(tool_name: str, schema: type[ToolArgs], raw: Any) -> ToolArgs:
    """Validate raw tool input against ``schema``.

    Args:
        tool_name: Tool being called (used in the error only).
        schema: The ToolArgs subclass to validate against.
        raw: Whatever the caller sent.  ``None`` is treated as ``{}``.

    Returns:
        The validated, immutable argument model.

    Raises:
        ArgumentValidationError: With the first violated constraint.
    """
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ArgumentValidationError(
            tool_name, f"arguments must be an object, got {type(raw).__name__}"
        )
    try:
        return schema.model_validate(raw)
    except ValidationError as exc:
        raise ArgumentValidationError(tool_name, _describe(exc)) from exc
